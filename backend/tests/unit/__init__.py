"""
Unit Tests

Unit tests run in isolation without external dependencies.
The durable store, Redis and the clock are replaced with doubles; the file
store writes to a temporary directory.
"""
