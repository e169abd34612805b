"""
Integration Tests

Integration tests run the repository and the FastAPI app against an
in-memory SQLite database (aiosqlite). No external services are required.
"""
