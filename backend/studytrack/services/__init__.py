"""Services package for session timing, statistics and the durable study store."""
