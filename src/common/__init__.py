"""Shared helpers: HTTP, subprocesses, data files, concurrency, logging."""
