"""Byte buffers, HTTP request parsing and messages, readiness polling, threads and logging."""

__version__ = "0.1.0"