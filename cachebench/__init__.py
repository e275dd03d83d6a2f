"""Benchmarks of memory layout, access patterns and concurrency strategies,
with settings, argument and message types for a small interactive application."""

__version__ = "0.1.0"