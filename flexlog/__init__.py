"""Logging building blocks: results, message pools and queues, a worker thread pool, and pattern and CloudWatch formatters."""

__version__ = "0.1.0"