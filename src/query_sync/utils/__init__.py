"""Utility modules for query sync."""

from .operations import read_operation, write_operation
from .retry import backoff_delay, with_retry

__all__ = [
    "backoff_delay",
    "read_operation",
    "with_retry",
    "write_operation",
]
