"""Elapsed-time logging for long reference-data and batch operations."""
import time
from contextlib import ContextDecorator
from typing import Any, Optional

from regionfinder.utils.logging import log_structured


class Timer(ContextDecorator):
    """
    Log how long an operation took, as a ``with`` block or a decorator.

    The log entry carries the operation name, elapsed milliseconds and
    whether the block raised. Exceptions are never suppressed.

    Example:
        with Timer("load_boundary_context", level="info"):
            ...

        @Timer("restamp_listing_regions")
        def restamp(...):
            ...
    """

    def __init__(self, operation: str, level: str = "debug", **fields: Any):
        self.operation = operation
        self.level = level
        self.fields = fields
        self.start: Optional[float] = None
        self.elapsed_ms: Optional[float] = None

    def __enter__(self):
        self.start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.elapsed_ms = round((time.perf_counter() - self.start) * 1000, 3)
        log_structured(
            self.level if exc_type is None else "warning",
            f"{self.operation} {'completed' if exc_type is None else 'failed'}",
            operation=self.operation,
            elapsed_ms=self.elapsed_ms,
            succeeded=exc_type is None,
            **self.fields,
        )
        return False
