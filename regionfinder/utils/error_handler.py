"""Centralized error handling for best-effort operations."""
import functools
from typing import Any, Callable
from regionfinder.utils.logging import log_error


def best_effort(default_factory: Callable[[], Any]) -> Callable:
    """
    Decorator for operations that must never fail their caller.

    Errors are logged (and sent to error tracking) and the result of
    ``default_factory()`` is returned instead.

    Usage:
        @best_effort(RegionSet)
        def resolve(self, lng, lat):
            ...
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except Exception as e:
                log_error(e, {
                    "module": func.__module__,
                    "function": func.__qualname__,
                    "best_effort": True,
                })
                return default_factory()

        return wrapper
    return decorator
