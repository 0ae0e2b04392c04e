"""Decorator utilities for cross-cutting concerns."""
import time
import logging
import functools
from typing import Any, Callable, TypeVar, cast

from drive_api.errors import DriveAPIError, UpstreamError

# Setup logging
logger = logging.getLogger(__name__)

F = TypeVar('F', bound=Callable[..., Any])

def log_execution_time(func: F) -> F:
    """Decorator to log how long an external-service call took.

    Successful calls are logged at DEBUG. Failures are logged at WARNING with
    the exception type, except for expected outcomes such as a missing record
    (any `DriveAPIError` other than `UpstreamError`), which stay at DEBUG.

    Args:
        func: The function to decorate

    Returns:
        Decorated function that logs execution time
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        start_time = time.perf_counter()
        try:
            result = func(*args, **kwargs)
            duration = time.perf_counter() - start_time
            logger.debug(f"{func.__qualname__} completed in {duration * 1000:.1f}ms")
            return result
        except Exception as e:
            duration = time.perf_counter() - start_time
            expected = isinstance(e, DriveAPIError) and not isinstance(e, UpstreamError)
            level = logging.DEBUG if expected else logging.WARNING
            logger.log(level, f"{func.__qualname__} failed after {duration * 1000:.1f}ms: {type(e).__name__}")
            raise
    return cast(F, wrapper)
