"""
Performance timing utilities for debugging.

Measures execution time of API-bound functions when VS_DEBUG=1.
"""

import functools
import logging
import os
import time
from typing import Callable, ParamSpec, TypeVar

P = ParamSpec("P")
R = TypeVar("R")

logger = logging.getLogger(__name__)

# Check if debug mode is enabled
DEBUG_ENABLED = os.getenv("VS_DEBUG") == "1"


def timer(func: Callable[P, R]) -> Callable[P, R]:
    """
    Decorator that measures and logs execution time when VS_DEBUG=1.

    Args:
        func: Function to measure

    Returns:
        Wrapped function that logs timing if debug is enabled
    """
    if not DEBUG_ENABLED:
        return func

    @functools.wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        start_time = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start_time) * 1000
            logger.debug(f"{func.__qualname__}: {elapsed_ms:.2f}ms")

    return wrapper
