"""Timing helpers for thumbnail_maker entry points."""

import inspect
import time
from collections.abc import Awaitable, Callable
from functools import wraps
from typing import ParamSpec, TypeVar, cast

from loguru import logger

P = ParamSpec("P")
R = TypeVar("R")


def _log_elapsed(name: str, start_time: float, failed: bool) -> None:
    elapsed_time = time.perf_counter() - start_time
    outcome = "failed after" if failed else "took"
    logger.info(f"[PROFILE] {name} {outcome} {elapsed_time:.3f}s")


def timed(func: Callable[P, R]) -> Callable[P, R]:
    """Log the wall time of each call at INFO level.

    Coroutine functions stay coroutine functions, so ``inspect`` and
    ``asyncio`` still recognise the decorated callable.

    Usage:
        @timed
        def make_thumbnail(data, config):
            ...
    """
    name = func.__qualname__

    if inspect.iscoroutinefunction(func):
        async_func = cast(Callable[P, Awaitable[object]], func)

        @wraps(func)
        async def async_wrapper(*args: P.args, **kwargs: P.kwargs) -> object:
            start_time = time.perf_counter()
            failed = True
            try:
                result = await async_func(*args, **kwargs)
                failed = False
                return result
            finally:
                _log_elapsed(name, start_time, failed)

        return cast(Callable[P, R], async_wrapper)

    @wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        start_time = time.perf_counter()
        failed = True
        try:
            result = func(*args, **kwargs)
            failed = False
            return result
        finally:
            _log_elapsed(name, start_time, failed)

    return wrapper
