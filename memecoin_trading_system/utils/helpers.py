"""Assorted helper functions."""

from __future__ import annotations

import asyncio
import functools
import logging
from typing import Any, Awaitable, Callable, Tuple, Type

logger = logging.getLogger(__name__)

SleepFunction = Callable[[float], Awaitable[None]]


def async_retry(
    retries: int = 3,
    delay: float = 0.5,
    exceptions: Tuple[Type[BaseException], ...] = (Exception,),
    *,
    backoff: float = 2.0,
    sleep: SleepFunction = asyncio.sleep,
) -> Callable[[Callable[..., Awaitable[Any]]], Callable[..., Awaitable[Any]]]:
    """Retry decorator for async callables.

    ``retries`` is the total number of attempts. The wait after the n-th failure is
    ``delay * backoff ** (n - 1)``.
    """

    def decorator(func: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[Any]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            attempt = 0
            while True:
                try:
                    return await func(*args, **kwargs)
                except exceptions as error:
                    attempt += 1
                    if attempt >= retries:
                        raise
                    wait = delay * backoff ** (attempt - 1)
                    logger.info(
                        'Retrying %s in %.1fs after %s (attempt %d/%d)',
                        getattr(func, '__name__', 'call'),
                        wait,
                        error,
                        attempt,
                        retries - 1,
                    )
                    await sleep(wait)
        return wrapper

    return decorator


__all__ = ['async_retry']
