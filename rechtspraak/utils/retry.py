"""Bounded retry with exponential backoff for rate-limited provider calls.

Only :class:`~rechtspraak.utils.errors.RateLimitedError` is retried; every
other error propagates on the first occurrence.  The wait before retry
``n`` (1-based) is ``base_backoff * 2 ** (n - 1)`` seconds, and after
``max_retries`` retries the last ``RateLimitedError`` is re-raised.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, TypeVar

import structlog

from rechtspraak.utils.errors import RateLimitedError

logger = structlog.get_logger(logger_name=__name__)

_T = TypeVar("_T")


async def retry_on_rate_limit(
    operation: Callable[[], Awaitable[_T]],
    *,
    max_retries: int = 3,
    base_backoff: float = 1.0,
    operation_name: str = "provider_call",
) -> _T:
    """Await ``operation()``, retrying it when the provider is rate limited.

    Parameters
    ----------
    operation:
        Zero-argument coroutine factory; called once per attempt so each
        retry issues a fresh request.
    max_retries:
        Retries allowed after the first attempt.  ``0`` disables retrying.
    base_backoff:
        Seconds to wait before the first retry; doubles on each retry.
    operation_name:
        Label for log events.
    """
    attempt = 0
    while True:
        try:
            return await operation()
        except RateLimitedError as exc:
            if attempt >= max_retries:
                logger.error(
                    "rate_limit_retries_exhausted",
                    operation=operation_name,
                    retries=attempt,
                    provider=exc.provider_name,
                )
                raise
            backoff = base_backoff * (2**attempt)
            attempt += 1
            logger.warning(
                "rate_limited_retrying",
                operation=operation_name,
                attempt=attempt,
                backoff_s=backoff,
                provider=exc.provider_name,
            )
            await asyncio.sleep(backoff)
