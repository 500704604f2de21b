"""Bounded async retry with linear backoff.

Every outbound generation call in the ingestion pipeline goes through
:func:`retry_async`.  The helper re-invokes a coroutine factory up to
``attempts`` times, sleeping ``backoff * attempt`` seconds between tries,
and re-raises the last exception once the budget is spent.  Callers decide
whether that final exception degrades to a default (summary, tags) or
aborts the pipeline (embedding).
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, TypeVar

import structlog

from src.utils.logging import get_logger

_T = TypeVar("_T")

_logger: structlog.BoundLogger = get_logger(__name__)


async def retry_async(
    operation: Callable[[], Awaitable[_T]],
    *,
    attempts: int = 3,
    backoff: float = 0.5,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
    event: str = "operation_retry",
    logger: structlog.BoundLogger | None = None,
) -> _T:
    """Await ``operation()`` until it succeeds or ``attempts`` runs out.

    Parameters
    ----------
    operation:
        Zero-argument callable returning a fresh awaitable on each call.
    attempts:
        Total number of tries (values below 1 are treated as 1).
    backoff:
        Base delay in seconds; the n-th retry waits ``backoff * n``.
    retry_on:
        Exception types that trigger another attempt.  Anything else
        propagates immediately.
    event:
        Log event name emitted on each failed attempt.
    logger:
        Optional bound logger; defaults to this module's logger.

    Raises
    ------
    BaseException
        The exception from the final attempt.
    """
    log = logger or _logger
    total = max(1, attempts)

    for attempt in range(1, total + 1):
        try:
            return await operation()
        except retry_on as exc:
            log.warning(
                event,
                attempt=attempt,
                max_attempts=total,
                error=str(exc),
            )
            if attempt >= total:
                raise
            if backoff > 0:
                await asyncio.sleep(backoff * attempt)

    # Unreachable: the loop either returns or raises.
    raise RuntimeError("retry_async exhausted without result")
