"""Bounded fan-out helpers for store-heavy batch work.

The reconciliation job issues one ratchet UPDATE per live counter.  Firing
thousands of those at once would queue up behind SQLite's single writer (or
exhaust a Postgres pool), so every batch caller goes through
:func:`throttled_gather`, which caps how many coroutines are in flight.

The semaphore is created per call because an ``asyncio.Semaphore`` binds
to the event loop it is first used on.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Iterable, TypeVar

import structlog

from src.utils.logging import get_logger

_T = TypeVar("_T")
_K = TypeVar("_K")

_logger: structlog.BoundLogger = get_logger(__name__)


async def throttled_gather(
    coros: list[Awaitable[_T]],
    limit: int = 10,
    return_exceptions: bool = True,
) -> list[_T | BaseException]:
    """Run awaitables concurrently with at most *limit* in flight.

    Parameters
    ----------
    coros:
        Awaitable objects to execute concurrently.
    limit:
        Maximum number of awaitables executing at any moment.
    return_exceptions:
        If ``True``, exceptions are returned in the results list rather
        than being raised.  Mirrors ``asyncio.gather`` semantics.

    Returns
    -------
    list[_T | BaseException]
        Results in the same order as the input coroutines.
    """
    semaphore = asyncio.Semaphore(max(1, limit))

    async def _wrapped(coro: Awaitable[_T]) -> _T:
        async with semaphore:
            return await coro

    return await asyncio.gather(
        *[_wrapped(c) for c in coros],
        return_exceptions=return_exceptions,
    )


async def fan_out(
    fn: Callable[[_K], Awaitable[_T]],
    items: Iterable[_K],
    limit: int = 10,
    logger: structlog.BoundLogger | None = None,
    error_msg: str = "fan_out_item_failed",
) -> tuple[list[tuple[_K, _T]], list[tuple[_K, BaseException]]]:
    """Apply *fn* to every item with bounded concurrency.

    Failures never abort the batch: each one is logged and returned
    alongside the successes so the caller can decide the overall outcome.

    Returns
    -------
    tuple
        ``(successes, failures)`` where each entry pairs the input item
        with its result or exception.
    """
    if logger is None:
        logger = _logger

    keys = list(items)
    raw_results = await throttled_gather([fn(k) for k in keys], limit=limit)

    successes: list[tuple[_K, _T]] = []
    failures: list[tuple[_K, BaseException]] = []
    for key, result in zip(keys, raw_results):
        if isinstance(result, BaseException):
            logger.warning(error_msg, item=str(key), error=str(result))
            failures.append((key, result))
        else:
            successes.append((key, result))
    return successes, failures
