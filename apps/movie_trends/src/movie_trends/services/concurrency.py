"""Bounded-concurrency helpers."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

T = TypeVar("T")
R = TypeVar("R")


async def map_limit(
    items: Sequence[T],
    limit: int,
    mapper: Callable[[T], Awaitable[R]],
) -> list[R]:
    """Apply ``mapper`` to every item with at most ``limit`` calls in flight.

    Results keep the input order. The first exception raised by ``mapper``
    propagates once every started call has settled.
    """
    if not items:
        return []
    semaphore = asyncio.Semaphore(max(1, limit))

    async def _guarded(item: T) -> R:
        async with semaphore:
            return await mapper(item)

    results = await asyncio.gather(
        *(_guarded(item) for item in items),
        return_exceptions=True,
    )
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return list(results)  # type: ignore[arg-type]
