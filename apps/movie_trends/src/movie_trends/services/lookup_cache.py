"""In-process lookup cache with TTL, negative TTL and in-flight de-duplication."""

from __future__ import annotations

import asyncio
import time
from collections import OrderedDict
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

_MISSING = object()


@dataclass(slots=True)
class _Entry:
    value: Any
    expires_at: float


class LookupCache:
    def __init__(
        self,
        *,
        ttl_seconds: float = 600.0,
        negative_ttl_seconds: float = 120.0,
        max_entries: int = 2000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_seconds
        self._negative_ttl = negative_ttl_seconds
        self._max_entries = max(1, max_entries)
        self._clock = clock
        self._store: OrderedDict[str, _Entry] = OrderedDict()
        self._inflight: dict[str, asyncio.Task[Any]] = {}

    def __len__(self) -> int:
        return len(self._store)

    def get(self, key: str, default: Any = None) -> Any:
        entry = self._store.get(key)
        if entry is None:
            return default
        if entry.expires_at <= self._clock():
            del self._store[key]
            return default
        return entry.value

    def set(self, key: str, value: Any, *, ttl_seconds: float | None = None) -> None:
        self._purge_expired()
        if ttl_seconds is None:
            ttl_seconds = self._negative_ttl if _is_negative(value) else self._ttl
        self._store.pop(key, None)
        self._store[key] = _Entry(value=value, expires_at=self._clock() + max(ttl_seconds, 0.001))
        while len(self._store) > self._max_entries:
            self._store.popitem(last=False)

    def delete(self, key: str) -> None:
        self._store.pop(key, None)
        self._inflight.pop(key, None)

    async def get_or_set(self, key: str, factory: Callable[[], Awaitable[Any]]) -> Any:
        cached = self.get(key, _MISSING)
        if cached is not _MISSING:
            return cached

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._load(key, factory))
            self._inflight[key] = task
        return await task

    async def _load(self, key: str, factory: Callable[[], Awaitable[Any]]) -> Any:
        try:
            value = await factory()
            self.set(key, value)
            return value
        finally:
            self._inflight.pop(key, None)

    def _purge_expired(self) -> None:
        now = self._clock()
        expired = [key for key, entry in self._store.items() if entry.expires_at <= now]
        for key in expired:
            del self._store[key]


def _is_negative(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (list, tuple, dict, set)):
        return not value
    return False
