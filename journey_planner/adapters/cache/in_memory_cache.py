from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any, Callable

from journey_planner.app.ports.output import ICache


@dataclass(slots=True)
class InMemoryTtlCache(ICache):
    """Per-process cache; entries expire by age at read time.

    `max_entries` bounds memory by evicting the oldest entry on insert.
    """

    max_entries: int = 1024
    clock: Callable[[], float] = time.monotonic

    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False, repr=False)
    _entries: dict[str, tuple[float, Any]] = field(default_factory=dict, init=False, repr=False)

    async def get(self, key: str, ttl_s: float) -> Any | None:
        async with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            stored_at, value = entry
            if (self.clock() - stored_at) >= ttl_s:
                del self._entries[key]
                return None
            return value

    async def set(self, key: str, value: Any) -> None:
        async with self._lock:
            self._entries.pop(key, None)
            self._entries[key] = (self.clock(), value)
            while len(self._entries) > self.max_entries:
                oldest = next(iter(self._entries))
                del self._entries[oldest]

    async def clear(self) -> None:
        async with self._lock:
            self._entries.clear()
