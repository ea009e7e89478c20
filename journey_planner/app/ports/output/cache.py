from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class ICache(ABC):
    """Port for a short-lived key/value memo.

    A miss is never an error: callers recompute and store the value.
    """

    @abstractmethod
    async def get(self, key: str, ttl_s: float) -> Any | None:
        """Value stored under key if it is younger than ttl_s seconds."""

        raise NotImplementedError

    @abstractmethod
    async def set(self, key: str, value: Any) -> None:
        raise NotImplementedError
