from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Generic, Hashable, Optional, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


@dataclass
class _Entry(Generic[V]):
    value: V
    expires_at: float


class TTLCache(Generic[K, V]):
    """Per-instance cache; entries expire ``ttl_seconds`` after they are set."""

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = max(1.0, float(ttl_seconds))
        self._clock = clock
        self._store: dict[K, _Entry[V]] = {}

    def get(self, key: K) -> Optional[V]:
        hit = self._store.get(key)
        if hit is None:
            return None
        if self._clock() > hit.expires_at:
            del self._store[key]
            return None
        return hit.value

    def set(self, key: K, value: V) -> None:
        self._store[key] = _Entry(value, self._clock() + self.ttl_seconds)

    def clear(self) -> None:
        self._store.clear()

    def __len__(self) -> int:
        return len(self._store)
