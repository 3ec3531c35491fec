"""
Single-slot, time-limited cache for the last generated profile.
"""

import time
from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar

T = TypeVar("T")

DEFAULT_TTL_SECONDS = 30 * 60


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    key: str
    payload: T
    timestamp: float

    def is_valid(self, now: float, ttl: float) -> bool:
        return now - self.timestamp < ttl


class ProfileCache(Generic[T]):
    """Holds one payload under a `<version>:<user>` key.

    A hit returns the stored object itself. A different key, an expired
    entry or invalidate() all mean a miss; put() overwrites the slot.
    """

    def __init__(
        self,
        version: str,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.version = version
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entry: Optional[CacheEntry[T]] = None

    def key_for(self, user_id: str) -> str:
        return f"{self.version}:{user_id}"

    def get(self, user_id: str) -> Optional[T]:
        entry = self._entry
        if entry is None or entry.key != self.key_for(user_id):
            return None
        if not entry.is_valid(self._clock(), self.ttl_seconds):
            return None
        return entry.payload

    def put(self, user_id: str, payload: T) -> None:
        self._entry = CacheEntry(key=self.key_for(user_id), payload=payload, timestamp=self._clock())

    def invalidate(self) -> None:
        self._entry = None
