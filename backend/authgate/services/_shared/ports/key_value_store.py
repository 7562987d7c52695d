from __future__ import annotations

import threading
import time
from collections.abc import Callable
from typing import Protocol


class KeyValueStore(Protocol):
    """
    Narrow shared-store contract, a structural subset of ``redis.Redis``.

    Read-after-write across service instances holds only when the backing
    store provides it (Redis does; the in-memory store is per process).
    """

    def get(self, name: str) -> bytes | None: ...

    def set(self, name: str, value: str | bytes | int, ex: int | None = None) -> bool | None: ...

    def incr(self, name: str, amount: int = 1) -> int: ...


class InMemoryKeyValueStore(KeyValueStore):
    """Process-local store used when no ``REDIS_URL`` is configured."""

    def __init__(self, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._data: dict[str, tuple[bytes, float | None]] = {}
        self._lock = threading.Lock()
        self._clock = clock

    @staticmethod
    def _encode(value: str | bytes | int) -> bytes:
        if isinstance(value, bytes):
            return value
        return str(value).encode()

    def _live(self, name: str) -> bytes | None:
        entry = self._data.get(name)
        if entry is None:
            return None
        value, deadline = entry
        if deadline is not None and deadline <= self._clock():
            del self._data[name]
            return None
        return value

    def get(self, name: str) -> bytes | None:
        with self._lock:
            return self._live(name)

    def set(self, name: str, value: str | bytes | int, ex: int | None = None) -> bool:
        deadline = self._clock() + ex if ex else None
        with self._lock:
            self._data[name] = (self._encode(value), deadline)
        return True

    def incr(self, name: str, amount: int = 1) -> int:
        with self._lock:
            current = self._live(name)
            value = int(current or 0) + amount
            deadline = self._data[name][1] if current is not None else None
            self._data[name] = (self._encode(value), deadline)
            return value
