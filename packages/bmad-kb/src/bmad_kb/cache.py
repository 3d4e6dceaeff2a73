from __future__ import annotations

import threading
from typing import Generic, TypeVar

T = TypeVar("T")


class EntityCache(Generic[T]):
    """In-memory identifier → entity cache.

    Entries never expire; the cache only grows until :meth:`clear`.
    A lock guards mutation so concurrent readers never observe a
    half-applied insert or clear.  Repeated puts on one key are
    last-write-wins.
    """

    def __init__(self, kind: str) -> None:
        self.kind = kind
        self._store: dict[str, T] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> T | None:
        return self._store.get(key)

    def set(self, key: str, value: T) -> None:
        with self._lock:
            self._store[key] = value

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._store

    def __len__(self) -> int:
        return len(self._store)
