from __future__ import annotations

import time
from typing import Any, Dict, Optional, Tuple


class WeatherCache:
    """In-memory cache keyed by string.

    Entries stored with ``ttl=None`` (the default) never expire; they live
    until :meth:`pop` or :meth:`clear`.
    """

    def __init__(self, time_func=time.monotonic, default_ttl: Optional[float] = None) -> None:
        self._time_func = time_func
        self._default_ttl = default_ttl
        self._storage: Dict[str, Tuple[Optional[float], Any]] = {}

    def get(self, key: str) -> Any:
        item = self._storage.get(key)
        if not item:
            return None
        expires_at, value = item
        if expires_at is not None and expires_at < self._time_func():
            self._storage.pop(key, None)
            return None
        return value

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        ttl = self._default_ttl if ttl is None else ttl
        expires_at = self._time_func() + ttl if ttl is not None else None
        self._storage[key] = (expires_at, value)

    def pop(self, key: str) -> Any:
        item = self._storage.pop(key, None)
        return item[1] if item else None

    def clear(self) -> None:
        self._storage.clear()

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        self.purge_expired()
        return len(self._storage)

    def purge_expired(self) -> int:
        """Drop expired entries and return how many were removed."""
        now = self._time_func()
        expired = [key for key, (expires_at, _) in self._storage.items() if expires_at is not None and expires_at < now]
        for key in expired:
            del self._storage[key]
        return len(expired)


__all__ = ["WeatherCache"]
