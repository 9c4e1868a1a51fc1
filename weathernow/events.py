"""Explicit publish/subscribe channels used instead of shared broadcasters."""
from __future__ import annotations

import logging
from typing import Callable, Generic, List, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


class EventChannel(Generic[T]):
    """Delivers each published payload to every subscriber, in subscription order.

    A failing subscriber is logged and skipped so the publisher and the
    remaining subscribers are unaffected.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._subscribers: List[Callable[[T], None]] = []

    def subscribe(self, callback: Callable[[T], None]) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def publish(self, payload: T) -> None:
        for callback in list(self._subscribers):
            try:
                callback(payload)
            except Exception:
                logger.exception("Subscriber %r failed on channel %s", callback, self.name)

    def __len__(self) -> int:
        return len(self._subscribers)


__all__ = ["EventChannel"]
