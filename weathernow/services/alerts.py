from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from ..entities import WeatherChange
from ..events import EventChannel

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WeatherAlert:
    title: str
    body: str

    @classmethod
    def from_change(cls, change: WeatherChange) -> "WeatherAlert":
        city = change.location.city_name or "Unknown City"
        return cls(
            title="Weather Alert",
            body=f"Significant weather change detected in {city}: {change.before} → {change.after}",
        )


def log_alert(alert: WeatherAlert) -> None:
    logger.info("%s: %s", alert.title, alert.body)


class AlertNotifier:
    """Turns ``weather_changed`` events into alerts and hands them to ``deliver``."""

    def __init__(self, deliver: Optional[Callable[[WeatherAlert], None]] = None) -> None:
        self.deliver = deliver or log_alert
        self.delivered: List[WeatherAlert] = []
        self._unsubscribe: Optional[Callable[[], None]] = None

    def attach(self, channel: EventChannel[WeatherChange]) -> "AlertNotifier":
        self.detach()
        self._unsubscribe = channel.subscribe(self.notify)
        return self

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def notify(self, change: WeatherChange) -> WeatherAlert:
        alert = WeatherAlert.from_change(change)
        self.deliver(alert)
        self.delivered.append(alert)
        return alert


__all__ = ["AlertNotifier", "WeatherAlert"]
