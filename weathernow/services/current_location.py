"""Weather for wherever the device currently is."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from ..entities import Coordinates, WeatherSnapshot
from ..exceptions import LocationUnavailable
from ..providers.base import WeatherClientError
from ..providers.device import CoordinatesProvider
from .weather import WeatherOrchestrator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CurrentWeather:
    snapshot: Optional[WeatherSnapshot]
    icon: bytes
    coordinates: Optional[Coordinates] = None
    error: Optional[str] = None

    @property
    def city_name(self) -> str:
        return self.snapshot.city_name if self.snapshot else "Unknown"

    def as_dict(self) -> dict:
        snapshot = self.snapshot
        return {
            "city_name": self.city_name,
            "latitude": self.coordinates.latitude if self.coordinates else None,
            "longitude": self.coordinates.longitude if self.coordinates else None,
            "temperature": snapshot.temperature if snapshot else None,
            "feels_like": snapshot.feels_like if snapshot else None,
            "pressure": snapshot.pressure if snapshot else None,
            "humidity": snapshot.humidity if snapshot else None,
            "description": snapshot.description if snapshot else None,
            "icon_code": snapshot.icon_code if snapshot else None,
            "error": self.error,
        }


class CurrentLocationWeather:
    """Fetches weather for the coordinates reported by ``provider``.

    Unlike registered locations there is no stored record to fall back on,
    so failures are reported through ``error`` with an empty snapshot.
    """

    def __init__(self, orchestrator: WeatherOrchestrator, provider: CoordinatesProvider) -> None:
        self.orchestrator = orchestrator
        self.provider = provider

    async def fetch(self) -> CurrentWeather:
        placeholder = self.orchestrator.placeholder_icon
        try:
            coordinates = self.provider.current_coordinates()
        except LocationUnavailable as exc:
            return CurrentWeather(snapshot=None, icon=placeholder, error=str(exc))

        try:
            snapshot = await self.orchestrator.get_snapshot_for_coordinates(coordinates.latitude, coordinates.longitude)
        except WeatherClientError as exc:
            logger.warning("Current location weather failed: %s", exc)
            return CurrentWeather(snapshot=None, icon=placeholder, coordinates=coordinates, error=str(exc))

        icon = await self.orchestrator.get_icon(snapshot.icon_code)
        return CurrentWeather(snapshot=snapshot, icon=icon, coordinates=coordinates)


__all__ = ["CurrentLocationWeather", "CurrentWeather"]
