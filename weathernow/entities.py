from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple


@dataclass
class Location:
    """A registered place.

    Owned by the registry and mutated in place whenever a weather fetch for
    it succeeds. ``temperature``/``feels_like`` stay ``0.0`` and
    ``weather_description`` stays ``None`` until the first successful fetch.
    """

    id: str
    city_name: str
    latitude: float
    longitude: float
    registration_date: datetime
    temperature: float = 0.0
    feels_like: float = 0.0
    weather_description: Optional[str] = None
    cached_weather: Optional[str] = None


@dataclass(frozen=True)
class WeatherCondition:
    description: str
    icon: str


@dataclass(frozen=True)
class WeatherSnapshot:
    """One decoded observation from the current weather endpoint.

    Values are metric: temperatures in Celsius, pressure in hPa and
    humidity in percent.
    """

    city_name: str
    temperature: float
    feels_like: float
    pressure: Optional[float] = None
    humidity: Optional[float] = None
    conditions: Tuple[WeatherCondition, ...] = field(default_factory=tuple)

    @property
    def primary_condition(self) -> Optional[WeatherCondition]:
        return self.conditions[0] if self.conditions else None

    @property
    def description(self) -> Optional[str]:
        condition = self.primary_condition
        return condition.description if condition else None

    @property
    def icon_code(self) -> Optional[str]:
        condition = self.primary_condition
        return condition.icon if condition else None


@dataclass(frozen=True)
class WeatherReport:
    """What the presentation layer renders for a location.

    ``stale`` is set when the live fetch failed and the values come from the
    location's persisted fields; ``notice`` then carries the error message.
    """

    city_name: str
    temperature: float
    feels_like: float
    description: Optional[str]
    icon: bytes
    icon_code: Optional[str] = None
    stale: bool = False
    notice: Optional[str] = None
    snapshot: Optional[WeatherSnapshot] = None

    def as_dict(self) -> dict:
        return {
            "city_name": self.city_name,
            "temperature": self.temperature,
            "feels_like": self.feels_like,
            "description": self.description,
            "icon_code": self.icon_code,
            "stale": self.stale,
            "notice": self.notice,
        }


@dataclass(frozen=True)
class Coordinates:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class GeocodingResult:
    name: str
    latitude: float
    longitude: float
    country: str = ""
    state: str = ""


@dataclass(frozen=True)
class WeatherChange:
    location: Location
    before: str
    after: str


__all__ = [
    "Location",
    "WeatherCondition",
    "WeatherSnapshot",
    "WeatherReport",
    "Coordinates",
    "GeocodingResult",
    "WeatherChange",
]
