"""Pydantic models for the OpenWeather JSON envelopes."""
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from ..entities import GeocodingResult, WeatherCondition, WeatherSnapshot

__all__ = ["CurrentWeatherPayload", "GeocodingPayload"]


class _Payload(BaseModel):
    model_config = ConfigDict(extra="ignore")


class MainBlock(_Payload):
    temp: float
    feels_like: float
    pressure: Optional[float] = None
    humidity: Optional[float] = None


class ConditionBlock(_Payload):
    description: str
    icon: str


class CurrentWeatherPayload(_Payload):
    """``/data/2.5/weather`` response.

    An empty ``weather`` list is accepted here; consumers treat a snapshot
    without conditions as having no description or icon.
    """

    name: str
    main: MainBlock
    weather: List[ConditionBlock]

    def to_snapshot(self) -> WeatherSnapshot:
        return WeatherSnapshot(
            city_name=self.name,
            temperature=self.main.temp,
            feels_like=self.main.feels_like,
            pressure=self.main.pressure,
            humidity=self.main.humidity,
            conditions=tuple(WeatherCondition(description=c.description, icon=c.icon) for c in self.weather),
        )


class GeocodingPayload(_Payload):
    name: str = ""
    lat: float
    lon: float
    country: str = ""
    state: Optional[str] = None

    def to_result(self) -> GeocodingResult:
        return GeocodingResult(
            name=self.name,
            latitude=self.lat,
            longitude=self.lon,
            country=self.country,
            state=self.state or "",
        )
