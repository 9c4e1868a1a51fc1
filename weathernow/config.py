"""Runtime settings for the weather core, read from the environment."""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .exceptions import ConfigurationError

DEFAULT_WEATHER_URL = "https://api.openweathermap.org/data/2.5/weather"
DEFAULT_ICON_URL = "https://openweathermap.org/img/wn"
DEFAULT_GEOCODING_URL = "https://api.openweathermap.org/geo/1.0/direct"
DEFAULT_DATABASE_URL = "sqlite:///./weathernow.db"


def env(name: str, default: Optional[str] = None, environ: Optional[Mapping[str, str]] = None) -> str:
    """Fetch environment variables while allowing explicit defaults."""

    source = os.environ if environ is None else environ
    value = source.get(name, default)
    if value is None:
        raise ConfigurationError(f"Environment variable {name} is required")
    return value


def _optional_float(name: str, raw: Optional[str]) -> Optional[float]:
    if raw is None or raw == "":
        return None
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from exc


@dataclass(frozen=True)
class WeatherNowSettings:
    api_key: str
    weather_url: str = DEFAULT_WEATHER_URL
    icon_url: str = DEFAULT_ICON_URL
    geocoding_url: str = DEFAULT_GEOCODING_URL
    database_url: str = DEFAULT_DATABASE_URL
    request_timeout: float = 10.0
    cache_ttl: Optional[float] = None
    log_responses: bool = False

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "WeatherNowSettings":
        source = os.environ if environ is None else environ
        timeout = _optional_float("WEATHERNOW_REQUEST_TIMEOUT", source.get("WEATHERNOW_REQUEST_TIMEOUT"))
        return cls(
            api_key=env("OPENWEATHER_API_KEY", environ=source),
            weather_url=source.get("OPENWEATHER_WEATHER_URL", DEFAULT_WEATHER_URL),
            icon_url=source.get("OPENWEATHER_ICON_URL", DEFAULT_ICON_URL),
            geocoding_url=source.get("OPENWEATHER_GEOCODING_URL", DEFAULT_GEOCODING_URL),
            database_url=source.get("WEATHERNOW_DATABASE_URL", DEFAULT_DATABASE_URL),
            request_timeout=timeout if timeout is not None else 10.0,
            cache_ttl=_optional_float("WEATHERNOW_CACHE_TTL", source.get("WEATHERNOW_CACHE_TTL")),
            log_responses=source.get("TESTING_MODE", "0") == "1",
        )


__all__ = ["WeatherNowSettings", "env"]
