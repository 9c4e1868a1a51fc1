"""OpenWeather current weather client."""
from __future__ import annotations

import math
from typing import Optional

from pydantic import ValidationError as PayloadError

from .base import DecodingError, InvalidRequest, OpenWeatherEndpoint, WeatherClientError
from .schemas import CurrentWeatherPayload
from ..config import DEFAULT_ICON_URL, DEFAULT_WEATHER_URL
from ..entities import WeatherSnapshot

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


class OpenWeatherClient(OpenWeatherEndpoint):
    """Integration with the OpenWeather current weather and icon endpoints."""

    name = "openweather"

    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        icon_base_url: Optional[str] = None,
        **kwargs,
    ) -> None:
        super().__init__(api_key, **kwargs)
        self.base_url = base_url or DEFAULT_WEATHER_URL
        self.icon_base_url = (icon_base_url or DEFAULT_ICON_URL).rstrip("/")

    def fetch_weather(self, latitude: float, longitude: float) -> WeatherSnapshot:
        params = self._build_params(latitude, longitude)
        response = self._request(self.base_url, params)
        data = self._json(response)
        try:
            payload = CurrentWeatherPayload.model_validate(data)
        except PayloadError as exc:
            self._log.error("Unexpected weather payload: %s", exc)
            raise DecodingError(_describe(exc)) from exc
        return payload.to_snapshot()

    def fetch_icon(self, icon_code: str) -> Optional[bytes]:
        """Return PNG bytes for ``icon_code`` or ``None``; never raises."""
        if not icon_code:
            return None
        url = self.icon_url(icon_code)
        try:
            response = self._request(url, {})
        except WeatherClientError as exc:
            self._log.warning("Icon %s unavailable: %s", icon_code, exc)
            return None
        if not response.content.startswith(PNG_SIGNATURE):
            self._log.warning("Icon %s is not a PNG image", icon_code)
            return None
        return response.content

    def icon_url(self, icon_code: str) -> str:
        return f"{self.icon_base_url}/{icon_code}@2x.png"

    def _build_params(self, latitude: float, longitude: float) -> dict:
        try:
            lat = float(latitude)
            lon = float(longitude)
        except (TypeError, ValueError) as exc:
            raise InvalidRequest(str(exc)) from exc
        if not (math.isfinite(lat) and math.isfinite(lon)):
            raise InvalidRequest(f"non-finite coordinates {latitude!r}, {longitude!r}")
        return {"lat": lat, "lon": lon, "appid": self.api_key, "units": "metric"}


def _describe(exc: PayloadError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"{location}: {first.get('msg', 'invalid value')}" if location else first.get("msg", "invalid value")


__all__ = ["OpenWeatherClient", "PNG_SIGNATURE"]
