"""Forward geocoding (city name to coordinates) through OpenWeather."""
from __future__ import annotations

from typing import Optional

from pydantic import ValidationError as PayloadError

from .base import DecodingError, OpenWeatherEndpoint
from .schemas import GeocodingPayload
from ..config import DEFAULT_GEOCODING_URL
from ..entities import GeocodingResult


class OpenWeatherGeocoder(OpenWeatherEndpoint):
    name = "openweather-geocoding"

    def __init__(self, api_key: str, base_url: Optional[str] = None, **kwargs) -> None:
        super().__init__(api_key, **kwargs)
        self.base_url = base_url or DEFAULT_GEOCODING_URL

    def geocode(self, city_name: str) -> Optional[GeocodingResult]:
        """Return the best match for ``city_name`` or ``None`` when nothing matches."""
        params = {"q": city_name, "limit": 1, "appid": self.api_key}
        response = self._request(self.base_url, params)
        data = self._json(response)
        if not isinstance(data, list):
            raise DecodingError("expected a list of matches")
        if not data:
            self._log.warning("No geocoding results for %s", city_name)
            return None
        try:
            return GeocodingPayload.model_validate(data[0]).to_result()
        except PayloadError as exc:
            raise DecodingError(str(exc.errors()[0].get("msg", "invalid match"))) from exc


__all__ = ["OpenWeatherGeocoder"]
