"""The surface the presentation layer talks to."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, List, Optional, Tuple

from ..cache import WeatherCache
from ..config import WeatherNowSettings
from ..entities import Location, WeatherChange, WeatherReport
from ..exceptions import PersistenceError, ValidationError
from ..providers.base import RequestConfig, WeatherClientError
from ..providers.device import CoordinatesProvider
from ..providers.geocoding import OpenWeatherGeocoder
from ..providers.openweather import OpenWeatherClient
from ..registry import LocationRegistry
from ..storage import LocationStore
from .alerts import AlertNotifier
from .current_location import CurrentLocationWeather, CurrentWeather
from .weather import WeatherOrchestrator

logger = logging.getLogger(__name__)

REGISTERED = "Location registered successfully!"
ALREADY_REGISTERED = "Location already registered."


class WeatherFacade:
    def __init__(
        self,
        *,
        registry: LocationRegistry,
        orchestrator: WeatherOrchestrator,
        geocoder: Optional[Any] = None,
        notifier: Optional[AlertNotifier] = None,
    ) -> None:
        self.registry = registry
        self.orchestrator = orchestrator
        self.geocoder = geocoder
        self.notifier = notifier

    # Registration -------------------------------------------------------
    def register_location(self, city_name: str, latitude: float, longitude: float) -> Tuple[bool, str]:
        already_known = bool(city_name) and self.registry.find_by_name(city_name) is not None
        try:
            self.registry.add(city_name, latitude, longitude)
        except ValidationError as exc:
            return False, str(exc)
        except PersistenceError as exc:
            logger.error("Failed to save location %s: %s", city_name, exc)
            return False, f"Failed to save location: {exc}"
        return True, ALREADY_REGISTERED if already_known else REGISTERED

    async def register_city(self, city_name: str) -> Tuple[bool, str]:
        """Geocode ``city_name`` and register it under the name the user typed."""
        if not city_name or not city_name.strip():
            return False, "City name cannot be empty."
        if self.geocoder is None:
            return False, "Geocoding is not available."
        try:
            match = await asyncio.to_thread(self.geocoder.geocode, city_name)
        except WeatherClientError as exc:
            logger.warning("Geocoding %s failed: %s", city_name, exc)
            return False, str(exc)
        if match is None:
            return False, f"Could not find coordinates for {city_name}."
        return self.register_location(city_name, match.latitude, match.longitude)

    def subscribe_location_added(self, callback: Callable[[Location], None]) -> Callable[[], None]:
        return self.registry.subscribe(callback)

    # Listing ------------------------------------------------------------
    def list_locations(self) -> List[Location]:
        return self.registry.list()

    def get_location(self, location_id: str) -> Optional[Location]:
        return self.registry.get(location_id)

    def delete_location(self, location_id: str) -> bool:
        location = self.registry.get(location_id)
        if location is None:
            return False
        self.orchestrator.weather_cache.pop(self.orchestrator.cache_key(location))
        return self.registry.delete(location)

    # Weather ------------------------------------------------------------
    async def get_weather(self, location: Location) -> WeatherReport:
        return await self.orchestrator.get_weather(location)

    async def get_icon(self, icon_code: Optional[str]) -> bytes:
        return await self.orchestrator.get_icon(icon_code)

    async def refresh_all(self) -> List[WeatherReport]:
        return await self.orchestrator.refresh(self.list_locations())

    async def current_location_weather(self, provider: CoordinatesProvider) -> CurrentWeather:
        return await CurrentLocationWeather(self.orchestrator, provider).fetch()

    def subscribe_weather_changed(self, callback: Callable[[WeatherChange], None]) -> Callable[[], None]:
        return self.orchestrator.weather_changed.subscribe(callback)


def build_facade(settings: WeatherNowSettings, *, session=None) -> WeatherFacade:
    """Wire every service from ``settings``."""
    request_config = RequestConfig(timeout=settings.request_timeout, log_responses=settings.log_responses)
    client = OpenWeatherClient(
        settings.api_key,
        base_url=settings.weather_url,
        icon_base_url=settings.icon_url,
        session=session,
        request_config=request_config,
    )
    geocoder = OpenWeatherGeocoder(
        settings.api_key,
        base_url=settings.geocoding_url,
        session=client.session,
        request_config=request_config,
    )
    registry = LocationRegistry(LocationStore(settings.database_url))
    orchestrator = WeatherOrchestrator(
        client=client,
        registry=registry,
        weather_cache=WeatherCache(default_ttl=settings.cache_ttl),
        icon_cache=WeatherCache(default_ttl=settings.cache_ttl),
    )
    notifier = AlertNotifier().attach(orchestrator.weather_changed)
    return WeatherFacade(registry=registry, orchestrator=orchestrator, geocoder=geocoder, notifier=notifier)


__all__ = ["WeatherFacade", "build_facade", "REGISTERED", "ALREADY_REGISTERED"]
