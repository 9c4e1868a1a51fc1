from __future__ import annotations

import asyncio
import base64
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from ..cache import WeatherCache
from ..entities import Location, WeatherChange, WeatherReport, WeatherSnapshot
from ..events import EventChannel
from ..exceptions import PersistenceError
from ..providers.base import WeatherClientError
from ..registry import LocationRegistry

# 1x1 transparent PNG shown whenever no real icon is available.
PLACEHOLDER_ICON = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mNkYAAAAAYAAjCB0C8AAAAASUVORK5CYII="
)
UNKNOWN_WEATHER = "Unknown"


class WeatherOrchestrator:
    """Decides between cached and fresh weather for registered locations.

    All state (caches, in-flight fetches, location records) is touched only
    from the event loop; the blocking client calls run in worker threads via
    :func:`asyncio.to_thread` and resume on the loop. Fetches are coalesced
    per cache key so concurrent callers share one network call.
    """

    def __init__(
        self,
        *,
        client: Any,
        registry: LocationRegistry,
        weather_cache: Optional[WeatherCache] = None,
        icon_cache: Optional[WeatherCache] = None,
        placeholder_icon: bytes = PLACEHOLDER_ICON,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.client = client
        self.registry = registry
        self.weather_cache = weather_cache if weather_cache is not None else WeatherCache()
        self.icon_cache = icon_cache if icon_cache is not None else WeatherCache()
        self.placeholder_icon = placeholder_icon
        self.weather_changed: EventChannel[WeatherChange] = EventChannel("weather_changed")
        self._inflight: Dict[str, asyncio.Future] = {}
        self._log = logger or logging.getLogger(self.__class__.__name__)

    # Public API ---------------------------------------------------------
    @staticmethod
    def cache_key(location: Location) -> str:
        return f"weather:{location.city_name}"

    async def get_snapshot(self, location: Location) -> WeatherSnapshot:
        cache_key = self.cache_key(location)
        cached = self.weather_cache.get(cache_key)
        if cached is not None:
            self._log.debug("Cache hit for %s", cache_key)
            return cached
        return await self._coalesce(cache_key, lambda: self._fetch_and_store(location, cache_key))

    async def get_weather(self, location: Location) -> WeatherReport:
        try:
            snapshot = await self.get_snapshot(location)
        except WeatherClientError as exc:
            self._log.warning("Weather fetch for %s failed, using stored values: %s", location.city_name, exc)
            return WeatherReport(
                city_name=location.city_name,
                temperature=location.temperature,
                feels_like=location.feels_like,
                description=location.weather_description,
                icon=self.placeholder_icon,
                stale=True,
                notice=str(exc),
            )

        icon = await self.get_icon(snapshot.icon_code)
        return WeatherReport(
            city_name=location.city_name,
            temperature=snapshot.temperature,
            feels_like=snapshot.feels_like,
            description=snapshot.description,
            icon=icon,
            icon_code=snapshot.icon_code,
            snapshot=snapshot,
        )

    async def get_icon(self, icon_code: Optional[str]) -> bytes:
        if not icon_code:
            return self.placeholder_icon
        cache_key = f"icon:{icon_code}"
        cached = self.icon_cache.get(cache_key)
        if cached is not None:
            return cached
        icon = await self._coalesce(cache_key, lambda: self._fetch_icon(icon_code, cache_key))
        return icon if icon is not None else self.placeholder_icon

    async def get_snapshot_for_coordinates(self, latitude: float, longitude: float) -> WeatherSnapshot:
        """Fetch weather for an unregistered position; coalesced but never cached."""
        key = f"coords:{latitude:.4f}:{longitude:.4f}"
        return await self._coalesce(key, lambda: asyncio.to_thread(self.client.fetch_weather, latitude, longitude))

    async def refresh(self, locations: Sequence[Location]) -> List[WeatherReport]:
        return list(await asyncio.gather(*(self.get_weather(location) for location in locations)))

    def detect_change(self, location: Location, new_description: str) -> Optional[WeatherChange]:
        before = location.cached_weather or UNKNOWN_WEATHER
        if before == new_description:
            return None
        try:
            self.registry.update_cached_weather(location, new_description)
        except PersistenceError as exc:
            self._log.error("Could not persist cached weather for %s: %s", location.city_name, exc)
        change = WeatherChange(location=location, before=before, after=new_description)
        self._log.info("Weather changed in %s: %s -> %s", location.city_name, before, new_description)
        self.weather_changed.publish(change)
        return change

    def clear_cache(self) -> None:
        self.weather_cache.clear()
        self.icon_cache.clear()

    def cancel_pending(self) -> int:
        pending = [future for future in self._inflight.values() if not future.done()]
        for future in pending:
            future.cancel()
        self._inflight.clear()
        return len(pending)

    # Helpers ------------------------------------------------------------
    async def _coalesce(self, key: str, factory: Callable[[], Awaitable[Any]]) -> Any:
        future = self._inflight.get(key)
        if future is None:
            future = asyncio.ensure_future(factory())
            self._inflight[key] = future
            future.add_done_callback(lambda done, key=key: self._forget(key, done))
        else:
            self._log.debug("Joining in-flight request for %s", key)
        # one caller giving up must not cancel the fetch the others wait on
        return await asyncio.shield(future)

    def _forget(self, key: str, future: asyncio.Future) -> None:
        if self._inflight.get(key) is future:
            del self._inflight[key]
        if not future.cancelled():
            # marks the exception as retrieved when every waiter went away
            future.exception()

    async def _fetch_and_store(self, location: Location, cache_key: str) -> WeatherSnapshot:
        snapshot = await asyncio.to_thread(self.client.fetch_weather, location.latitude, location.longitude)
        self.weather_cache.set(cache_key, snapshot)
        try:
            self.registry.persist_weather(location, snapshot.temperature, snapshot.feels_like, snapshot.description)
        except PersistenceError as exc:
            self._log.error("Could not persist weather for %s: %s", location.city_name, exc)
        if snapshot.description is not None:
            self.detect_change(location, snapshot.description)
        return snapshot

    async def _fetch_icon(self, icon_code: str, cache_key: str) -> Optional[bytes]:
        icon = await asyncio.to_thread(self.client.fetch_icon, icon_code)
        if icon:
            self.icon_cache.set(cache_key, icon)
        return icon


__all__ = ["WeatherOrchestrator", "PLACEHOLDER_ICON"]
