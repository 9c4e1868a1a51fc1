"""Registered locations: persistence, deduplication and change announcements."""
from __future__ import annotations

import logging
import math
from typing import Callable, Dict, List, Optional
from uuid import uuid4

from .entities import Location
from .events import EventChannel
from .exceptions import ValidationError
from .storage import LocationStore, utcnow

logger = logging.getLogger(__name__)


def dedupe_and_sort(locations: List[Location]) -> List[Location]:
    """Keep the first location per city name, then order by city name."""
    seen = set()
    unique: List[Location] = []
    for location in locations:
        if not location.city_name or location.city_name in seen:
            continue
        seen.add(location.city_name)
        unique.append(location)
    return sorted(unique, key=lambda item: item.city_name)


class LocationRegistry:
    """Owns the canonical :class:`Location` objects.

    Records are loaded once from the store and kept in storage order; every
    mutation is written through to the store. ``location_added`` and
    ``location_removed`` announce changes to listeners such as
    :class:`LocationListing`.
    """

    def __init__(self, store: LocationStore) -> None:
        self.store = store
        self.location_added: EventChannel[Location] = EventChannel("location_added")
        self.location_removed: EventChannel[Location] = EventChannel("location_removed")
        self._records: List[Location] = []
        self.reload()

    def reload(self) -> None:
        self._records = self.store.fetch_all()

    # Public API ---------------------------------------------------------
    def add(self, city_name: str, latitude: float, longitude: float) -> Location:
        if not city_name or not city_name.strip():
            raise ValidationError("City name cannot be empty.")
        latitude, longitude = validate_coordinates(latitude, longitude)

        existing = self.find_by_name(city_name)
        if existing is not None:
            logger.info("Location %s already registered as %s", city_name, existing.id)
            return existing

        location = Location(
            id=uuid4().hex,
            city_name=city_name,
            latitude=latitude,
            longitude=longitude,
            registration_date=utcnow(),
        )
        self.store.insert(location)
        self._records.append(location)
        logger.info("Registered location %s (%s, %s)", city_name, latitude, longitude)
        self.location_added.publish(location)
        return location

    def list(self) -> List[Location]:
        return dedupe_and_sort(self._records)

    def get(self, location_id: str) -> Optional[Location]:
        for location in self._records:
            if location.id == location_id:
                return location
        return None

    def find_by_name(self, city_name: str) -> Optional[Location]:
        for location in self._records:
            if location.city_name == city_name:
                return location
        return None

    def delete(self, location: Location) -> bool:
        removed = self.store.delete(location.id)
        self._records = [item for item in self._records if item.id != location.id]
        if removed:
            logger.info("Deleted location %s", location.city_name)
            self.location_removed.publish(location)
        return removed

    def persist_weather(
        self,
        location: Location,
        temperature: float,
        feels_like: float,
        description: Optional[str],
    ) -> None:
        location.temperature = temperature
        location.feels_like = feels_like
        location.weather_description = description
        self.store.update_weather(location.id, temperature, feels_like, description)

    def update_cached_weather(self, location: Location, value: Optional[str]) -> None:
        location.cached_weather = value
        self.store.update_cached_weather(location.id, value)

    def subscribe(self, callback: Callable[[Location], None]) -> Callable[[], None]:
        return self.location_added.subscribe(callback)

    def __len__(self) -> int:
        return len(self.list())


class LocationListing:
    """UI-facing, always sorted and deduplicated view of the registry.

    Seeded from :meth:`LocationRegistry.list` and then kept current from the
    registry's announcements instead of re-reading storage.
    """

    def __init__(self, registry: LocationRegistry) -> None:
        self._registry = registry
        self._by_name: Dict[str, Location] = {item.city_name: item for item in registry.list()}
        self._unsubscribers = [
            registry.location_added.subscribe(self._on_added),
            registry.location_removed.subscribe(self._on_removed),
        ]

    @property
    def locations(self) -> List[Location]:
        return sorted(self._by_name.values(), key=lambda item: item.city_name)

    def close(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []

    def _on_added(self, location: Location) -> None:
        self._by_name.setdefault(location.city_name, location)

    def _on_removed(self, location: Location) -> None:
        current = self._by_name.get(location.city_name)
        if current is None or current.id != location.id:
            return
        del self._by_name[location.city_name]
        # an older duplicate row may now be the first one for this name
        replacement = self._registry.find_by_name(location.city_name)
        if replacement is not None:
            self._by_name[location.city_name] = replacement

    def __len__(self) -> int:
        return len(self._by_name)

    def __getitem__(self, index: int) -> Location:
        return self.locations[index]


def validate_coordinates(latitude: float, longitude: float):
    """Return the coordinates as floats or raise :class:`ValidationError`."""
    try:
        lat = float(latitude)
        lon = float(longitude)
    except (TypeError, ValueError) as exc:
        raise ValidationError("Coordinates must be numbers.") from exc
    if not (math.isfinite(lat) and -90.0 <= lat <= 90.0):
        raise ValidationError(f"Latitude {latitude!r} is out of range.")
    if not (math.isfinite(lon) and -180.0 <= lon <= 180.0):
        raise ValidationError(f"Longitude {longitude!r} is out of range.")
    return lat, lon


__all__ = ["LocationRegistry", "LocationListing", "dedupe_and_sort", "validate_coordinates"]
