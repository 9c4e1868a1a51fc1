from __future__ import annotations

from datetime import datetime, timezone

import pytest

from weathernow.entities import Location
from weathernow.exceptions import PersistenceError, ValidationError
from weathernow.registry import LocationListing, LocationRegistry
from weathernow.storage import LocationStore


def names(locations):
    return [location.city_name for location in locations]


def legacy_row(location_id: str, city: str, latitude: float = 0.0) -> Location:
    return Location(
        id=location_id,
        city_name=city,
        latitude=latitude,
        longitude=0.0,
        registration_date=datetime(2024, 11, 28, tzinfo=timezone.utc),
    )


@pytest.mark.parametrize("city_name", ["", "   "])
def test_add_rejects_empty_city_name(registry, city_name):
    with pytest.raises(ValidationError) as excinfo:
        registry.add(city_name, 10.0, 10.0)

    assert str(excinfo.value) == "City name cannot be empty."
    assert registry.list() == []
    assert registry.store.fetch_all() == []


def test_add_rejects_out_of_range_coordinates(registry):
    with pytest.raises(ValidationError):
        registry.add("Nowhere", 91.0, 0.0)
    with pytest.raises(ValidationError):
        registry.add("Nowhere", 0.0, -181.0)

    assert registry.list() == []


def test_add_assigns_identity_and_defaults(registry):
    location = registry.add("Paris", 48.8566, 2.3522)

    assert location.id
    assert location.registration_date.tzinfo is not None
    assert location.temperature == 0.0
    assert location.feels_like == 0.0
    assert location.weather_description is None
    assert location.cached_weather is None


def test_same_city_registered_twice_keeps_the_first(registry):
    first = registry.add("Paris", 48.8566, 2.3522)
    second = registry.add("Paris", 1.0, 1.0)

    assert second is first
    assert names(registry.list()) == ["Paris"]
    assert registry.list()[0].latitude == 48.8566
    assert len(registry.store.fetch_all()) == 1


def test_dedup_key_is_case_sensitive(registry):
    registry.add("Paris", 48.8566, 2.3522)
    registry.add("paris", 48.8566, 2.3522)

    assert names(registry.list()) == ["Paris", "paris"]


@pytest.mark.parametrize(
    "order",
    [
        ["Tokyo", "Berlin", "Oslo", "Austin"],
        ["Austin", "Berlin", "Oslo", "Tokyo"],
        ["Oslo", "Tokyo", "Austin", "Berlin"],
    ],
)
def test_list_is_sorted_by_city_name(registry, order):
    for city in order:
        registry.add(city, 0.0, 0.0)

    assert names(registry.list()) == ["Austin", "Berlin", "Oslo", "Tokyo"]


def test_duplicate_rows_in_storage_keep_first_in_storage_order(store):
    store.insert(legacy_row("b-second-id", "Lima", latitude=1.0))
    store.insert(legacy_row("a-first-id", "Lima", latitude=2.0))
    store.insert(legacy_row("c-id", "Cairo"))

    registry = LocationRegistry(store)

    listed = registry.list()
    assert names(listed) == ["Cairo", "Lima"]
    assert listed[1].id == "b-second-id"


def test_locations_survive_a_reload(store, registry):
    location = registry.add("Paris", 48.8566, 2.3522)
    registry.persist_weather(location, 15.2, 14.8, "clear sky")
    registry.update_cached_weather(location, "clear sky")

    reloaded = LocationRegistry(store).get(location.id)

    assert reloaded.city_name == "Paris"
    assert reloaded.registration_date == location.registration_date
    assert (reloaded.temperature, reloaded.feels_like, reloaded.weather_description) == (15.2, 14.8, "clear sky")
    assert reloaded.cached_weather == "clear sky"


def test_persist_weather_updates_the_record_in_place(registry):
    location = registry.add("Oslo", 59.91, 10.75)

    registry.persist_weather(location, -3.5, -8.0, "light snow")

    assert location.temperature == -3.5
    assert registry.list()[0] is location
    assert registry.store.fetch(location.id).weather_description == "light snow"


def test_persist_weather_failure_raises_persistence_error(registry):
    location = registry.add("Oslo", 59.91, 10.75)
    with registry.store.session_scope() as session:
        session.execute("DROP TABLE locations")

    with pytest.raises(PersistenceError):
        registry.persist_weather(location, 1.0, 1.0, "mist")


def test_delete_removes_record_and_announces(registry):
    removed = []
    registry.location_removed.subscribe(removed.append)
    location = registry.add("Oslo", 59.91, 10.75)

    assert registry.delete(location) is True

    assert registry.list() == []
    assert registry.store.fetch(location.id) is None
    assert removed == [location]
    assert registry.delete(location) is False


def test_only_new_locations_are_announced(registry):
    announced = []
    unsubscribe = registry.subscribe(announced.append)

    paris = registry.add("Paris", 48.8566, 2.3522)
    registry.add("Paris", 48.8566, 2.3522)
    unsubscribe()
    registry.add("Oslo", 59.91, 10.75)

    assert announced == [paris]


def test_failing_subscriber_does_not_break_registration(registry):
    def broken(_location):
        raise RuntimeError("listener bug")

    registry.subscribe(broken)

    location = registry.add("Paris", 48.8566, 2.3522)

    assert registry.get(location.id) is location


def test_listing_tracks_registry_without_requerying(registry):
    registry.add("Tokyo", 35.68, 139.69)
    listing = LocationListing(registry)

    registry.add("Berlin", 52.52, 13.4)
    registry.add("Tokyo", 0.0, 0.0)
    oslo = registry.add("Oslo", 59.91, 10.75)

    assert names(listing.locations) == ["Berlin", "Oslo", "Tokyo"]
    assert listing[1] is oslo
    assert names(listing.locations) == names(registry.list())

    registry.delete(oslo)
    assert names(listing.locations) == names(registry.list()) == ["Berlin", "Tokyo"]

    listing.close()
    registry.add("Austin", 30.27, -97.74)
    assert len(listing) == 2


def test_listing_promotes_older_duplicate_after_delete(store):
    store.insert(legacy_row("first", "Lima", latitude=1.0))
    store.insert(legacy_row("second", "Lima", latitude=2.0))
    registry = LocationRegistry(store)
    listing = LocationListing(registry)

    registry.delete(registry.get("first"))

    assert [item.id for item in listing.locations] == ["second"]
    assert [item.id for item in registry.list()] == ["second"]


def test_in_memory_store_keeps_data_between_sessions():
    store = LocationStore("sqlite:///:memory:")
    registry = LocationRegistry(store)
    registry.add("Paris", 48.8566, 2.3522)

    assert names(LocationRegistry(store).list()) == ["Paris"]
    store.close()
