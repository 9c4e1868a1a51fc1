from __future__ import annotations

import pytest

from weather_fakes import ICON_BYTES, weather_payload
from weathernow.config import WeatherNowSettings
from weathernow.entities import GeocodingResult
from weathernow.providers.base import NetworkError
from weathernow.providers.device import LOCATION_ACCESS_DENIED, LOCATION_NOT_AVAILABLE, StaticCoordinatesProvider
from weathernow.services.alerts import AlertNotifier
from weathernow.services.facade import ALREADY_REGISTERED, REGISTERED, WeatherFacade, build_facade
from weathernow.services.weather import PLACEHOLDER_ICON


class FakeGeocoder:
    def __init__(self, matches=None, error=None) -> None:
        self.matches = matches or {}
        self.error = error
        self.queries = []

    def geocode(self, city_name):
        self.queries.append(city_name)
        if self.error is not None:
            raise self.error
        return self.matches.get(city_name)


@pytest.fixture
def geocoder() -> FakeGeocoder:
    return FakeGeocoder({"Paris": GeocodingResult(name="Paris", latitude=48.8566, longitude=2.3522, country="FR")})


@pytest.fixture
def facade(registry, orchestrator, geocoder) -> WeatherFacade:
    return WeatherFacade(registry=registry, orchestrator=orchestrator, geocoder=geocoder)


def test_register_location_reports_outcome(facade):
    assert facade.register_location("Paris", 48.8566, 2.3522) == (True, REGISTERED)
    assert facade.register_location("Paris", 48.8566, 2.3522) == (True, ALREADY_REGISTERED)
    assert facade.register_location("", 1.0, 1.0) == (False, "City name cannot be empty.")
    assert [location.city_name for location in facade.list_locations()] == ["Paris"]


def test_register_location_reports_storage_failure(facade, registry):
    with registry.store.session_scope() as session:
        session.execute("DROP TABLE locations")

    ok, message = facade.register_location("Oslo", 59.91, 10.75)

    assert ok is False
    assert message.startswith("Failed to save location:")
    assert facade.list_locations() == []


def test_location_added_notifications(facade):
    added = []
    facade.subscribe_location_added(added.append)

    facade.register_location("Paris", 48.8566, 2.3522)
    facade.register_location("Paris", 48.8566, 2.3522)

    assert [location.city_name for location in added] == ["Paris"]


@pytest.mark.asyncio
async def test_register_city_geocodes_first(facade, geocoder):
    ok, message = await facade.register_city("Paris")

    assert (ok, message) == (True, REGISTERED)
    assert geocoder.queries == ["Paris"]
    location = facade.list_locations()[0]
    assert (location.latitude, location.longitude) == (48.8566, 2.3522)


@pytest.mark.asyncio
async def test_register_city_without_match(facade):
    assert await facade.register_city("Atlantis") == (False, "Could not find coordinates for Atlantis.")
    assert facade.list_locations() == []


@pytest.mark.asyncio
async def test_register_city_geocoding_failure(facade, geocoder):
    geocoder.error = NetworkError("offline")

    assert await facade.register_city("Paris") == (False, "Network error occurred: offline")


@pytest.mark.asyncio
async def test_register_city_rejects_empty_name_without_geocoding(facade, geocoder):
    assert await facade.register_city("  ") == (False, "City name cannot be empty.")
    assert geocoder.queries == []


@pytest.mark.asyncio
async def test_delete_location_evicts_cached_weather(facade, client):
    facade.register_location("Paris", 48.8566, 2.3522)
    paris = facade.list_locations()[0]
    await facade.get_weather(paris)

    assert facade.delete_location(paris.id) is True
    assert facade.orchestrator.weather_cache.get("weather:Paris") is None
    assert facade.delete_location(paris.id) is False


@pytest.mark.asyncio
async def test_refresh_all_covers_every_listed_location(facade, client):
    for city in ("Rome", "Oslo"):
        facade.register_location(city, 0.0, 0.0)

    reports = await facade.refresh_all()

    assert [report.city_name for report in reports] == ["Oslo", "Rome"]


@pytest.mark.asyncio
async def test_current_location_weather(facade, client):
    current = await facade.current_location_weather(StaticCoordinatesProvider(48.85, 2.35))

    assert current.error is None
    assert current.city_name == "Paris"
    assert current.icon == ICON_BYTES
    assert current.as_dict()["latitude"] == 48.85


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "provider, message",
    [
        (StaticCoordinatesProvider(), LOCATION_NOT_AVAILABLE),
        (StaticCoordinatesProvider(1.0, 1.0, permission_denied=True), LOCATION_ACCESS_DENIED),
    ],
)
async def test_current_location_unavailable(facade, client, provider, message):
    current = await facade.current_location_weather(provider)

    assert current.snapshot is None
    assert current.error == message
    assert current.icon == PLACEHOLDER_ICON
    assert client.weather_calls == []


@pytest.mark.asyncio
async def test_current_location_fetch_failure(facade, client):
    client.error = NetworkError("offline")

    current = await facade.current_location_weather(StaticCoordinatesProvider(1.0, 1.0))

    assert current.snapshot is None
    assert current.city_name == "Unknown"
    assert current.error == "Network error occurred: offline"


def test_alert_notifier_formats_weather_changes(facade, registry):
    delivered = []
    notifier = AlertNotifier(deliver=delivered.append).attach(facade.orchestrator.weather_changed)
    paris = registry.add("Paris", 48.8566, 2.3522)

    facade.orchestrator.detect_change(paris, "clear sky")
    notifier.detach()
    facade.orchestrator.detect_change(paris, "light rain")

    assert len(delivered) == 1
    assert delivered[0].title == "Weather Alert"
    assert delivered[0].body == "Significant weather change detected in Paris: Unknown → clear sky"
    assert notifier.delivered == delivered


@pytest.mark.asyncio
async def test_build_facade_wires_http_services(requests_mock, tmp_path):
    settings = WeatherNowSettings(
        api_key="test-key",
        weather_url="https://weather.test/data/2.5/weather",
        icon_url="https://icons.test/img/wn",
        geocoding_url="https://weather.test/geo/1.0/direct",
        database_url=f"sqlite:///{tmp_path / 'app.db'}",
    )
    requests_mock.get(settings.geocoding_url, json=[{"name": "Paris", "lat": 48.8566, "lon": 2.3522, "country": "FR"}])
    requests_mock.get(settings.weather_url, json=weather_payload())
    requests_mock.get("https://icons.test/img/wn/01d@2x.png", content=ICON_BYTES)
    facade = build_facade(settings)

    assert await facade.register_city("Paris") == (True, REGISTERED)
    report = await facade.get_weather(facade.list_locations()[0])

    assert report.temperature == 15.2
    assert report.icon == ICON_BYTES
    assert facade.notifier.delivered[0].body.endswith("Unknown → clear sky")
