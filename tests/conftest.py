from __future__ import annotations

import pytest

from weather_fakes import FakeWeatherClient
from weathernow.registry import LocationRegistry
from weathernow.services.weather import WeatherOrchestrator
from weathernow.storage import LocationStore


@pytest.fixture
def database_url(tmp_path) -> str:
    return f"sqlite:///{tmp_path / 'weathernow.db'}"


@pytest.fixture
def store(database_url):
    store = LocationStore(database_url)
    yield store
    store.close()


@pytest.fixture
def registry(store) -> LocationRegistry:
    return LocationRegistry(store)


@pytest.fixture
def client() -> FakeWeatherClient:
    return FakeWeatherClient()


@pytest.fixture
def orchestrator(client, registry) -> WeatherOrchestrator:
    return WeatherOrchestrator(client=client, registry=registry)
