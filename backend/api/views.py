"""REST API views over the WeatherNow facade."""
from __future__ import annotations

import inspect
from functools import lru_cache
from typing import Any, Callable, Optional

from django.conf import settings
from django.http import HttpResponse
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from weathernow.entities import Location
from weathernow.exceptions import ValidationError
from weathernow.providers.device import StaticCoordinatesProvider
from weathernow.registry import validate_coordinates
from weathernow.services.facade import ALREADY_REGISTERED, WeatherFacade, build_facade
from weathernow.services.loop import EventLoopThread


@lru_cache(maxsize=1)
def get_event_loop_thread() -> EventLoopThread:
    return EventLoopThread().start()


@lru_cache(maxsize=1)
def get_weather_facade() -> WeatherFacade:
    return build_facade(settings.WEATHERNOW)


def on_loop(func: Callable[..., Any], *args: Any) -> Any:
    """Run a facade method on the shared event loop and wait for its result."""
    runner = get_event_loop_thread()
    if inspect.iscoroutinefunction(func):
        return runner.run(func(*args))
    return runner.call(func, *args)


def serialize_location(location: Location) -> dict:
    return {
        "id": location.id,
        "city_name": location.city_name,
        "latitude": location.latitude,
        "longitude": location.longitude,
        "registration_date": location.registration_date.isoformat().replace("+00:00", "Z"),
        "temperature": location.temperature,
        "feels_like": location.feels_like,
        "weather_description": location.weather_description,
    }


def _parse_float(value) -> Optional[float]:
    if value is None or value == "":
        return None
    return float(value)


def _bad_request(detail: str) -> Response:
    return Response({"detail": detail}, status=status.HTTP_400_BAD_REQUEST)


class LocationListView(APIView):
    """List registered locations or register a new one."""

    permission_classes = [AllowAny]

    def get(self, request, *args, **kwargs):  # noqa: D401
        """Return the registered locations sorted by city name."""
        locations = on_loop(get_weather_facade().list_locations)
        return Response([serialize_location(item) for item in locations], status=status.HTTP_200_OK)

    def post(self, request, *args, **kwargs):  # noqa: D401
        """Register a city; coordinates are geocoded when omitted."""
        if not isinstance(request.data, dict):
            return _bad_request("Request body must be a JSON object.")
        facade = get_weather_facade()
        city_name = str(request.data.get("city_name") or "")
        try:
            latitude = _parse_float(request.data.get("latitude"))
            longitude = _parse_float(request.data.get("longitude"))
        except (TypeError, ValueError):
            return _bad_request("latitude and longitude must be valid floating point numbers")

        if latitude is None and longitude is None:
            ok, message = on_loop(facade.register_city, city_name)
        elif latitude is None or longitude is None:
            return _bad_request("latitude and longitude must be provided together")
        else:
            ok, message = on_loop(facade.register_location, city_name, latitude, longitude)

        if not ok:
            return _bad_request(message)
        location = on_loop(facade.registry.find_by_name, city_name)
        code = status.HTTP_200_OK if message == ALREADY_REGISTERED else status.HTTP_201_CREATED
        return Response({"detail": message, "location": serialize_location(location)}, status=code)


class LocationDetailView(APIView):
    permission_classes = [AllowAny]

    def get(self, request, location_id: str, *args, **kwargs):
        location = on_loop(get_weather_facade().get_location, location_id)
        if location is None:
            return Response({"detail": "Not found"}, status=status.HTTP_404_NOT_FOUND)
        return Response(serialize_location(location), status=status.HTTP_200_OK)

    def delete(self, request, location_id: str, *args, **kwargs):
        if not on_loop(get_weather_facade().delete_location, location_id):
            return Response({"detail": "Not found"}, status=status.HTTP_404_NOT_FOUND)
        return Response(status=status.HTTP_204_NO_CONTENT)


class LocationWeatherView(APIView):
    """Weather for a registered location, falling back to stored values."""

    permission_classes = [AllowAny]

    def get(self, request, location_id: str, *args, **kwargs):  # noqa: D401
        """Return the weather report for the location."""
        facade = get_weather_facade()
        location = on_loop(facade.get_location, location_id)
        if location is None:
            return Response({"detail": "Not found"}, status=status.HTTP_404_NOT_FOUND)
        report = on_loop(facade.get_weather, location)
        payload = report.as_dict()
        payload["location_id"] = location.id
        return Response(payload, status=status.HTTP_200_OK)


class IconView(APIView):
    permission_classes = [AllowAny]

    def get(self, request, icon_code: str, *args, **kwargs):
        icon = on_loop(get_weather_facade().get_icon, icon_code)
        return HttpResponse(icon, content_type="image/png")


class CurrentWeatherView(APIView):
    """Weather for the coordinates the device reports."""

    permission_classes = [AllowAny]

    def get(self, request, *args, **kwargs):  # noqa: D401
        """Return current weather for the ``lat``/``lon`` query parameters."""
        try:
            latitude, longitude = validate_coordinates(request.query_params["lat"], request.query_params["lon"])
        except KeyError:
            return _bad_request("lat and lon query parameters are required")
        except ValidationError as exc:
            return _bad_request(str(exc))

        provider = StaticCoordinatesProvider(latitude, longitude)
        current = on_loop(get_weather_facade().current_location_weather, provider)
        if current.snapshot is None:
            return Response({"detail": current.error}, status=status.HTTP_502_BAD_GATEWAY)
        return Response(current.as_dict(), status=status.HTTP_200_OK)
