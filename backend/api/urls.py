"""API URL configuration."""
from __future__ import annotations

from django.urls import path

from backend.api.views import (
    CurrentWeatherView,
    IconView,
    LocationDetailView,
    LocationListView,
    LocationWeatherView,
)

urlpatterns = [
    path("locations", LocationListView.as_view(), name="locations"),
    path("locations/<str:location_id>", LocationDetailView.as_view(), name="location-detail"),
    path("locations/<str:location_id>/weather", LocationWeatherView.as_view(), name="location-weather"),
    path("icons/<str:icon_code>", IconView.as_view(), name="icon"),
    path("weather/current", CurrentWeatherView.as_view(), name="current-weather"),
]
