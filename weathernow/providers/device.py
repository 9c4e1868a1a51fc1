"""Sources of the device's current coordinates."""
from __future__ import annotations

from typing import Optional, Protocol

from ..entities import Coordinates
from ..exceptions import LocationUnavailable

LOCATION_NOT_AVAILABLE = "Current location not available."
LOCATION_ACCESS_DENIED = "Location access denied. Please enable it in Settings."


class CoordinatesProvider(Protocol):
    """Anything able to report where the device currently is."""

    def current_coordinates(self) -> Coordinates:
        """Return the coordinates or raise :class:`LocationUnavailable`."""
        ...


class StaticCoordinatesProvider:
    """Reports fixed coordinates, e.g. the ones a client sent along with a request."""

    def __init__(
        self,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        *,
        permission_denied: bool = False,
    ) -> None:
        self.latitude = latitude
        self.longitude = longitude
        self.permission_denied = permission_denied

    def current_coordinates(self) -> Coordinates:
        if self.permission_denied:
            raise LocationUnavailable(LOCATION_ACCESS_DENIED)
        if self.latitude is None or self.longitude is None:
            raise LocationUnavailable(LOCATION_NOT_AVAILABLE)
        return Coordinates(latitude=self.latitude, longitude=self.longitude)


__all__ = [
    "CoordinatesProvider",
    "StaticCoordinatesProvider",
    "LOCATION_NOT_AVAILABLE",
    "LOCATION_ACCESS_DENIED",
]
