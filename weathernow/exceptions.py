from __future__ import annotations


class WeatherNowError(RuntimeError):
    """Base error for the weather core."""


class ConfigurationError(WeatherNowError):
    """Raised when a required setting is missing or malformed."""


class ValidationError(WeatherNowError):
    """Raised for bad user input, e.g. an empty city name."""


class PersistenceError(WeatherNowError):
    """Raised when the local store cannot commit a change."""


class LocationUnavailable(WeatherNowError):
    """Raised when the device coordinates cannot be determined."""


__all__ = [
    "WeatherNowError",
    "ConfigurationError",
    "ValidationError",
    "PersistenceError",
    "LocationUnavailable",
]
