from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import urlparse

import requests
from requests import Response


logger = logging.getLogger(__name__)


class WeatherClientError(RuntimeError):
    """Base error for OpenWeather requests."""

    message = "The weather request failed."

    def __init__(self, detail: Optional[str] = None) -> None:
        self.detail = detail
        super().__init__(self._format(detail))

    def _format(self, detail: Optional[str]) -> str:
        return self.message


class InvalidRequest(WeatherClientError):
    message = "The request URL is invalid."


class NetworkError(WeatherClientError):
    message = "Network error occurred"

    def _format(self, detail: Optional[str]) -> str:
        return f"{self.message}: {detail}" if detail else self.message


class InvalidResponse(WeatherClientError):
    message = "The server response was invalid."

    def __init__(self, status_code: Optional[int] = None) -> None:
        self.status_code = status_code
        super().__init__(None if status_code is None else f"HTTP {status_code}")


class NoData(WeatherClientError):
    message = "No data was received from the server."


class DecodingError(WeatherClientError):
    message = "Failed to decode the response"

    def _format(self, detail: Optional[str]) -> str:
        return f"{self.message}: {detail}" if detail else self.message


@dataclass
class RequestConfig:
    timeout: float = 10.0
    log_responses: bool = False


class OpenWeatherEndpoint:
    """Base class for OpenWeather HTTP calls.

    Maps transport, status and empty-body failures onto the
    :class:`WeatherClientError` family.
    """

    def __init__(
        self,
        api_key: str,
        session: Optional[requests.Session] = None,
        request_config: Optional[RequestConfig] = None,
    ) -> None:
        self.api_key = api_key
        self.request_config = request_config or RequestConfig()
        self.session = session or requests.Session()
        self._log = logging.getLogger(self.__class__.__name__)

    def _handle_response(self, response: Response) -> Response:
        if not 200 <= response.status_code <= 299:
            self._log.error("OpenWeather returned %s: %s", response.status_code, response.text[:200])
            raise InvalidResponse(response.status_code)
        if not response.content:
            raise NoData()
        return response

    def _request(self, url: str, params: dict) -> Response:
        try:
            response = self.session.get(url, params=params, timeout=self.request_config.timeout)
        except requests.Timeout as exc:
            self._log.error("Request timed out", exc_info=exc)
            raise NetworkError("request timed out") from exc
        except requests.RequestException as exc:
            self._log.error("Request failed", exc_info=exc)
            raise NetworkError(str(exc) or exc.__class__.__name__) from exc
        self._log_response(response)
        return self._handle_response(response)

    def _json(self, response: Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            self._log.error("Failed to decode JSON", exc_info=exc)
            raise DecodingError("invalid json") from exc

    def _log_response(self, response: Response) -> None:
        if not self.request_config.log_responses:
            return
        # The query string carries the API key; only the path is logged.
        self._log.info(
            "OpenWeather request",
            extra={"path": urlparse(response.url or "").path, "status": response.status_code, "body": response.text[:500]},
        )


__all__ = [
    "OpenWeatherEndpoint",
    "RequestConfig",
    "WeatherClientError",
    "InvalidRequest",
    "NetworkError",
    "InvalidResponse",
    "NoData",
    "DecodingError",
]
