"""Address → coordinates lookup against the Google Geocoding API.

One outbound call per lookup, with no retry and no caching.
"""
import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from lan_linkup.config import settings

logger = logging.getLogger(__name__)

# Provider statuses that mean "the address is the problem", not the service.
_UNRESOLVABLE_STATUSES = {"ZERO_RESULTS", "INVALID_REQUEST"}


class GeocodingError(Exception):
    """The address could not be resolved to a location."""


class GeocodingUnavailableError(Exception):
    """The geocoding provider could not be reached or refused the request."""


@dataclass(frozen=True)
class Coordinates:
    latitude: float
    longitude: float


class Geocoder:
    def __init__(self, api_key: str, url: str, timeout: float, transport: Optional[httpx.BaseTransport] = None):
        self.api_key = api_key
        self.url = url
        self.timeout = timeout
        self.transport = transport

    def geocode(self, address: str) -> Coordinates:
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.get(self.url, params={"address": address, "key": self.api_key})
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Geocoding request failed for %r: %s", address, exc)
            raise GeocodingUnavailableError("Geocoding service unavailable") from exc
        if not isinstance(data, dict):
            logger.warning("Geocoding provider returned a non-object body for %r", address)
            raise GeocodingUnavailableError("Malformed geocoding response")

        provider_status = data.get("status", "OK")
        results = data.get("results") or []
        if provider_status in _UNRESOLVABLE_STATUSES or (provider_status == "OK" and not results):
            logger.warning("Address %r could not be geocoded (%s)", address, provider_status)
            raise GeocodingError(f"Could not locate address: {address}")
        if provider_status != "OK":
            logger.warning("Geocoding provider returned %s for %r", provider_status, address)
            raise GeocodingUnavailableError(f"Geocoding service error: {provider_status}")

        try:
            location = results[0]["geometry"]["location"]
            return Coordinates(latitude=float(location["lat"]), longitude=float(location["lng"]))
        except (KeyError, TypeError, ValueError) as exc:
            raise GeocodingUnavailableError("Malformed geocoding response") from exc


_geocoder = Geocoder(
    api_key=settings.GOOGLE_MAPS_API_KEY,
    url=settings.GEOCODING_URL,
    timeout=settings.GEOCODING_TIMEOUT_SECONDS,
)


def get_geocoder() -> Geocoder:
    """FastAPI dependency — overridden in tests."""
    return _geocoder
