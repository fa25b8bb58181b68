"""HTTP client for reverse geocoding during location verification."""

from __future__ import annotations

from typing import Optional, Protocol

import httpx

from ...config import settings
from ...models.domain import Coordinate
from .http import RetryingJsonClient


class Geocoder(Protocol):
    def reverse(self, point: Coordinate) -> Optional[str]:
        ...


class ReverseGeocodingClient(RetryingJsonClient):
    """Nominatim-compatible ``/reverse`` client."""

    provider_name = "Geocoder"

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float = 10.0,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        super().__init__(
            base_url or settings.geocoder_base_url,
            timeout=timeout,
            max_retries=settings.geocoder_max_retries if max_retries is None else max_retries,
            backoff_seconds=settings.geocoder_backoff_seconds if backoff_seconds is None else backoff_seconds,
            transport=transport,
        )

    def reverse(self, point: Coordinate) -> Optional[str]:
        """Return a display address for the point, or None if the service has no match."""

        data = self._get_json("reverse", {"format": "jsonv2", "lat": point.latitude, "lon": point.longitude})
        if "error" in data:
            return None
        return data.get("display_name")
