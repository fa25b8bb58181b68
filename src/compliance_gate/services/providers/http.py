"""Shared httpx plumbing for JSON provider APIs."""

from __future__ import annotations

import logging
import time
from typing import Any, Mapping, Optional

import httpx

from ...config import settings

logger = logging.getLogger(__name__)


class RetryingJsonClient:
    """GETs JSON from a provider, retrying 5xx, timeouts and network errors with backoff.

    4xx responses are raised as ``httpx.HTTPStatusError`` for the caller to
    interpret. Exhausted retries raise ``ConnectionError``.
    """

    provider_name = "Provider"

    def __init__(
        self,
        base_url: str | None,
        timeout: float = 10.0,
        max_retries: int = 3,
        backoff_seconds: float = 1.0,
        transport: httpx.BaseTransport | None = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.base_url = (base_url or "").rstrip("/")
        if not self.base_url:
            raise ValueError(f"{self.provider_name} base URL is not configured.")
        self.timeout = timeout
        self.max_retries = max_retries
        self.backoff_seconds = backoff_seconds
        self._transport = transport
        self._headers = {"User-Agent": settings.app_name, **(headers or {})}

    def _get_client(self) -> httpx.Client:
        return httpx.Client(
            timeout=httpx.Timeout(self.timeout, connect=5.0),
            transport=self._transport,
            headers=self._headers,
        )

    def _get_json(self, path: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        url = f"{self.base_url}/{path.lstrip('/')}"
        client = self._get_client()
        try:
            attempt = 0
            while True:
                try:
                    response = client.get(url, params=params)
                    response.raise_for_status()
                    return response.json()
                except httpx.HTTPStatusError as e:
                    if e.response.status_code < 500:
                        raise
                    attempt += 1
                    if attempt > self.max_retries:
                        raise ConnectionError(
                            f"{self.provider_name} at {self.base_url} failed with HTTP {e.response.status_code}"
                        ) from e
                    reason = f"HTTP {e.response.status_code}"
                except (httpx.TimeoutException, httpx.NetworkError) as e:
                    attempt += 1
                    if attempt > self.max_retries:
                        raise ConnectionError(f"{self.provider_name} at {self.base_url} is not reachable: {e}") from e
                    reason = str(e)
                wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                logger.debug(
                    f"{self.provider_name} error, retrying in {wait_time:.1f}s "
                    f"(attempt {attempt}/{self.max_retries}): {reason}"
                )
                time.sleep(wait_time)
        finally:
            client.close()
