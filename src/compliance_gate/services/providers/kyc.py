"""Identity (KYC) provider contract and its HTTP client."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Protocol
from urllib.parse import quote

import httpx

from ...config import settings
from .http import RetryingJsonClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class KycResult:
    """Factors reported by the provider for one identity."""

    document_verified: bool
    video_kyc_completed: bool
    biometric_verified: bool
    documents_uploaded: tuple[str, ...] = field(default_factory=tuple)

    @property
    def complete(self) -> bool:
        return (
            self.document_verified
            and self.video_kyc_completed
            and self.biometric_verified
            and bool(self.documents_uploaded)
        )

    def to_detail(self) -> dict:
        return {
            "document_verified": self.document_verified,
            "video_kyc_completed": self.video_kyc_completed,
            "biometric_verified": self.biometric_verified,
            "documents_uploaded": list(self.documents_uploaded),
        }

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "KycResult":
        return cls(
            document_verified=payload.get("document_verified") is True,
            video_kyc_completed=payload.get("video_kyc_completed") is True,
            biometric_verified=payload.get("biometric_verified") is True,
            documents_uploaded=tuple(str(doc) for doc in payload.get("documents_uploaded") or ()),
        )


class KycProvider(Protocol):
    def fetch_status(self, identity_id: str) -> KycResult:
        ...


class KycServiceClient(RetryingJsonClient):
    """Reads verification factors from ``GET {base}/kyc/{identity_id}``.

    An identity the provider has never seen (404) has no factors.
    """

    provider_name = "KYC provider"

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float = 10.0,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        key = api_key or settings.kyc_api_key
        super().__init__(
            base_url or settings.kyc_base_url,
            timeout=timeout,
            max_retries=settings.kyc_max_retries if max_retries is None else max_retries,
            backoff_seconds=settings.kyc_backoff_seconds if backoff_seconds is None else backoff_seconds,
            transport=transport,
            headers={"Authorization": f"Bearer {key}"} if key else None,
        )

    def fetch_status(self, identity_id: str) -> KycResult:
        try:
            payload = self._get_json(f"kyc/{quote(identity_id, safe='')}")
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                logger.info(f"KYC provider has no record for {identity_id}")
                return KycResult(False, False, False)
            raise
        return KycResult.from_payload(payload)
