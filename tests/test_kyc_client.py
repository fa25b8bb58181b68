import httpx
import pytest

from compliance_gate.services.providers.kyc import KycResult, KycServiceClient


def _client(handler, max_retries: int = 2) -> KycServiceClient:
    return KycServiceClient(
        base_url="http://kyc.test/v1/",
        api_key="secret-token",
        max_retries=max_retries,
        backoff_seconds=0,
        transport=httpx.MockTransport(handler),
    )


def test_fetch_status_reads_factors() -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={
                "document_verified": True,
                "video_kyc_completed": True,
                "biometric_verified": True,
                "documents_uploaded": ["aadhaar_front", "aadhaar_back", "selfie"],
            },
        )

    result = _client(handler).fetch_status("user 1")

    assert result.complete is True
    assert result.documents_uploaded == ("aadhaar_front", "aadhaar_back", "selfie")
    assert seen[0].url.raw_path == b"/v1/kyc/user%201"
    assert seen[0].headers["Authorization"] == "Bearer secret-token"


def test_only_literal_true_counts_as_verified() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={"document_verified": "yes", "video_kyc_completed": True, "biometric_verified": 1},
        )

    result = _client(handler).fetch_status("user-1")

    assert result == KycResult(False, True, False, ())
    assert result.complete is False


def test_unknown_identity_has_no_factors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"detail": "not found"})

    assert _client(handler).fetch_status("user-1") == KycResult(False, False, False)


def test_provider_outage_raises_connection_error() -> None:
    calls = {"count": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        calls["count"] += 1
        return httpx.Response(503)

    with pytest.raises(ConnectionError):
        _client(handler, max_retries=1).fetch_status("user-1")
    assert calls["count"] == 2


def test_rejected_credentials_are_not_retried() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401)

    with pytest.raises(httpx.HTTPStatusError):
        _client(handler).fetch_status("user-1")


def test_base_url_is_required(monkeypatch: pytest.MonkeyPatch) -> None:
    from compliance_gate.config import settings

    monkeypatch.setattr(settings, "kyc_base_url", None)

    with pytest.raises(ValueError):
        KycServiceClient()


@pytest.mark.parametrize("base_url, wired", [("http://kyc.test", True), (None, False)])
def test_service_wiring_follows_kyc_setting(monkeypatch: pytest.MonkeyPatch, base_url, wired) -> None:
    from compliance_gate.api import dependencies
    from compliance_gate.config import settings
    from compliance_gate.data import zones_repository
    from compliance_gate.services.zones.registry import StaticZoneRegistry

    monkeypatch.setattr(settings, "kyc_base_url", base_url)
    monkeypatch.setattr(settings, "geocoder_base_url", None)
    monkeypatch.setattr(dependencies, "get_supabase_client", lambda: None)
    monkeypatch.setattr(zones_repository, "load_zone_registry", lambda: StaticZoneRegistry())

    service = dependencies.build_compliance_service()

    assert isinstance(service.kyc_provider, KycServiceClient) is wired
