import httpx
import pytest

from compliance_gate.models.domain import Coordinate
from compliance_gate.services.providers.geocoding import ReverseGeocodingClient

POINT = Coordinate(27.3389, 88.6065)


def _client(handler, max_retries: int = 2) -> ReverseGeocodingClient:
    return ReverseGeocodingClient(
        base_url="http://geocoder.test/",
        max_retries=max_retries,
        backoff_seconds=0,
        transport=httpx.MockTransport(handler),
    )


def test_reverse_returns_display_name() -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"display_name": "Enchey, Gangtok, Sikkim"})

    assert _client(handler).reverse(POINT) == "Enchey, Gangtok, Sikkim"
    assert seen[0].url.path == "/reverse"
    assert seen[0].url.params["format"] == "jsonv2"
    assert seen[0].url.params["lat"] == "27.3389"


def test_reverse_returns_none_when_nothing_matches() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"error": "Unable to geocode"})

    assert _client(handler).reverse(POINT) is None


def test_server_errors_are_retried() -> None:
    calls = {"count": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        calls["count"] += 1
        if calls["count"] < 3:
            return httpx.Response(503)
        return httpx.Response(200, json={"display_name": "MG Marg"})

    assert _client(handler).reverse(POINT) == "MG Marg"
    assert calls["count"] == 3


def test_persistent_server_errors_raise_connection_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502)

    with pytest.raises(ConnectionError):
        _client(handler, max_retries=1).reverse(POINT)


def test_network_errors_raise_connection_error_after_retries() -> None:
    calls = {"count": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        calls["count"] += 1
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ConnectionError):
        _client(handler).reverse(POINT)
    assert calls["count"] == 3


def test_client_errors_are_not_retried() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400)

    with pytest.raises(httpx.HTTPStatusError):
        _client(handler).reverse(POINT)


def test_base_url_is_required(monkeypatch: pytest.MonkeyPatch) -> None:
    from compliance_gate.config import settings

    monkeypatch.setattr(settings, "geocoder_base_url", None)

    with pytest.raises(ValueError):
        ReverseGeocodingClient()
