from __future__ import annotations

import json
from dataclasses import replace

import httpx
import pytest

from src.checkout_api.handler import CheckoutRequest, CheckoutRequestHandler
from src.config import CheckoutSettings
from src.utils.status import ErrorCode

SHOP_ORIGIN = "https://shop.example"
SESSION_URL = "https://checkout.stripe.test/c/cs_test_1"


def _body(items=None) -> bytes:
    if items is None:
        items = [{"id": "rise-cushion-sand", "quantity": 2}]
    return json.dumps({"items": items}).encode()


def _request(method: str = "POST", body: bytes | None = None, **headers: str) -> CheckoutRequest:
    header_map = {"Origin": SHOP_ORIGIN, "X-Forwarded-Proto": "https"}
    header_map.update({key.replace("_", "-"): value for key, value in headers.items()})
    return CheckoutRequest(method=method, headers=header_map, body=_body() if body is None else body)


class _Provider:
    """Mock provider endpoint counting calls."""

    def __init__(self, status: int = 200, payload=None) -> None:
        self.status = status
        self.payload = {"id": "cs_test_1", "url": SESSION_URL} if payload is None else payload
        self.calls = 0

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls += 1
        return httpx.Response(self.status, json=self.payload)


def _handler(settings: CheckoutSettings, provider: _Provider) -> CheckoutRequestHandler:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(provider))
    return CheckoutRequestHandler(settings_provider=lambda: settings, http_client=http_client)


def _error(response) -> dict:
    return response.to_dict()["error"]


@pytest.mark.asyncio
async def test_valid_cart_returns_session_url(settings: CheckoutSettings) -> None:
    provider = _Provider()
    response = await _handler(settings, provider).handle(_request())

    assert response.status_code == 200
    assert response.to_dict() == {"url": SESSION_URL}
    assert response.headers["Access-Control-Allow-Origin"] == SHOP_ORIGIN
    assert response.headers["Vary"] == "Origin"
    assert response.headers["Access-Control-Allow-Methods"] == "POST, OPTIONS"
    assert response.headers["Access-Control-Allow-Headers"] == "Content-Type"
    assert provider.calls == 1


@pytest.mark.asyncio
async def test_provider_failure_returns_502(settings: CheckoutSettings) -> None:
    provider = _Provider(status=500, payload={"error": {"message": "boom"}})
    response = await _handler(settings, provider).handle(_request())

    assert response.status_code == 502
    assert _error(response) == {
        "code": "provider_checkout_failed",
        "message": "Unable to create payment session.",
        "type": "system_error",
    }
    assert response.headers["Access-Control-Allow-Origin"] == SHOP_ORIGIN


@pytest.mark.asyncio
async def test_provider_without_url_returns_invalid_response(settings: CheckoutSettings) -> None:
    response = await _handler(settings, _Provider(payload={"id": "cs_1"})).handle(_request())

    assert response.status_code == 502
    assert _error(response)["code"] == ErrorCode.PROVIDER_INVALID_RESPONSE.value


@pytest.mark.asyncio
async def test_preflight_returns_204_without_body(settings: CheckoutSettings) -> None:
    provider = _Provider()
    response = await _handler(settings, provider).handle(_request("OPTIONS", body=b""))

    assert response.status_code == 204
    assert response.to_dict() is None
    assert response.to_json() == ""
    assert response.headers["Access-Control-Allow-Origin"] == SHOP_ORIGIN
    assert response.headers["Access-Control-Allow-Methods"] == "POST, OPTIONS"
    assert provider.calls == 0


@pytest.mark.asyncio
async def test_preflight_from_unlisted_origin_is_forbidden(settings: CheckoutSettings) -> None:
    response = await _handler(settings, _Provider()).handle(
        _request("OPTIONS", body=b"", Origin="https://evil.example")
    )

    assert response.status_code == 403
    assert _error(response)["code"] == "origin_not_allowed"
    assert "Access-Control-Allow-Origin" not in response.headers


@pytest.mark.asyncio
@pytest.mark.parametrize("method", ["GET", "PUT", "DELETE", "PATCH"])
async def test_other_methods_not_allowed(settings: CheckoutSettings, method: str) -> None:
    response = await _handler(settings, _Provider()).handle(_request(method))

    assert response.status_code == 405
    assert _error(response)["code"] == "method_not_allowed"
    assert response.headers["Access-Control-Allow-Origin"] == SHOP_ORIGIN


@pytest.mark.asyncio
async def test_plain_http_rejected_in_production(settings: CheckoutSettings) -> None:
    provider = _Provider()
    response = await _handler(settings, provider).handle(_request(X_Forwarded_Proto="http"))

    assert response.status_code == 400
    assert _error(response)["code"] == "https_required"
    assert provider.calls == 0


@pytest.mark.asyncio
async def test_plain_http_allowed_outside_production(settings: CheckoutSettings) -> None:
    dev = replace(settings, production=False)
    response = await _handler(dev, _Provider()).handle(_request(X_Forwarded_Proto="http"))

    assert response.status_code == 200


@pytest.mark.asyncio
async def test_missing_forwarded_proto_passes_https_check(settings: CheckoutSettings) -> None:
    request = CheckoutRequest(method="POST", headers={"Origin": SHOP_ORIGIN}, body=_body())
    response = await _handler(settings, _Provider()).handle(request)

    assert response.status_code == 200


@pytest.mark.asyncio
async def test_misconfiguration_is_reported_before_validation(settings: CheckoutSettings) -> None:
    broken = replace(settings, stripe_secret_key=None, cancel_url="")
    response = await _handler(broken, _Provider()).handle(_request(body=b"not json"))

    assert response.status_code == 500
    error = _error(response)
    assert error["code"] == "server_misconfigured"
    assert error["type"] == "system_error"
    assert "STRIPE_SECRET_KEY" in error["message"]
    assert "CHECKOUT_CANCEL_URL" in error["message"]


@pytest.mark.asyncio
async def test_empty_allow_list_is_server_error(settings: CheckoutSettings) -> None:
    response = await _handler(replace(settings, allowed_origins=()), _Provider()).handle(_request())

    assert response.status_code == 500
    assert _error(response)["code"] == "server_origin_misconfigured"
    assert "Access-Control-Allow-Origin" not in response.headers


@pytest.mark.asyncio
async def test_same_origin_request_has_no_echo(settings: CheckoutSettings) -> None:
    request = CheckoutRequest(method="POST", headers={}, body=_body())
    response = await _handler(settings, _Provider()).handle(request)

    assert response.status_code == 200
    assert "Access-Control-Allow-Origin" not in response.headers
    assert "Vary" not in response.headers


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [b"", b"{", b"\xff\xfe", b"[]"])
async def test_undecodable_or_non_object_body_is_invalid_payload(settings: CheckoutSettings, body: bytes) -> None:
    response = await _handler(settings, _Provider()).handle(_request(body=body))

    assert response.status_code == 400
    assert _error(response)["code"] == "invalid_payload"


@pytest.mark.asyncio
async def test_deeply_nested_body_is_invalid_payload(settings: CheckoutSettings) -> None:
    provider = _Provider()
    body = b"[" * 100000 + b"]" * 100000
    response = await _handler(settings, provider).handle(_request(body=body))

    assert response.status_code == 400
    assert _error(response) == {
        "code": "invalid_payload",
        "message": "Request body must be a JSON object.",
        "type": "user_error",
    }
    assert response.headers["Access-Control-Allow-Origin"] == SHOP_ORIGIN
    assert provider.calls == 0


@pytest.mark.asyncio
async def test_validation_error_keeps_origin_echo(settings: CheckoutSettings) -> None:
    provider = _Provider()
    body = _body([{"id": "rise-cushion-sand", "quantity": 1, "price": 0.5}])
    response = await _handler(settings, provider).handle(_request(body=body))

    assert response.status_code == 400
    assert _error(response) == {
        "code": "tampered_payload",
        "message": "items[0].price does not match the product catalog.",
        "type": "user_error",
    }
    assert response.headers["Access-Control-Allow-Origin"] == SHOP_ORIGIN
    assert provider.calls == 0


@pytest.mark.asyncio
async def test_unclassified_error_is_internal_error(settings: CheckoutSettings) -> None:
    class _ExplodingClient:
        async def __aenter__(self):
            return self

        async def __aexit__(self, *exc):
            return None

        async def create_session(self, items):
            raise KeyError("secret internal detail")

    handler = CheckoutRequestHandler(
        settings_provider=lambda: settings,
        session_client_factory=lambda _settings: _ExplodingClient(),
    )
    response = await handler.handle(_request())

    assert response.status_code == 500
    assert _error(response) == {
        "code": "internal_error",
        "message": "An unexpected server error occurred.",
        "type": "system_error",
    }
    assert response.headers["Access-Control-Allow-Origin"] == SHOP_ORIGIN


@pytest.mark.asyncio
async def test_settings_failure_is_internal_error() -> None:
    def _broken_settings() -> CheckoutSettings:
        raise ValueError("bad env")

    handler = CheckoutRequestHandler(settings_provider=_broken_settings)
    response = await handler.handle(_request())

    assert response.status_code == 500
    assert _error(response)["code"] == "internal_error"
    assert "Access-Control-Allow-Origin" not in response.headers
