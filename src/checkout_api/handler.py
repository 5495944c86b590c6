"""
Checkout session request orchestration.

Flow:
    resolve origin -> (OPTIONS: preflight) -> method check -> HTTPS check
    -> configuration check -> cart validation -> provider session -> 200

Every stage returns a ``Result``; the first rejection short-circuits and is
mapped to a response in ``_reject``. Anything raised instead of returned is
reported as ``internal_error`` without exposing its detail.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional

import httpx

from src.checkout_api import checkout_api_logger as logger
from src.checkout_api.cart_validator import CartValidator
from src.checkout_api.catalog import CatalogStore, default_catalog
from src.checkout_api.errors import INTERNAL_ERROR, RejectionError, Result
from src.checkout_api.origin_policy import OriginPolicy
from src.checkout_api.session_client import CheckoutSessionClient
from src.config import CheckoutSettings
from src.utils.response_format import ResponseFormat
from src.utils.status import ErrorCode

SUPPORTED_METHODS = ("POST", "OPTIONS")

SessionClientFactory = Callable[[CheckoutSettings], CheckoutSessionClient]


@dataclass
class CheckoutRequest:
    method: str
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""

    def header(self, name: str) -> Optional[str]:
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return None


def require_https(request: CheckoutRequest, settings: CheckoutSettings) -> Result[None]:
    if not settings.production:
        return Result.success(None)

    forwarded_proto = request.header("x-forwarded-proto")
    if forwarded_proto and forwarded_proto != "https":
        return Result.failure(ErrorCode.HTTPS_REQUIRED, "Checkout requires HTTPS.")
    return Result.success(None)


def require_configuration(settings: CheckoutSettings) -> Result[None]:
    missing = settings.missing_variables()
    if missing:
        return Result.failure(
            ErrorCode.SERVER_MISCONFIGURED,
            f"Missing required environment variables: {', '.join(missing)}",
        )
    return Result.success(None)


def decode_body(raw: bytes) -> Result[Any]:
    try:
        return Result.success(json.loads(raw))
    except (json.JSONDecodeError, UnicodeDecodeError, RecursionError):
        return Result.failure(ErrorCode.INVALID_PAYLOAD, "Request body must be a JSON object.")


class CheckoutRequestHandler:
    def __init__(
        self,
        *,
        settings_provider: Callable[[], CheckoutSettings] = CheckoutSettings.from_env,
        catalog: CatalogStore = default_catalog,
        http_client: httpx.AsyncClient | None = None,
        session_client_factory: SessionClientFactory | None = None,
    ) -> None:
        self._settings_provider = settings_provider
        self._validator = CartValidator(catalog)
        self._catalog = catalog
        self._http_client = http_client
        self._session_client_factory = session_client_factory or self._default_session_client

    def _default_session_client(self, settings: CheckoutSettings) -> CheckoutSessionClient:
        return CheckoutSessionClient(
            secret_key=settings.stripe_secret_key,
            success_url=settings.success_url,
            cancel_url=settings.cancel_url,
            frontend_origin=settings.frontend_origin,
            base_url=settings.stripe_api_base,
            client=self._http_client,
            currency=self._catalog.currency,
        )

    async def handle(self, request: CheckoutRequest) -> ResponseFormat:
        origin = request.header("origin")
        policy = OriginPolicy(())

        try:
            settings = self._settings_provider()
            policy = OriginPolicy.from_settings(settings)
            return await self._process(request, settings, policy, origin)
        except Exception:
            logger.exception("Unhandled error while creating checkout session")
            return self._reject(INTERNAL_ERROR, policy, origin)

    async def _process(
        self,
        request: CheckoutRequest,
        settings: CheckoutSettings,
        policy: OriginPolicy,
        origin: Optional[str],
    ) -> ResponseFormat:
        resolved = policy.resolve(origin)
        if not resolved.ok:
            return self._reject(resolved.error, policy, origin)
        allowed_origin = resolved.value

        method = request.method.upper()
        if method == "OPTIONS":
            return ResponseFormat.preflight(allowed_origin)

        if method not in SUPPORTED_METHODS:
            return self._reject(
                RejectionError(ErrorCode.METHOD_NOT_ALLOWED, "Only POST is supported for this route."),
                policy,
                origin,
            )

        for check in (require_https(request, settings), require_configuration(settings)):
            if not check.ok:
                return self._reject(check.error, policy, origin)

        decoded = decode_body(request.body)
        if not decoded.ok:
            return self._reject(decoded.error, policy, origin)

        cart = self._validator.validate(decoded.value)
        if not cart.ok:
            return self._reject(cart.error, policy, origin)

        client = self._session_client_factory(settings)
        async with client:
            session = await client.create_session(cart.value)
        if not session.ok:
            return self._reject(session.error, policy, origin)

        return ResponseFormat.success(session.value, allowed_origin)

    @staticmethod
    def _reject(error: RejectionError, policy: OriginPolicy, origin: Optional[str]) -> ResponseFormat:
        if error.status_code >= 500:
            logger.error("Checkout rejected: %s - %s", error.code.value, error.message)
        else:
            logger.info("Checkout rejected: %s - %s", error.code.value, error.message)

        return ResponseFormat.error(error.status_code, error.to_dict(), policy.echo_for(origin))
