from __future__ import annotations

import json
import logging
from typing import Optional, Sequence
from urllib.parse import urljoin

import httpx

from src.checkout_api import checkout_api_logger
from src.checkout_api.catalog import CURRENCY
from src.checkout_api.errors import Result
from src.checkout_api.schemas.cart_schemas import ValidatedLineItem
from src.config import STRIPE_API_BASE, STRIPE_TIMEOUT_SECONDS
from src.utils.status import ErrorCode

CHECKOUT_SESSIONS_PATH = "/v1/checkout/sessions"


def build_checkout_form(
    items: Sequence[ValidatedLineItem],
    *,
    success_url: str,
    cancel_url: str,
    currency: str = CURRENCY,
    frontend_origin: Optional[str] = None,
) -> dict[str, str]:
    """Build the form-encoded Checkout Session request for the validated items."""
    form = {
        "mode": "payment",
        "success_url": success_url,
        "cancel_url": cancel_url,
        "automatic_tax[enabled]": "true",
        "allow_promotion_codes": "true",
    }

    for i, entry in enumerate(items):
        prefix = f"line_items[{i}]"
        product = entry.product
        form[f"{prefix}[quantity]"] = str(entry.quantity)
        form[f"{prefix}[price_data][currency]"] = currency
        form[f"{prefix}[price_data][unit_amount]"] = str(product.unit_amount)
        form[f"{prefix}[price_data][product_data][name]"] = product.name

        if product.image and frontend_origin:
            form[f"{prefix}[price_data][product_data][images][0]"] = urljoin(frontend_origin, product.image)

        if entry.selected_color:
            form[f"{prefix}[price_data][product_data][metadata][selectedColor]"] = entry.selected_color

        form[f"{prefix}[price_data][product_data][metadata][productId]"] = product.id

    return form


class CheckoutSessionClient:
    """Creates hosted payment sessions with the payment provider."""

    def __init__(
        self,
        *,
        secret_key: str,
        success_url: str,
        cancel_url: str,
        frontend_origin: Optional[str] = None,
        base_url: str = STRIPE_API_BASE,
        client: httpx.AsyncClient | None = None,
        timeout: float = STRIPE_TIMEOUT_SECONDS,
        currency: str = CURRENCY,
        logger: logging.Logger = checkout_api_logger,
    ) -> None:
        self.logger = logger

        self._secret_key = secret_key
        self._success_url = success_url
        self._cancel_url = cancel_url
        self._frontend_origin = frontend_origin
        self._base_url = base_url.rstrip("/")
        self._currency = currency

        if client is None:
            self._client = httpx.AsyncClient(timeout=timeout)
            self._owns_client = True
        else:
            self._client = client
            self._owns_client = False

    async def close(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "CheckoutSessionClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def create_session(self, items: Sequence[ValidatedLineItem]) -> Result[str]:
        """Create a Checkout Session and return its redirect URL."""
        form = build_checkout_form(
            items,
            success_url=self._success_url,
            cancel_url=self._cancel_url,
            currency=self._currency,
            frontend_origin=self._frontend_origin,
        )

        self.logger.info("POST checkout session (%d line items) -> %s%s",
                         len(items), self._base_url, CHECKOUT_SESSIONS_PATH)
        try:
            response = await self._client.post(
                f"{self._base_url}{CHECKOUT_SESSIONS_PATH}",
                data=form,
                headers={"Authorization": f"Bearer {self._secret_key}"},
            )
        except httpx.HTTPError as exc:
            self.logger.error("Payment provider request failed: %s", exc)
            return Result.failure(ErrorCode.PROVIDER_CHECKOUT_FAILED, "Unable to create payment session.")

        try:
            body = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            body = {}
        if not isinstance(body, dict):
            body = {}

        if not response.is_success:
            error = body.get("error")
            provider_message = error.get("message") if isinstance(error, dict) else None
            self.logger.error("Payment provider rejected session (status=%s): %s",
                              response.status_code, provider_message or "<no message>")
            return Result.failure(ErrorCode.PROVIDER_CHECKOUT_FAILED, "Unable to create payment session.")

        url = body.get("url")
        if not isinstance(url, str) or not url:
            self.logger.error("Payment provider response has no redirect url (status=%s, id=%s)",
                              response.status_code, body.get("id"))
            return Result.failure(
                ErrorCode.PROVIDER_INVALID_RESPONSE,
                "Payment provider returned an invalid checkout response.",
            )

        self.logger.info("Checkout session created (id=%s)", body.get("id"))
        return Result.success(url)
