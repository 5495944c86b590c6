"""httpx transport that feeds checkout call outcomes into a CheckoutMonitor."""

from __future__ import annotations

import re
from typing import Pattern

import httpx

from src.checkout_monitor.monitor import CheckoutMonitor
from src.checkout_monitor.telemetry import normalize_error
from src.utils.logger import log_context

CHECKOUT_PATTERN = re.compile(r"checkout-session|create-checkout-session|checkout", re.IGNORECASE)


def is_checkout_request(request: httpx.Request, pattern: Pattern[str] = CHECKOUT_PATTERN) -> bool:
    return request.method.upper() == "POST" and bool(pattern.search(str(request.url)))


class MonitoredTransport(httpx.AsyncBaseTransport):
    """
    Wraps another transport. Checkout-shaped requests (POST to a checkout
    URL) are recorded as successes on 2xx and failures otherwise; transport
    errors are recorded and re-raised unchanged. Other requests pass through.

    Usage:
        transport = MonitoredTransport(httpx.AsyncHTTPTransport(), monitor)
        async with httpx.AsyncClient(transport=transport) as client:
            ...
    """

    def __init__(
        self,
        inner: httpx.AsyncBaseTransport,
        monitor: CheckoutMonitor,
        pattern: Pattern[str] = CHECKOUT_PATTERN,
    ) -> None:
        self._inner = inner
        self._monitor = monitor
        self._pattern = pattern

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        if not is_checkout_request(request, self._pattern):
            return await self._inner.handle_async_request(request)

        endpoint = str(request.url)
        try:
            response = await self._inner.handle_async_request(request)
        except Exception as exc:
            with log_context(source="transport", endpoint=endpoint):
                self._monitor.track_checkout(False, {
                    "method": request.method,
                    "endpoint": endpoint,
                    "transportError": normalize_error(exc),
                })
            raise

        with log_context(source="transport", endpoint=endpoint):
            self._monitor.track_checkout(200 <= response.status_code < 300, {
                "status": response.status_code,
                "method": request.method,
                "endpoint": endpoint,
            })
        return response

    async def aclose(self) -> None:
        await self._inner.aclose()
