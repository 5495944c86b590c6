"""
Best-effort delivery of telemetry events and alerts.

Sends are scheduled as background tasks and never awaited by the caller.
Transport failures are logged and dropped: no retry, no queue, nothing is
raised back into the observed code path. Delivery is skipped entirely when
the context is not secure.
"""

from __future__ import annotations

import asyncio
import traceback
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Set

import httpx

from src.checkout_monitor import checkout_monitor_logger as logger
from src.config import (
    ALERT_ENDPOINT,
    MONITOR_APP_NAME,
    MONITOR_ENV,
    MONITOR_PAGE_URL,
    MONITOR_USER_AGENT,
    TELEMETRY_ENDPOINT,
)

LOOPBACK_HOSTS = frozenset({"localhost", "127.0.0.1", "::1"})


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def is_secure_endpoint(url: str) -> bool:
    """HTTPS, or plain HTTP to a loopback host."""
    parsed = httpx.URL(url)
    if parsed.scheme == "https":
        return True
    host = parsed.host
    return parsed.scheme == "http" and (host in LOOPBACK_HOSTS or host.endswith(".localhost"))


def normalize_error(error: Optional[BaseException]) -> Dict[str, Any]:
    if error is None:
        return {"message": "Unknown error"}
    normalized = {
        "name": type(error).__name__,
        "message": str(error) or repr(error),
    }
    if error.__traceback__ is not None:
        normalized["stack"] = "".join(traceback.format_exception(error))
    return normalized


class TelemetryEmitter:
    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        telemetry_endpoint: str = TELEMETRY_ENDPOINT,
        alert_endpoint: str = ALERT_ENDPOINT,
        app: str = MONITOR_APP_NAME,
        env: str = MONITOR_ENV,
        page_url: str = MONITOR_PAGE_URL,
        user_agent: str = MONITOR_USER_AGENT,
        secure_context: Optional[bool] = None,
    ) -> None:
        self._client = client
        self.telemetry_endpoint = telemetry_endpoint
        self.alert_endpoint = alert_endpoint
        self.app = app
        self.env = env
        self.page_url = page_url
        self.user_agent = user_agent
        if secure_context is None:
            secure_context = is_secure_endpoint(telemetry_endpoint) and is_secure_endpoint(alert_endpoint)
        self.secure_context = secure_context
        self._pending: Set[asyncio.Task] = set()

    def emit(self, event_type: str, detail: Dict[str, Any], severity: str = "info") -> Optional[asyncio.Task]:
        payload = {
            "app": self.app,
            "env": self.env,
            "eventType": event_type,
            "severity": severity,
            "detail": detail,
            "url": self.page_url,
            "userAgent": self.user_agent,
            "timestamp": now_iso(),
        }
        return self._send(self.telemetry_endpoint, payload)

    def emit_alert(self, alert_type: str, detail: Dict[str, Any]) -> Optional[asyncio.Task]:
        payload = {
            "app": self.app,
            "env": self.env,
            "alertType": alert_type,
            "severity": "high",
            "detail": detail,
            "timestamp": now_iso(),
        }
        return self._send(self.alert_endpoint, payload)

    def _send(self, endpoint: str, payload: Dict[str, Any]) -> Optional[asyncio.Task]:
        if not self.secure_context:
            logger.warning("Telemetry skipped: insecure context (%s)",
                           payload.get("eventType") or payload.get("alertType"))
            return None

        try:
            task = asyncio.get_running_loop().create_task(self.post_json(endpoint, payload))
        except RuntimeError:
            logger.warning("Telemetry skipped: no running event loop")
            return None

        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def post_json(self, endpoint: str, payload: Dict[str, Any]) -> None:
        try:
            response = await self._client.post(endpoint, json=payload)
            logger.debug("Telemetry delivered to %s (status=%s)", endpoint, response.status_code)
        except Exception as e:
            logger.warning(f"Telemetry transport failed: {e}")

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for in-flight sends, e.g. at shutdown."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
