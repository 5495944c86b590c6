from __future__ import annotations

from typing import Any, Dict, Optional

from src.checkout_monitor import checkout_monitor_logger as logger
from src.checkout_monitor.alert_gate import AlertGate
from src.checkout_monitor.failure_window import FailureWindowMonitor, WindowStats
from src.checkout_monitor.telemetry import TelemetryEmitter, normalize_error

CHECKOUT_SUCCESS_EVENT = "checkout.session.success"
CHECKOUT_FAILURE_EVENT = "checkout.session.failure"
THRESHOLD_BREACHED_ALERT = "checkout.session.failure.threshold_breached"


class CheckoutMonitor:
    """
    Tracks checkout attempt outcomes for one process or browser session.

    Every outcome produces a telemetry event; failures may additionally
    raise a rate-limited alert through the AlertGate.
    """

    def __init__(
        self,
        emitter: TelemetryEmitter,
        window: Optional[FailureWindowMonitor] = None,
        gate: Optional[AlertGate] = None,
    ) -> None:
        self.emitter = emitter
        self.window = window or FailureWindowMonitor()
        self.gate = gate or AlertGate(self._send_alert)

    def _send_alert(self, detail: Dict[str, Any]) -> None:
        self.emitter.emit_alert(THRESHOLD_BREACHED_ALERT, detail)

    def start(self) -> None:
        self.emitter.emit("frontend.monitoring.initialized", {"secureContext": self.emitter.secure_context})

    def track_checkout(self, success: bool, detail: Optional[Dict[str, Any]] = None) -> WindowStats:
        stats = self.window.record(success)
        rate = round(stats.failure_rate, 3)
        logger.debug("Checkout outcome recorded (success=%s, total=%d, failures=%d)",
                     success, stats.total, stats.failures)

        self.emitter.emit(
            CHECKOUT_SUCCESS_EVENT if success else CHECKOUT_FAILURE_EVENT,
            {"total": stats.total, "failures": stats.failures, "failureRate": rate, **(detail or {})},
            "info" if success else "error",
        )

        if not success:
            self.gate.maybe_alert(stats, {
                "total": stats.total,
                "failures": stats.failures,
                "failureRate": rate,
                "threshold": {
                    "minFailures": self.gate.min_failures,
                    "minFailureRate": self.gate.min_failure_rate,
                    "windowMs": self.window.window_ms,
                },
            })
        return stats

    def report_exception(self, error: BaseException, source: Optional[str] = None) -> None:
        detail: Dict[str, Any] = {"error": normalize_error(error)}
        if source:
            detail["source"] = source
        self.emitter.emit("frontend.exception.uncaught", detail, "error")
