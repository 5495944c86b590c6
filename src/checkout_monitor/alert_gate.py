from __future__ import annotations

from typing import Any, Callable, Dict

from src.checkout_monitor import checkout_monitor_logger as logger
from src.checkout_monitor.clock import Clock, now_ms
from src.checkout_monitor.failure_window import WindowStats
from src.config import (
    ALERT_COOLDOWN_MS,
    CHECKOUT_FAILURE_RATE_THRESHOLD,
    CHECKOUT_FAILURE_THRESHOLD,
)

AlertSink = Callable[[Dict[str, Any]], Any]


class AlertGate:
    """
    Emits at most one alert per cooldown period.

    An alert is eligible only when both the failure count and the failure
    rate reach their thresholds. The cooldown deadline is advanced before the
    sink is called.
    """

    def __init__(
        self,
        sink: AlertSink,
        *,
        min_failures: int = CHECKOUT_FAILURE_THRESHOLD,
        min_failure_rate: float = CHECKOUT_FAILURE_RATE_THRESHOLD,
        cooldown_ms: int = ALERT_COOLDOWN_MS,
        clock: Clock = now_ms,
    ) -> None:
        self.min_failures = min_failures
        self.min_failure_rate = min_failure_rate
        self.cooldown_ms = cooldown_ms
        self.cooldown_until = 0
        self._sink = sink
        self._clock = clock

    def is_eligible(self, stats: WindowStats) -> bool:
        return stats.failures >= self.min_failures and stats.failure_rate >= self.min_failure_rate

    def maybe_alert(self, stats: WindowStats, detail: Dict[str, Any] | None = None) -> bool:
        if not self.is_eligible(stats):
            return False

        now = self._clock()
        if now < self.cooldown_until:
            logger.debug("Alert suppressed, cooldown active for %d ms", self.cooldown_until - now)
            return False

        self.cooldown_until = now + self.cooldown_ms
        logger.warning("Checkout failure threshold breached (failures=%d, rate=%.3f)",
                       stats.failures, stats.failure_rate)
        self._sink(dict(detail or {}))
        return True
