from __future__ import annotations

from dataclasses import dataclass
from typing import List

from src.checkout_monitor.clock import Clock, now_ms
from src.config import CHECKOUT_WINDOW_MS


@dataclass(frozen=True)
class CheckoutOutcome:
    success: bool
    timestamp_ms: int


@dataclass(frozen=True)
class WindowStats:
    total: int
    failures: int
    failure_rate: float


class FailureWindowMonitor:
    """
    Sliding window of checkout outcomes.

    Outcomes older than ``window_ms`` relative to the latest observation are
    pruned on every ``record`` call, so the stats always describe the last
    window as of the most recent event.
    """

    def __init__(self, window_ms: int = CHECKOUT_WINDOW_MS, clock: Clock = now_ms) -> None:
        if window_ms <= 0:
            raise ValueError("window_ms must be positive")
        self.window_ms = window_ms
        self._clock = clock
        self._outcomes: List[CheckoutOutcome] = []

    def record(self, success: bool) -> WindowStats:
        now = self._clock()
        self._outcomes.append(CheckoutOutcome(success=bool(success), timestamp_ms=now))
        self._outcomes = [o for o in self._outcomes if now - o.timestamp_ms <= self.window_ms]
        return self._stats()

    def snapshot(self) -> WindowStats:
        """Current stats without recording or pruning."""
        return self._stats()

    def _stats(self) -> WindowStats:
        total = len(self._outcomes)
        failures = sum(1 for o in self._outcomes if not o.success)
        rate = failures / total if total else 0.0
        return WindowStats(total=total, failures=failures, failure_rate=rate)

    def __len__(self) -> int:
        return len(self._outcomes)
