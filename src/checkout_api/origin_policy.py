from __future__ import annotations

from typing import Iterable, Optional

from src.checkout_api.errors import Result
from src.config import CheckoutSettings
from src.utils.status import ErrorCode


class OriginPolicy:
    """Decides whether a request origin may receive a cross-origin response."""

    def __init__(self, allowed_origins: Iterable[str]) -> None:
        self.allowed_origins = frozenset(allowed_origins)

    @classmethod
    def from_settings(cls, settings: CheckoutSettings) -> "OriginPolicy":
        return cls(settings.allowed_origins)

    def resolve(self, origin: Optional[str]) -> Result[Optional[str]]:
        """Return the origin to echo, ``None`` for same-origin requests."""
        if not origin:
            return Result.success(None)

        if not self.allowed_origins:
            return Result.failure(
                ErrorCode.SERVER_ORIGIN_MISCONFIGURED,
                "Checkout origin policy is not configured.",
            )

        if origin not in self.allowed_origins:
            return Result.failure(
                ErrorCode.ORIGIN_NOT_ALLOWED,
                "This origin is not allowed for checkout.",
            )

        return Result.success(origin)

    def echo_for(self, origin: Optional[str]) -> Optional[str]:
        """Origin to echo on an error response; never fails."""
        if origin and origin in self.allowed_origins:
            return origin
        return None
