import os
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

from dotenv import load_dotenv

load_dotenv()

CHECKOUT_API_HOST = os.getenv("CHECKOUT_API_HOST", "0.0.0.0")
CHECKOUT_API_PORT = int(os.getenv("CHECKOUT_API_PORT", "8086"))
CHECKOUT_SESSION_PATH = "/api/create-checkout-session"

STRIPE_API_BASE = os.getenv("STRIPE_API_BASE", "https://api.stripe.com")
STRIPE_TIMEOUT_SECONDS = float(os.getenv("STRIPE_TIMEOUT_SECONDS", "10"))

# Checkout monitor
MONITOR_APP_NAME = os.getenv("MONITOR_APP_NAME", "rise-frontend")
MONITOR_ENV = os.getenv("MONITOR_ENV", "production")
TELEMETRY_ENDPOINT = os.getenv("TELEMETRY_ENDPOINT", "https://localhost/api/telemetry")
ALERT_ENDPOINT = os.getenv("ALERT_ENDPOINT", "https://localhost/api/alerts")
MONITOR_PAGE_URL = os.getenv("MONITOR_PAGE_URL", "")
MONITOR_USER_AGENT = os.getenv("MONITOR_USER_AGENT", "checkout-monitor")
CHECKOUT_WINDOW_MS = int(os.getenv("CHECKOUT_WINDOW_MS", str(5 * 60 * 1000)))
CHECKOUT_FAILURE_THRESHOLD = int(os.getenv("CHECKOUT_FAILURE_THRESHOLD", "5"))
CHECKOUT_FAILURE_RATE_THRESHOLD = float(os.getenv("CHECKOUT_FAILURE_RATE_THRESHOLD", "0.2"))
ALERT_COOLDOWN_MS = int(os.getenv("ALERT_COOLDOWN_MS", str(10 * 60 * 1000)))

_REQUIRED_CHECKOUT_VARS = ("STRIPE_SECRET_KEY", "CHECKOUT_SUCCESS_URL", "CHECKOUT_CANCEL_URL")


def parse_origins(*values: Optional[str]) -> Tuple[str, ...]:
    """Split comma-joined origin strings into a flat allow-list."""
    origins = []
    for value in values:
        if not value:
            continue
        origins.extend(part.strip() for part in value.split(","))
    return tuple(origin for origin in origins if origin)


@dataclass(frozen=True)
class CheckoutSettings:
    """Runtime settings read by the checkout endpoint on every request."""

    allowed_origins: Tuple[str, ...] = ()
    frontend_origin: Optional[str] = None
    stripe_secret_key: Optional[str] = None
    success_url: Optional[str] = None
    cancel_url: Optional[str] = None
    production: bool = False
    stripe_api_base: str = STRIPE_API_BASE

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "CheckoutSettings":
        env = os.environ if environ is None else environ
        return cls(
            allowed_origins=parse_origins(env.get("FRONTEND_ORIGIN"), env.get("FRONTEND_ORIGINS")),
            frontend_origin=env.get("FRONTEND_ORIGIN") or None,
            stripe_secret_key=env.get("STRIPE_SECRET_KEY") or None,
            success_url=env.get("CHECKOUT_SUCCESS_URL") or None,
            cancel_url=env.get("CHECKOUT_CANCEL_URL") or None,
            production=env.get("APP_ENV") == "production",
            stripe_api_base=env.get("STRIPE_API_BASE", STRIPE_API_BASE),
        )

    def missing_variables(self) -> list[str]:
        values = {
            "STRIPE_SECRET_KEY": self.stripe_secret_key,
            "CHECKOUT_SUCCESS_URL": self.success_url,
            "CHECKOUT_CANCEL_URL": self.cancel_url,
        }
        return [name for name in _REQUIRED_CHECKOUT_VARS if not values[name]]
