"""Shared fixtures and an asyncio marker plugin that needs no extra dependency."""

from __future__ import annotations

import asyncio
import inspect

import pytest

from src.config import CheckoutSettings

SHOP_ORIGIN = "https://shop.example"
PROVIDER_BASE = "https://stripe.test"


@pytest.hookimpl
def pytest_configure(config: pytest.Config) -> None:  # pragma: no cover - pytest hook
    config.addinivalue_line(
        "markers",
        "asyncio: mark test to run inside an event loop",
    )


@pytest.hookimpl(tryfirst=True)
def pytest_pyfunc_call(pyfuncitem: pytest.Function) -> bool:  # pragma: no cover - pytest hook
    if "asyncio" not in pyfuncitem.keywords:
        return False

    test_function = pyfuncitem.obj
    if not inspect.iscoroutinefunction(test_function):
        return False

    argnames = pyfuncitem._fixtureinfo.argnames
    kwargs = {name: pyfuncitem.funcargs[name] for name in argnames}

    loop = asyncio.new_event_loop()
    try:
        loop.run_until_complete(test_function(**kwargs))
    finally:
        loop.close()
    return True


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start_ms: int = 1_700_000_000_000) -> None:
        self.now = start_ms

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings() -> CheckoutSettings:
    return CheckoutSettings(
        allowed_origins=(SHOP_ORIGIN, "https://www.shop.example"),
        frontend_origin=SHOP_ORIGIN,
        stripe_secret_key="sk_test_123",
        success_url=f"{SHOP_ORIGIN}/success",
        cancel_url=f"{SHOP_ORIGIN}/cancel",
        production=True,
        stripe_api_base=PROVIDER_BASE,
    )
