import uuid
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from starlette.middleware.base import BaseHTTPMiddleware

from src.checkout_api import checkout_api_logger
from src.checkout_api.api import checkout_router
from src.checkout_api.handler import CheckoutRequestHandler
from src.config import CHECKOUT_API_HOST, CHECKOUT_API_PORT, STRIPE_TIMEOUT_SECONDS
from src.utils.logger import log_context


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Tags every log line written while serving a request with its id and method."""

    async def dispatch(self, request, call_next):
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex[:8]
        with log_context(request_id=request_id, method=request.method):
            response = await call_next(request)
        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    checkout_api_logger.info(f"Checkout API starting on {CHECKOUT_API_HOST}:{CHECKOUT_API_PORT}")
    async with httpx.AsyncClient(timeout=STRIPE_TIMEOUT_SECONDS) as provider_client:
        app.state.checkout_handler = CheckoutRequestHandler(http_client=provider_client)
        yield
    # Shutdown
    checkout_api_logger.info("Checkout API shutting down")


app = FastAPI(
    title="Checkout API",
    description="Validates carts against the catalog and creates hosted payment sessions",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(RequestContextMiddleware)

app.include_router(checkout_router)


if __name__ == "__main__":
    import uvicorn
    checkout_api_logger.info(f"Starting Checkout API on {CHECKOUT_API_HOST}:{CHECKOUT_API_PORT}")
    uvicorn.run(app, host=CHECKOUT_API_HOST, port=CHECKOUT_API_PORT)
