from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from starlette.routing import Route
from starlette.types import Receive, Scope, Send

from src.checkout_api import checkout_api_logger
from src.checkout_api.handler import CheckoutRequest, CheckoutRequestHandler
from src.config import CHECKOUT_SESSION_PATH

router = APIRouter(tags=["Checkout"])


def get_handler(request: Request) -> CheckoutRequestHandler:
    return request.app.state.checkout_handler


class CheckoutSessionEndpoint:
    """
    Exchange a cart for a hosted payment page URL.

    A bare ASGI endpoint so the route has no method restriction: HEAD, TRACE
    and custom verbs reach the handler like any other and get its
    ``method_not_allowed`` envelope and CORS headers.
    """

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        request = Request(scope, receive)
        body = await request.body()
        checkout_api_logger.debug(f"{request.method} {CHECKOUT_SESSION_PATH} ({len(body)} bytes)")

        result = await get_handler(request).handle(
            CheckoutRequest(method=request.method, headers=dict(request.headers), body=body)
        )
        await result.to_response()(scope, receive, send)


router.routes.append(
    Route(CHECKOUT_SESSION_PATH, endpoint=CheckoutSessionEndpoint(), include_in_schema=False)
)


@router.get("/healthz")
async def healthz():
    return JSONResponse(content={"status": "ok", "app": checkout_api_logger.name})
