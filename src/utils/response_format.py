import json
from typing import Any, Mapping, Optional

from starlette.responses import Response

CORS_ALLOW_METHODS = "POST, OPTIONS"
CORS_ALLOW_HEADERS = "Content-Type"


class ResponseFormat:
    """Checkout endpoint response: status, JSON payload and CORS headers."""

    def __init__(
        self,
        status_code: int = 200,
        payload: Optional[Mapping[str, Any]] = None,
        allowed_origin: Optional[str] = None,
    ) -> None:
        self.status_code = status_code
        self.payload = payload
        self.allowed_origin = allowed_origin

    @classmethod
    def success(cls, url: str, allowed_origin: Optional[str] = None) -> "ResponseFormat":
        return cls(status_code=200, payload={"url": url}, allowed_origin=allowed_origin)

    @classmethod
    def preflight(cls, allowed_origin: Optional[str] = None) -> "ResponseFormat":
        return cls(status_code=204, payload=None, allowed_origin=allowed_origin)

    @classmethod
    def error(
        cls,
        status_code: int,
        error: Mapping[str, str],
        allowed_origin: Optional[str] = None,
    ) -> "ResponseFormat":
        return cls(status_code=status_code, payload={"error": dict(error)}, allowed_origin=allowed_origin)

    @property
    def headers(self) -> dict[str, str]:
        headers = {
            "Access-Control-Allow-Methods": CORS_ALLOW_METHODS,
            "Access-Control-Allow-Headers": CORS_ALLOW_HEADERS,
            "Content-Type": "application/json",
        }
        if self.allowed_origin:
            headers["Access-Control-Allow-Origin"] = self.allowed_origin
            headers["Vary"] = "Origin"
        return headers

    def to_dict(self) -> Optional[dict[str, Any]]:
        return None if self.payload is None else dict(self.payload)

    def to_json(self) -> str:
        return "" if self.payload is None else json.dumps(self.payload)

    def to_response(self) -> Response:
        return Response(content=self.to_json(), status_code=self.status_code, headers=self.headers)
