"""Rejection type and the tagged result returned by every checkout stage."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from src.utils.status import ErrorCode, ErrorType

T = TypeVar("T")

HTTP_STATUS_BY_CODE: dict[ErrorCode, int] = {
    ErrorCode.INVALID_PAYLOAD: 400,
    ErrorCode.INVALID_ITEMS: 400,
    ErrorCode.INVALID_ITEM: 400,
    ErrorCode.INVALID_PRODUCT: 400,
    ErrorCode.INVALID_QUANTITY: 400,
    ErrorCode.INVALID_OPTION: 400,
    ErrorCode.TAMPERED_PAYLOAD: 400,
    ErrorCode.ORIGIN_NOT_ALLOWED: 403,
    ErrorCode.HTTPS_REQUIRED: 400,
    ErrorCode.METHOD_NOT_ALLOWED: 405,
    ErrorCode.SERVER_MISCONFIGURED: 500,
    ErrorCode.SERVER_ORIGIN_MISCONFIGURED: 500,
    ErrorCode.PROVIDER_CHECKOUT_FAILED: 502,
    ErrorCode.PROVIDER_INVALID_RESPONSE: 502,
    ErrorCode.INTERNAL_ERROR: 500,
}

SYSTEM_ERROR_CODES = frozenset({
    ErrorCode.SERVER_MISCONFIGURED,
    ErrorCode.SERVER_ORIGIN_MISCONFIGURED,
    ErrorCode.PROVIDER_CHECKOUT_FAILED,
    ErrorCode.PROVIDER_INVALID_RESPONSE,
    ErrorCode.INTERNAL_ERROR,
})


@dataclass(frozen=True)
class RejectionError:
    """A classified failure of one checkout request."""

    code: ErrorCode
    message: str

    @property
    def status_code(self) -> int:
        return HTTP_STATUS_BY_CODE[self.code]

    @property
    def error_type(self) -> ErrorType:
        if self.code in SYSTEM_ERROR_CODES:
            return ErrorType.SYSTEM_ERROR
        return ErrorType.USER_ERROR

    def to_dict(self) -> dict[str, str]:
        return {
            "code": self.code.value,
            "message": self.message,
            "type": self.error_type.value,
        }


@dataclass(frozen=True)
class Result(Generic[T]):
    """Either a value or a rejection, never both."""

    value: Optional[T] = None
    error: Optional[RejectionError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, code: ErrorCode, message: str) -> "Result[T]":
        return cls(error=RejectionError(code=code, message=message))


INTERNAL_ERROR = RejectionError(
    code=ErrorCode.INTERNAL_ERROR,
    message="An unexpected server error occurred.",
)
