import enum


class ErrorType(str, enum.Enum):
    USER_ERROR = "user_error"
    SYSTEM_ERROR = "system_error"


class ErrorCode(str, enum.Enum):
    INVALID_PAYLOAD = "invalid_payload"
    INVALID_ITEMS = "invalid_items"
    INVALID_ITEM = "invalid_item"
    INVALID_PRODUCT = "invalid_product"
    INVALID_QUANTITY = "invalid_quantity"
    INVALID_OPTION = "invalid_option"
    TAMPERED_PAYLOAD = "tampered_payload"
    ORIGIN_NOT_ALLOWED = "origin_not_allowed"
    HTTPS_REQUIRED = "https_required"
    METHOD_NOT_ALLOWED = "method_not_allowed"
    SERVER_MISCONFIGURED = "server_misconfigured"
    SERVER_ORIGIN_MISCONFIGURED = "server_origin_misconfigured"
    PROVIDER_CHECKOUT_FAILED = "provider_checkout_failed"
    PROVIDER_INVALID_RESPONSE = "provider_invalid_response"
    INTERNAL_ERROR = "internal_error"
