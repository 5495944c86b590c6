from src.checkout_api.schemas.cart_schemas import (
    ALLOWED_BODY_KEYS,
    ALLOWED_ITEM_KEYS,
    CheckoutBody,
    RawCartItem,
    ValidatedLineItem,
)

__all__ = [
    "ALLOWED_BODY_KEYS",
    "ALLOWED_ITEM_KEYS",
    "CheckoutBody",
    "RawCartItem",
    "ValidatedLineItem",
]
