"""
Cart validation against the trusted catalog.

The pipeline is strict and ordered; the first failing check decides the
rejection and nothing is aggregated. Client echo fields (``name``, ``price``,
``image``) are optional, but when ``name`` or ``price`` is sent it must match
the catalog exactly, otherwise the request is reported as tampered.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional

from src.checkout_api import checkout_api_logger as logger
from src.checkout_api.catalog import CatalogStore, ProductRecord, default_catalog
from src.checkout_api.errors import Result
from src.checkout_api.schemas.cart_schemas import (
    ALLOWED_BODY_KEYS,
    ALLOWED_ITEM_KEYS,
    MAX_LINE_ITEMS,
    MAX_QUANTITY_PER_ITEM,
    CheckoutBody,
    RawCartItem,
    ValidatedCart,
    ValidatedLineItem,
)
from src.utils.status import ErrorCode


def _unexpected_keys(obj: dict, allowed: tuple[str, ...]) -> list[str]:
    return [key for key in obj if key not in allowed]


def _as_quantity(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        quantity = value
    elif isinstance(value, float) and value.is_integer():
        quantity = int(value)
    else:
        return None
    if quantity < 1 or quantity > MAX_QUANTITY_PER_ITEM:
        return None
    return quantity


def to_minor_units(price: Any) -> Optional[int]:
    """Convert a major-currency amount (e.g. ``89.0``) to integer minor units.

    Returns ``None`` for anything that is not a finite number.
    """
    if isinstance(price, bool) or price is None:
        return None
    if not isinstance(price, (int, float, str, Decimal)):
        return None
    try:
        amount = Decimal(str(price))
    except InvalidOperation:
        return None
    if not amount.is_finite():
        return None
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class CartValidator:
    def __init__(self, catalog: CatalogStore = default_catalog) -> None:
        self.catalog = catalog

    def validate(self, body: Any) -> Result[ValidatedCart]:
        if not isinstance(body, dict):
            return Result.failure(ErrorCode.INVALID_PAYLOAD, "Request body must be a JSON object.")

        unexpected = _unexpected_keys(body, ALLOWED_BODY_KEYS)
        if unexpected:
            return Result.failure(
                ErrorCode.INVALID_PAYLOAD,
                f"Body contains unsupported fields: {', '.join(unexpected)}",
            )

        items = CheckoutBody.model_validate(body).items
        if not isinstance(items, list) or not 1 <= len(items) <= MAX_LINE_ITEMS:
            return Result.failure(
                ErrorCode.INVALID_ITEMS,
                f"items must be an array with 1 to {MAX_LINE_ITEMS} entries.",
            )

        validated: ValidatedCart = []
        for index, item in enumerate(items):
            result = self.validate_item(item, index)
            if not result.ok:
                return Result(error=result.error)
            validated.append(result.value)

        return Result.success(validated)

    def validate_item(self, item: Any, index: int) -> Result[ValidatedLineItem]:
        field = f"items[{index}]"

        if not isinstance(item, dict):
            return Result.failure(ErrorCode.INVALID_ITEM, f"{field} must be an object.")

        unexpected = _unexpected_keys(item, ALLOWED_ITEM_KEYS)
        if unexpected:
            return Result.failure(
                ErrorCode.INVALID_PAYLOAD,
                f"{field} contains unsupported fields: {', '.join(unexpected)}",
            )

        raw = RawCartItem.model_validate(item)

        product: Optional[ProductRecord] = None
        if isinstance(raw.id, str):
            product = self.catalog.get(raw.id)
        if product is None:
            return Result.failure(ErrorCode.INVALID_PRODUCT, f"{field}.id is not a recognized product.")

        quantity = _as_quantity(raw.quantity)
        if quantity is None:
            return Result.failure(
                ErrorCode.INVALID_QUANTITY,
                f"{field}.quantity must be an integer between 1 and {MAX_QUANTITY_PER_ITEM}.",
            )

        if raw.has("selectedColor"):
            if not isinstance(raw.selectedColor, str) or raw.selectedColor not in product.colors:
                return Result.failure(
                    ErrorCode.INVALID_OPTION,
                    f"{field}.selectedColor is not allowed for this product.",
                )

        if raw.has("name") and raw.name != product.name:
            logger.warning("Tampered name for product %s at %s", product.id, field)
            return Result.failure(
                ErrorCode.TAMPERED_PAYLOAD,
                f"{field}.name does not match the product catalog.",
            )

        if raw.has("price") and to_minor_units(raw.price) != product.unit_amount:
            logger.warning("Tampered price for product %s at %s: %r", product.id, field, raw.price)
            return Result.failure(
                ErrorCode.TAMPERED_PAYLOAD,
                f"{field}.price does not match the product catalog.",
            )

        return Result.success(
            ValidatedLineItem(
                product=product,
                quantity=quantity,
                selected_color=raw.selectedColor or None,
            )
        )
