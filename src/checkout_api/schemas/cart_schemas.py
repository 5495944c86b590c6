from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from src.checkout_api.catalog import ProductRecord

MAX_LINE_ITEMS = 20
MAX_QUANTITY_PER_ITEM = 10

ALLOWED_BODY_KEYS = ("items",)
ALLOWED_ITEM_KEYS = ("id", "quantity", "selectedColor", "name", "price", "image")

class RawCartItem(BaseModel):
    """Untrusted cart entry. Fields keep their raw JSON values until checked.

    Presence is tracked through ``model_fields_set`` so that an explicit
    ``null`` is still distinguishable from an omitted key.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    id: Any = Field(default=None)
    quantity: Any = Field(default=None)
    selectedColor: Any = Field(default=None)
    name: Any = Field(default=None)
    price: Any = Field(default=None)
    image: Any = Field(default=None)

    def has(self, field_name: str) -> bool:
        return field_name in self.model_fields_set


class CheckoutBody(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    items: Any = Field(default=None)


class ValidatedLineItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    product: ProductRecord
    quantity: int = Field(..., ge=1, le=MAX_QUANTITY_PER_ITEM)
    selected_color: Optional[str] = Field(default=None)


ValidatedCart = List[ValidatedLineItem]
