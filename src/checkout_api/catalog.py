"""Trusted product catalog. Prices are integer minor units (pence)."""

from __future__ import annotations

from types import MappingProxyType
from typing import Iterator, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

CURRENCY = "gbp"


class ProductRecord(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(..., description="Canonical product identifier")
    name: str = Field(..., description="Display name sent to the payment provider")
    unit_amount: int = Field(..., gt=0, description="Unit price in minor currency units")
    image: Optional[str] = Field(default=None, description="Image path relative to the storefront")
    colors: Tuple[str, ...] = Field(default=(), description="Colors a customer may select")


class CatalogStore:
    """Read-only lookup of product id to ProductRecord."""

    def __init__(self, products: Mapping[str, ProductRecord], currency: str = CURRENCY) -> None:
        self._products = MappingProxyType(dict(products))
        self.currency = currency

    def get(self, product_id: str) -> Optional[ProductRecord]:
        return self._products.get(product_id)

    def __contains__(self, product_id: object) -> bool:
        return product_id in self._products

    def __iter__(self) -> Iterator[str]:
        return iter(self._products)

    def __len__(self) -> int:
        return len(self._products)


PRODUCTS: Mapping[str, ProductRecord] = MappingProxyType({
    "rise-cushion-sand": ProductRecord(
        id="rise-cushion-sand",
        name="Rise Seat Lift Cushion",
        unit_amount=8900,
        image="/product-hero.png",
        colors=("Sand", "Sage", "Slate"),
    ),
    "rise-cushion-sage": ProductRecord(
        id="rise-cushion-sage",
        name="Rise Seat Lift Cushion - Sage",
        unit_amount=8900,
        image="/product-sage.jpg",
        colors=("Sage",),
    ),
    "rise-cushion-slate": ProductRecord(
        id="rise-cushion-slate",
        name="Rise Seat Lift Cushion - Slate",
        unit_amount=8900,
        image="/product-slate.jpg",
        colors=("Slate",),
    ),
})

default_catalog = CatalogStore(PRODUCTS)
