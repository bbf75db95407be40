"""Canonical cart models and API schemas."""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, model_validator

from storefront.models.errors import ErrorPayload

ZERO = Decimal("0")


class CartItem(BaseModel):
    """A cart line bound to the price captured when it was inserted."""

    id: str = Field(..., description="Backend line id or local line id")
    product_id: str
    variant_id: str | None = None
    quantity: int = Field(..., ge=1)
    price: Decimal = Field(..., ge=0, description="Unit price captured on insert")
    compare_at_price: Decimal | None = None
    title: str | None = None
    variant_title: str | None = None
    image: str | None = None
    handle: str | None = None

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity


class Cart(BaseModel):
    """Cart with its four derived totals.

    The totals are always replaced together; a cart whose total does not
    equal ``subtotal + tax + shipping`` cannot be constructed.
    """

    id: str
    items: list[CartItem] = Field(default_factory=list)
    subtotal: Decimal = ZERO
    tax: Decimal = ZERO
    shipping: Decimal = ZERO
    total: Decimal = ZERO
    total_quantity: int = 0
    checkout_url: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @model_validator(mode="after")
    def _check_total(self) -> Cart:
        if self.total != self.subtotal + self.tax + self.shipping:
            raise ValueError(
                f"cart total {self.total} does not match "
                f"{self.subtotal} + {self.tax} + {self.shipping}"
            )
        return self

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    def find_item(self, item_id: str) -> CartItem | None:
        return next((item for item in self.items if item.id == item_id), None)


class CartResult(BaseModel):
    """Outcome of a cart operation: the new cart or an error, never both."""

    cart: Cart | None = None
    error: ErrorPayload | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class AddLineRequest(BaseModel):
    merchandise_id: str = Field(..., min_length=1)
    quantity: int = Field(1, ge=1)


class UpdateLineRequest(BaseModel):
    quantity: int = Field(..., ge=0, description="Zero removes the line")


class LocalAddItemRequest(BaseModel):
    product_id: str = Field(..., min_length=1)
    variant_id: str | None = None
    quantity: int = 1


class LocalUpdateItemRequest(BaseModel):
    quantity: int
