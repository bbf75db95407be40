"""Pricing for carts built from the local catalog.

All functions are pure and synchronous. Every mutation returns a new Cart
whose four totals were recomputed together from its items.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable
from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal

from pydantic import BaseModel, Field

from storefront.config import settings
from storefront.models.cart import ZERO, Cart, CartItem
from storefront.models.product import Product

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


class PricingConfig(BaseModel):
    tax_rate: Decimal = Field(default_factory=lambda: settings.TAX_RATE, ge=0)
    flat_shipping_rate: Decimal = Field(
        default_factory=lambda: settings.FLAT_SHIPPING_RATE, ge=0
    )
    free_shipping_threshold: Decimal = Field(
        default_factory=lambda: settings.FREE_SHIPPING_THRESHOLD, ge=0
    )
    min_quantity: int = Field(default_factory=lambda: settings.MIN_LINE_QUANTITY, ge=1)
    max_quantity: int = Field(default_factory=lambda: settings.MAX_LINE_QUANTITY, ge=1)


class CartTotals(BaseModel):
    subtotal: Decimal = ZERO
    tax: Decimal = ZERO
    shipping: Decimal = ZERO
    total: Decimal = ZERO


def _config(config: PricingConfig | None) -> PricingConfig:
    return config if config is not None else PricingConfig()


def to_cents(amount: Decimal) -> Decimal:
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def clamp_quantity(quantity: int, config: PricingConfig | None = None) -> int:
    config = _config(config)
    return max(config.min_quantity, min(quantity, config.max_quantity))


def calculate_subtotal(items: Iterable[CartItem]) -> Decimal:
    return sum((item.price * item.quantity for item in items), ZERO)


def calculate_tax(subtotal: Decimal, config: PricingConfig | None = None) -> Decimal:
    return to_cents(subtotal * _config(config).tax_rate)


def calculate_shipping(
    subtotal: Decimal, config: PricingConfig | None = None
) -> Decimal:
    config = _config(config)
    if subtotal >= config.free_shipping_threshold:
        return ZERO
    return config.flat_shipping_rate


def calculate_totals(
    items: Iterable[CartItem], config: PricingConfig | None = None
) -> CartTotals:
    """Derive subtotal, tax, shipping and total from the line items.

    An empty cart costs nothing, shipping included.
    """

    items = list(items)
    if not items:
        return CartTotals()
    subtotal = to_cents(calculate_subtotal(items))
    tax = calculate_tax(subtotal, config)
    shipping = calculate_shipping(subtotal, config)
    return CartTotals(
        subtotal=subtotal,
        tax=tax,
        shipping=shipping,
        total=subtotal + tax + shipping,
    )


def amount_until_free_shipping(
    subtotal: Decimal, config: PricingConfig | None = None
) -> Decimal:
    return max(ZERO, _config(config).free_shipping_threshold - subtotal)


def empty_cart(cart_id: str | None = None) -> Cart:
    return Cart(id=cart_id or f"local-{uuid.uuid4().hex}")


def _rebuild(
    cart: Cart, items: list[CartItem], config: PricingConfig | None
) -> Cart:
    totals = calculate_totals(items, config)
    return Cart(
        id=cart.id,
        items=items,
        total_quantity=sum(item.quantity for item in items),
        checkout_url=cart.checkout_url,
        created_at=cart.created_at,
        updated_at=datetime.now(UTC),
        **totals.model_dump(),
    )


def recalculate(cart: Cart, config: PricingConfig | None = None) -> Cart:
    """Re-derive totals and re-clamp quantities of an existing cart."""

    items = [
        item.model_copy(update={"quantity": clamp_quantity(item.quantity, config)})
        for item in cart.items
    ]
    return _rebuild(cart, items, config)


def add_item(
    cart: Cart,
    product_id: str,
    variant_id: str | None,
    quantity: int,
    price: Decimal,
    config: PricingConfig | None = None,
    *,
    title: str | None = None,
    variant_title: str | None = None,
    image: str | None = None,
) -> Cart:
    """Add units of a product/variant, merging with an existing line.

    An existing line keeps the price captured when it was first added.
    """

    if quantity <= 0:
        return _rebuild(cart, list(cart.items), config)

    items = list(cart.items)
    for index, item in enumerate(items):
        if item.product_id == product_id and item.variant_id == variant_id:
            items[index] = item.model_copy(
                update={"quantity": clamp_quantity(item.quantity + quantity, config)}
            )
            break
    else:
        items.append(
            CartItem(
                id=f"{product_id}-{variant_id or 'default'}-{uuid.uuid4().hex[:8]}",
                product_id=product_id,
                variant_id=variant_id,
                quantity=clamp_quantity(quantity, config),
                price=price,
                title=title,
                variant_title=variant_title,
                image=image,
            )
        )
    return _rebuild(cart, items, config)


def update_item_quantity(
    cart: Cart,
    item_id: str,
    quantity: int,
    config: PricingConfig | None = None,
) -> Cart:
    """Set a line's quantity: zero or less removes it, above the cap clamps."""

    if quantity <= 0:
        return remove_item(cart, item_id, config)
    items = [
        item.model_copy(update={"quantity": clamp_quantity(quantity, config)})
        if item.id == item_id
        else item
        for item in cart.items
    ]
    return _rebuild(cart, items, config)


def remove_item(
    cart: Cart, item_id: str, config: PricingConfig | None = None
) -> Cart:
    items = [item for item in cart.items if item.id != item_id]
    return _rebuild(cart, items, config)


def clear_cart(cart: Cart, config: PricingConfig | None = None) -> Cart:
    return _rebuild(cart, [], config)


def refresh_prices(
    cart: Cart,
    products: Iterable[Product],
    config: PricingConfig | None = None,
) -> Cart:
    """Re-capture every line's price from the given catalog.

    This is the only operation that changes a captured price. Lines whose
    product is no longer in the catalog keep their captured price.
    """

    catalog = {product.id: product for product in products}
    items: list[CartItem] = []
    for item in cart.items:
        product = catalog.get(item.product_id)
        if product is None:
            logger.warning("Product %s missing during price refresh", item.product_id)
            items.append(item)
            continue
        variant = product.find_variant(item.variant_id)
        price = (
            variant.price
            if variant is not None and variant.price is not None
            else product.effective_price
        )
        items.append(item.model_copy(update={"price": price}))
    return _rebuild(cart, items, config)
