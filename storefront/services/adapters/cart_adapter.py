"""Convert the backend's complete cart representation into a canonical Cart."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any

from pydantic import ValidationError

from storefront.models.cart import Cart, CartItem
from storefront.models.errors import StorefrontError
from storefront.services.adapters.fields import (
    as_dict,
    edges,
    int_or_none,
    parse_money,
    parse_timestamp,
    text,
)
from storefront.services.adapters.product_adapter import is_valid_cart_payload

logger = logging.getLogger(__name__)


def adapt_cart_line(line: dict[str, Any]) -> CartItem | None:
    """Adapt one cart line; ``None`` when the line cannot be represented."""

    merchandise = as_dict(line.get("merchandise"))
    product = as_dict(merchandise.get("product"))
    quantity = int_or_none(line.get("quantity"))
    line_id = text(line.get("id"))
    if not line_id or quantity is None or quantity < 1:
        logger.warning("Skipping unusable cart line", extra={"line": line_id})
        return None

    return CartItem(
        id=line_id,
        product_id=text(product.get("id"), line_id),
        variant_id=text(merchandise.get("id")) or None,
        quantity=quantity,
        price=parse_money(merchandise.get("price")) or Decimal("0"),
        compare_at_price=parse_money(merchandise.get("compareAtPrice")),
        title=text(product.get("title")) or None,
        variant_title=text(merchandise.get("title")) or None,
        image=text(as_dict(product.get("featuredImage")).get("url")) or None,
        handle=text(product.get("handle")) or None,
    )


def adapt_cart(payload: Any) -> Cart:
    """Build a Cart from the backend payload, wholesale.

    Shipping is not reported by the backend and is derived as
    ``total - subtotal - tax``. Raises ``StorefrontError`` when the payload
    lacks the fields a cart cannot exist without.
    """

    payload = as_dict(payload)
    cart_id = text(payload.get("id"))
    cost = as_dict(payload.get("cost"))
    subtotal = parse_money(cost.get("subtotalAmount"))
    total = parse_money(cost.get("totalAmount"))
    if not cart_id or subtotal is None or total is None:
        raise StorefrontError("Cart response is missing its id or cost", kind="data")
    if not is_valid_cart_payload(payload):
        logger.warning("Cart payload is incomplete", extra={"cart_id": cart_id})

    tax = parse_money(cost.get("totalTaxAmount")) or Decimal("0")
    shipping = total - subtotal - tax

    items = [
        item
        for item in (adapt_cart_line(line) for line in edges(payload.get("lines")))
        if item is not None
    ]
    total_quantity = int_or_none(payload.get("totalQuantity"))

    try:
        return Cart(
            id=cart_id,
            items=items,
            subtotal=subtotal,
            tax=tax,
            shipping=shipping,
            total=total,
            total_quantity=(
                total_quantity
                if total_quantity is not None
                else sum(item.quantity for item in items)
            ),
            checkout_url=text(payload.get("checkoutUrl")) or None,
            created_at=parse_timestamp(payload.get("createdAt")),
            updated_at=parse_timestamp(payload.get("updatedAt")),
        )
    except ValidationError as exc:
        raise StorefrontError(f"Malformed cart response: {exc}", kind="data") from exc
