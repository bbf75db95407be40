"""Routes for the backend-owned cart."""

from __future__ import annotations

import logging

from fastapi import APIRouter

from storefront.api.dependencies import CartServiceDependency, http_error
from storefront.models.cart import AddLineRequest, Cart, CartResult, UpdateLineRequest
from storefront.models.errors import ErrorPayload
from storefront.services.cart.cart_service import CartService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cart", tags=["cart"])


def _unwrap(result: CartResult) -> Cart:
    if result.cart is None:
        raise http_error(result.error or ErrorPayload(message="Cart is not available"))
    return result.cart


async def _ready(service: CartService) -> None:
    _unwrap(await service.ensure_cart())


@router.get("", response_model=Cart)
async def get_cart(service: CartServiceDependency, refresh: bool = False) -> Cart:
    """Return the active cart, creating or restoring it on first use."""

    result = await service.ensure_cart()
    if refresh and result.ok:
        result = await service.get_cart()
    return _unwrap(result)


@router.post("/lines", response_model=Cart, summary="Add merchandise to the cart")
async def add_line(payload: AddLineRequest, service: CartServiceDependency) -> Cart:
    await _ready(service)
    logger.info(
        "Adding line to cart",
        extra={"merchandise_id": payload.merchandise_id, "quantity": payload.quantity},
    )
    return _unwrap(await service.add_line(payload.merchandise_id, payload.quantity))


@router.patch("/lines/{line_id:path}", response_model=Cart)
async def update_line(
    line_id: str, payload: UpdateLineRequest, service: CartServiceDependency
) -> Cart:
    """Set a line's quantity; zero removes the line."""

    await _ready(service)
    return _unwrap(await service.update_line(line_id, payload.quantity))


@router.delete("/lines/{line_id:path}", response_model=Cart)
async def remove_line(line_id: str, service: CartServiceDependency) -> Cart:
    await _ready(service)
    return _unwrap(await service.remove_line(line_id))


@router.delete("", response_model=Cart, summary="Replace the cart with an empty one")
async def clear_cart(service: CartServiceDependency) -> Cart:
    return _unwrap(await service.clear())


@router.get("/checkout")
async def checkout(service: CartServiceDependency) -> dict[str, str | None]:
    await _ready(service)
    return {"checkout_url": service.checkout_url}
