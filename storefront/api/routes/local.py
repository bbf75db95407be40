"""Routes for the locally priced catalog and cart."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel

from storefront.api.dependencies import FiltersDependency, http_error
from storefront.models.cart import Cart, LocalAddItemRequest, LocalUpdateItemRequest
from storefront.models.errors import NotFoundError
from storefront.models.filters import PriceRange, SortOption
from storefront.models.product import CategoryData, Product
from storefront.services.cart.local_cart import LocalCartDependency
from storefront.services.cart.pricing import amount_until_free_shipping
from storefront.services.catalog.local_catalog import LocalCatalog, get_local_catalog
from storefront.services.search.search_engine import search_products

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/local", tags=["local"])

CatalogDependency = Annotated[LocalCatalog, Depends(get_local_catalog)]


class ShippingStatus(BaseModel):
    subtotal: Decimal
    free_shipping_threshold: Decimal
    amount_until_free_shipping: Decimal
    qualifies_for_free_shipping: bool


@router.get("/products", response_model=list[Product])
async def list_products(
    catalog: CatalogDependency,
    filters: FiltersDependency,
    q: str | None = None,
    sort: SortOption | None = None,
) -> list[Product]:
    products = catalog.list_products(filters, sort)
    return search_products(products, q)


@router.get("/products/{product_id}", response_model=Product)
async def get_product(product_id: str, catalog: CatalogDependency) -> Product:
    product = catalog.get_product(product_id)
    if product is None:
        raise http_error(NotFoundError(f"Product {product_id} not found"))
    return product


@router.get("/products/{product_id}/related", response_model=list[Product])
async def related_products(
    product_id: str,
    catalog: CatalogDependency,
    limit: Annotated[int, Query(ge=1, le=12)] = 4,
) -> list[Product]:
    product = catalog.get_product(product_id)
    if product is None:
        raise http_error(NotFoundError(f"Product {product_id} not found"))
    return catalog.related(product, limit)


@router.get("/categories", response_model=list[CategoryData])
async def list_categories(catalog: CatalogDependency) -> list[CategoryData]:
    return catalog.categories()


@router.get("/price-range", response_model=PriceRange)
async def price_range(catalog: CatalogDependency) -> PriceRange:
    return catalog.price_bounds()


@router.get("/cart", response_model=Cart)
async def get_cart(service: LocalCartDependency) -> Cart:
    return await service.get_cart()


@router.post("/cart/items", response_model=Cart, status_code=status.HTTP_201_CREATED)
async def add_item(payload: LocalAddItemRequest, service: LocalCartDependency) -> Cart:
    """Add a product (optionally a specific variant) to the local cart."""

    if payload.quantity < 1:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"message": "Quantity must be at least 1"},
        )
    try:
        return await service.add_item(
            payload.product_id, payload.variant_id, payload.quantity
        )
    except NotFoundError as exc:
        raise http_error(exc) from exc


@router.patch("/cart/items/{item_id}", response_model=Cart)
async def update_item(
    item_id: str, payload: LocalUpdateItemRequest, service: LocalCartDependency
) -> Cart:
    """Zero or less removes the item; above the per-line cap clamps."""

    try:
        return await service.update_item(item_id, payload.quantity)
    except NotFoundError as exc:
        raise http_error(exc) from exc


@router.delete("/cart/items/{item_id}", response_model=Cart)
async def remove_item(item_id: str, service: LocalCartDependency) -> Cart:
    try:
        return await service.remove_item(item_id)
    except NotFoundError as exc:
        raise http_error(exc) from exc


@router.delete("/cart", response_model=Cart)
async def clear_cart(service: LocalCartDependency) -> Cart:
    return await service.clear()


@router.post("/cart/refresh", response_model=Cart, summary="Re-capture line prices")
async def refresh_cart(service: LocalCartDependency) -> Cart:
    return await service.refresh_prices()


@router.get("/cart/shipping", response_model=ShippingStatus)
async def shipping_status(service: LocalCartDependency) -> ShippingStatus:
    cart = await service.get_cart()
    remaining = amount_until_free_shipping(cart.subtotal, service.config)
    return ShippingStatus(
        subtotal=cart.subtotal,
        free_shipping_threshold=service.config.free_shipping_threshold,
        amount_until_free_shipping=remaining,
        qualifies_for_free_shipping=bool(cart.items) and remaining == 0,
    )
