"""Request parsing and error translation shared by the routers."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import Depends, HTTPException, Query, status
from pydantic import ValidationError

from storefront.models.errors import ErrorPayload, NotFoundError, normalize_error
from storefront.models.filters import PRICE_UNBOUNDED, PriceRange, ProductFilters
from storefront.models.product import ProductCategory
from storefront.services.cart.cart_service import CartService
from storefront.services.clients.storefront_client import (
    StorefrontClient,
    get_storefront_client,
)
from storefront.services.storage.state_store import StateDependency

logger = logging.getLogger(__name__)


def http_error(error: Exception | ErrorPayload) -> HTTPException:
    """Translate a failure into an HTTP error with a ``{message}`` detail."""

    code = (
        status.HTTP_404_NOT_FOUND
        if isinstance(error, NotFoundError)
        else status.HTTP_502_BAD_GATEWAY
    )
    return HTTPException(status_code=code, detail=normalize_error(error).model_dump())


def require_storefront_client(
    client: Annotated[StorefrontClient | None, Depends(get_storefront_client)],
) -> StorefrontClient:
    if client is None:
        logger.warning("Catalog requested but the storefront backend is not configured")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"message": "Storefront backend is not configured"},
        )
    return client


def product_filters(
    categories: Annotated[list[ProductCategory] | None, Query()] = None,
    min_price: Annotated[float, Query(ge=0)] = 0,
    max_price: Annotated[float | None, Query(ge=0)] = None,
    in_stock_only: bool = False,
    featured: bool = False,
    on_sale: bool = False,
    tags: Annotated[list[str] | None, Query()] = None,
) -> ProductFilters:
    """Build ``ProductFilters`` from query parameters."""

    try:
        price_range = PriceRange(
            min=min_price,
            max=PRICE_UNBOUNDED if max_price is None else max_price,
        )
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"message": "min_price cannot exceed max_price"},
        ) from exc

    return ProductFilters(
        categories=categories or [],
        price_range=price_range,
        in_stock_only=in_stock_only,
        featured=featured,
        on_sale=on_sale,
        tags=tags or [],
    )


StorefrontClientDependency = Annotated[
    StorefrontClient, Depends(require_storefront_client)
]
FiltersDependency = Annotated[ProductFilters, Depends(product_filters)]


_cart_service: CartService | None = None


def get_cart_service(
    client: StorefrontClientDependency,
    state: StateDependency,
) -> CartService:
    """FastAPI dependency returning the process-wide backend cart service."""

    global _cart_service
    if _cart_service is None:
        _cart_service = CartService(client, state)
    return _cart_service


CartServiceDependency = Annotated[CartService, Depends(get_cart_service)]
