"""Catalog routes backed by the commerce backend."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from storefront.api.dependencies import (
    FiltersDependency,
    StorefrontClientDependency,
    http_error,
)
from storefront.config import settings
from storefront.models.errors import StorefrontError
from storefront.models.filters import CatalogPage, SortOption
from storefront.models.product import CategoryData, Collection, Product
from storefront.services.adapters.product_adapter import (
    adapt_collection_connection,
    adapt_product,
    build_category_data,
)
from storefront.services.catalog.pagination import (
    fetch_catalog_page,
    fetch_collection_page,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["catalog"])


@router.get(
    "/products",
    response_model=CatalogPage,
    summary="Fetch one page of the filtered catalog",
)
async def list_products(
    client: StorefrontClientDependency,
    filters: FiltersDependency,
    q: str | None = None,
    sort: SortOption | None = None,
    after: str | None = None,
) -> CatalogPage:
    """Pass ``end_cursor`` of the previous page as ``after`` to load more."""

    try:
        return await fetch_catalog_page(
            client, filters=filters, sort=sort, search=q, after=after
        )
    except StorefrontError as exc:
        logger.error("Error fetching products: %s", exc.message)
        raise http_error(exc) from exc


@router.get("/products/{handle}", response_model=Product)
async def get_product(handle: str, client: StorefrontClientDependency) -> Product:
    try:
        node = await client.get_product(handle)
    except StorefrontError as exc:
        logger.error("Error fetching product %s: %s", handle, exc.message)
        raise http_error(exc) from exc

    if node is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"message": f"Product {handle} not found"},
        )
    return adapt_product(node)


@router.get("/categories", response_model=list[CategoryData])
async def list_categories(client: StorefrontClientDependency) -> list[CategoryData]:
    """Category facets counted over the first catalog page."""

    try:
        page = await fetch_catalog_page(client)
    except StorefrontError as exc:
        raise http_error(exc) from exc
    return build_category_data(page.products)


@router.get("/collections", response_model=list[Collection])
async def list_collections(client: StorefrontClientDependency) -> list[Collection]:
    try:
        connection = await client.get_collections(
            first=settings.COLLECTIONS_PAGE_SIZE
        )
    except StorefrontError as exc:
        logger.error("Error fetching collections: %s", exc.message)
        raise http_error(exc) from exc
    return adapt_collection_connection(connection)


@router.get("/collections/{handle}/products", response_model=CatalogPage)
async def list_collection_products(
    handle: str,
    client: StorefrontClientDependency,
    sort: SortOption | None = None,
    after: str | None = None,
) -> CatalogPage:
    try:
        return await fetch_collection_page(client, handle, sort=sort, after=after)
    except StorefrontError as exc:
        logger.error("Error fetching collection %s: %s", handle, exc.message)
        raise http_error(exc) from exc
