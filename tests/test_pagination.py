"""Tests for cursor pagination over the backend catalog."""

import asyncio

import pytest

from storefront.models.errors import NotFoundError, StorefrontError
from storefront.models.filters import ProductFilters, SortOption
from storefront.models.product import ProductCategory
from storefront.services.catalog.pagination import (
    CatalogPaginator,
    fetch_catalog_page,
    fetch_collection_page,
)


@pytest.mark.asyncio
async def test_fetch_catalog_page_sends_compiled_query(storefront_backend):
    filters = ProductFilters(categories=[ProductCategory.GIFTS])

    page = await fetch_catalog_page(
        storefront_backend,
        filters=filters,
        sort=SortOption.NEWEST,
        search="mug",
        page_size=2,
    )

    name, kwargs = storefront_backend.calls[-1]
    assert name == "get_products"
    assert kwargs == {
        "first": 2,
        "after": None,
        "query": "mug AND (product_type:Gifts OR tag:gifts)",
        "sort_key": "CREATED_AT",
        "reverse": True,
    }
    assert len(page.products) == 2
    assert page.has_next_page is True
    assert page.end_cursor == "cursor-1"


@pytest.mark.asyncio
async def test_load_more_appends_pages_in_cursor_order(storefront_backend):
    paginator = CatalogPaginator(storefront_backend, page_size=2)

    await paginator.fetch_first_page()
    await paginator.load_more()
    await paginator.load_more()

    assert [p.handle for p in paginator.products] == [
        "classic-tee",
        "bella-hoodie",
        "heroes-mug",
        "care-guide",
        "rescue-calendar",
    ]
    assert paginator.has_next_page is False
    assert paginator.error is None
    assert [kwargs["after"] for _, kwargs in storefront_backend.calls] == [
        None,
        "cursor-1",
        "cursor-3",
    ]


@pytest.mark.asyncio
async def test_load_more_without_next_page_is_a_no_op(storefront_backend):
    paginator = CatalogPaginator(storefront_backend, page_size=10)
    await paginator.fetch_first_page()
    calls = len(storefront_backend.calls)
    products = list(paginator.products)

    assert await paginator.load_more() is None
    assert len(storefront_backend.calls) == calls
    assert paginator.products == products


@pytest.mark.asyncio
async def test_load_more_before_first_page_is_a_no_op(storefront_backend):
    paginator = CatalogPaginator(storefront_backend, page_size=2)

    await paginator.load_more()

    assert storefront_backend.calls == []
    assert paginator.products == []


@pytest.mark.asyncio
async def test_load_more_while_in_flight_is_a_no_op(storefront_backend):
    paginator = CatalogPaginator(storefront_backend, page_size=2)
    await paginator.fetch_first_page()
    storefront_backend.delay = 0.05

    first = asyncio.create_task(paginator.load_more())
    await asyncio.sleep(0)
    await paginator.load_more()
    await first

    assert len(paginator.products) == 4
    assert len(storefront_backend.calls) == 2


@pytest.mark.asyncio
async def test_failed_page_keeps_previous_state(storefront_backend):
    paginator = CatalogPaginator(storefront_backend, page_size=2)
    await paginator.fetch_first_page()
    storefront_backend.fail_with = StorefrontError("HTTP error! status: 500", kind="transport")

    error = await paginator.load_more()

    assert error.message == "HTTP error! status: 500"
    assert paginator.error == error
    assert len(paginator.products) == 2
    assert paginator.end_cursor == "cursor-1"
    assert paginator.loading is False


@pytest.mark.asyncio
async def test_refetch_restarts_from_first_page(storefront_backend):
    paginator = CatalogPaginator(storefront_backend, page_size=2)
    await paginator.fetch_first_page(sort=SortOption.PRICE_DESC, search="tee")
    await paginator.load_more()

    await paginator.refetch()

    assert len(paginator.products) == 2
    name, kwargs = storefront_backend.calls[-1]
    assert kwargs["after"] is None
    assert kwargs["query"] == "tee"
    assert kwargs["sort_key"] == "PRICE"


@pytest.mark.asyncio
async def test_superseded_first_page_is_dropped(storefront_backend):
    paginator = CatalogPaginator(storefront_backend, page_size=2)
    storefront_backend.delay = 0.05
    stale = asyncio.create_task(paginator.fetch_first_page(search="old"))
    await asyncio.sleep(0.01)
    storefront_backend.delay = 0
    storefront_backend.products = storefront_backend.products[2:]

    await paginator.fetch_first_page(search="new")
    await stale

    assert paginator.search == "new"
    assert [p.handle for p in paginator.products] == ["heroes-mug", "care-guide"]
    assert paginator.generation == 2


@pytest.mark.asyncio
async def test_paginator_categories_use_loaded_products(storefront_backend):
    paginator = CatalogPaginator(storefront_backend, page_size=2)
    await paginator.fetch_first_page()

    counts = {c.id: c.product_count for c in paginator.categories()}

    assert counts[ProductCategory.APPAREL] == 2
    assert all(c.count_is_approximate for c in paginator.categories())


@pytest.mark.asyncio
async def test_unknown_collection_raises_not_found(storefront_backend):
    with pytest.raises(NotFoundError):
        await fetch_collection_page(storefront_backend, "missing")


@pytest.mark.asyncio
async def test_collection_page(storefront_backend):
    page = await fetch_collection_page(
        storefront_backend, "best-sellers", sort=SortOption.NAME_ASC
    )

    assert [p.handle for p in page.products] == ["classic-tee", "bella-hoodie"]
    _, kwargs = storefront_backend.calls[-1]
    assert kwargs["sort_key"] == "TITLE"


@pytest.mark.asyncio
async def test_failed_first_page_keeps_cursor_paired_with_its_query(storefront_backend):
    paginator = CatalogPaginator(storefront_backend, page_size=2)
    await paginator.fetch_first_page()
    storefront_backend.fail_with = StorefrontError("HTTP error! status: 500", kind="transport")

    error = await paginator.fetch_first_page(
        ProductFilters(categories=[ProductCategory.BOOKS])
    )
    storefront_backend.fail_with = None
    await paginator.load_more()

    assert error.message == "HTTP error! status: 500"
    assert paginator.filters is None
    name, kwargs = storefront_backend.calls[-1]
    assert name == "get_products"
    assert kwargs["after"] == "cursor-1"
    assert kwargs["query"] is None
    assert [p.handle for p in paginator.products] == [
        "classic-tee",
        "bella-hoodie",
        "heroes-mug",
        "care-guide",
    ]
