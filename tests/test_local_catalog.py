"""Tests for the bundled catalog and its local filter/sort."""

from storefront.models.filters import PriceRange, ProductFilters, SortOption
from storefront.models.product import ProductCategory
from storefront.services.catalog.local_catalog import (
    apply_product_filters,
    create_default_filters,
    price_bounds,
    related_products,
    sort_products,
)


def test_sample_catalog_loads(local_catalog):
    products = local_catalog.list_products()

    assert len(products) == 8
    assert local_catalog.get_product("harmony-classic-tee").name.startswith("Harmony")
    assert local_catalog.get_product("missing") is None


def test_default_filters_keep_everything(local_catalog):
    products = local_catalog.list_products()

    assert create_default_filters().is_empty
    assert apply_product_filters(products, create_default_filters()) == products


def test_filters_combine(local_catalog):
    filters = ProductFilters(
        categories=[ProductCategory.APPAREL, ProductCategory.ACCESSORIES],
        price_range=PriceRange(min=10, max=30),
        in_stock_only=True,
    )

    names = [p.id for p in local_catalog.list_products(filters)]

    assert sorted(names) == ["harmony-classic-tee", "rescue-heroes-mug", "sanctuary-tote-bag"]


def test_on_sale_and_tag_filters(local_catalog):
    on_sale = local_catalog.list_products(ProductFilters(on_sale=True))
    tagged = local_catalog.list_products(ProductFilters(tags=["holiday", "mug"]))

    assert {p.id for p in on_sale} == {"bella-pig-hoodie", "rescue-stories-calendar"}
    assert {p.id for p in tagged} == {"rescue-stories-calendar", "rescue-heroes-mug"}


def test_price_filter_uses_sale_price(local_catalog):
    products = local_catalog.list_products(
        ProductFilters(price_range=PriceRange(min=39, max=40))
    )

    assert [p.id for p in products] == ["bella-pig-hoodie"]


def test_sort_by_price(local_catalog):
    products = local_catalog.list_products(sort=SortOption.PRICE_ASC)

    prices = [p.effective_price for p in products]
    assert prices == sorted(prices)
    assert products[0].id == "supporter-sticker-pack"


def test_popular_puts_featured_first_then_newest(local_catalog):
    products = sort_products(local_catalog.list_products(), SortOption.POPULAR)

    featured = [p for p in products if p.featured]
    assert products[: len(featured)] == featured
    assert products[0].id == "rescue-stories-calendar"


def test_featured_sort_orders_by_name_within_group(local_catalog):
    products = sort_products(local_catalog.list_products(), SortOption.FEATURED)

    featured_names = [p.name for p in products if p.featured]
    assert featured_names == sorted(featured_names, key=str.casefold)
    assert products[-1].featured is False


def test_price_bounds(local_catalog):
    bounds = local_catalog.price_bounds()

    assert bounds.min == 8.99
    assert bounds.max == 39.99
    assert price_bounds([]) == PriceRange(min=0, max=100)


def test_local_category_counts_are_exact(local_catalog):
    categories = {c.id: c for c in local_catalog.categories()}

    assert categories[ProductCategory.ACCESSORIES].product_count == 3
    assert categories[ProductCategory.ACCESSORIES].count_is_approximate is False


def test_related_products_share_category(local_catalog):
    mug = local_catalog.get_product("rescue-heroes-mug")

    related = local_catalog.related(mug)

    assert [p.id for p in related] == ["sanctuary-tote-bag", "supporter-sticker-pack"]


def test_related_products_rank_category_and_shared_tags(local_catalog):
    hoodie = local_catalog.get_product("bella-pig-hoodie")
    pig_mug = local_catalog.get_product("rescue-heroes-mug").model_copy(
        update={
            "id": "pig-mug",
            "category": ProductCategory.GIFTS,
            "tags": ["pig", "rescue", "bella"],
        }
    )
    products = [*local_catalog.list_products(), pig_mug]

    assert [p.id for p in related_products(hoodie, products)] == [
        "pig-mug",
        "harmony-classic-tee",
    ]
    assert [p.id for p in related_products(hoodie, products, limit=1)] == ["pig-mug"]
