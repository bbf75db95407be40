"""Tests for compiling filter, sort and search state into catalog queries."""

import pytest

from storefront.models.filters import PriceRange, ProductFilters, SortOption
from storefront.models.product import ProductCategory
from storefront.services.catalog.query_compiler import (
    compile_filters,
    compile_query,
    compile_sort,
)


def test_empty_state_compiles_to_absent_query():
    compiled = compile_query(ProductFilters(), "   ", None)

    assert compiled.query is None
    assert compiled.sort.sort_key == "UPDATED_AT"
    assert compiled.sort.reverse is True


def test_category_clause_is_a_single_disjunction():
    filters = ProductFilters(
        categories=[ProductCategory.BOOKS, ProductCategory.GIFTS]
    )

    assert compile_filters(filters) == (
        "(product_type:Books OR tag:books OR tag:education "
        "OR product_type:Gifts OR tag:gifts)"
    )


def test_default_price_bounds_emit_nothing():
    assert compile_filters(ProductFilters(price_range=PriceRange())) == ""


def test_non_default_price_bounds_are_appended():
    filters = ProductFilters(price_range=PriceRange(min=10, max=49.5))

    assert compile_filters(filters) == "variants.price:>=10 AND variants.price:<=49.5"


def test_flags_and_tags_are_conjoined():
    filters = ProductFilters(
        in_stock_only=True,
        featured=True,
        on_sale=True,
        tags=["rescue", "bella", "rescue"],
    )

    assert compile_filters(filters) == (
        "available:true AND tag:featured AND compare_at_price:>0 "
        "AND (tag:rescue OR tag:bella)"
    )


def test_search_text_is_conjoined_with_filters():
    filters = ProductFilters(categories=[ProductCategory.APPAREL], in_stock_only=True)

    compiled = compile_query(filters, "  pig hoodie ", SortOption.PRICE_ASC)

    assert compiled.query == (
        "(pig hoodie) AND (product_type:Apparel OR tag:apparel OR tag:clothing) "
        "AND available:true"
    )
    assert compiled.sort.sort_key == "PRICE"
    assert compiled.sort.reverse is False


def test_search_alone_is_the_whole_query():
    assert compile_query(None, "mug").query == "mug"


@pytest.mark.parametrize(
    ("option", "sort_key", "reverse"),
    [
        (SortOption.PRICE_ASC, "PRICE", False),
        (SortOption.PRICE_DESC, "PRICE", True),
        (SortOption.NAME_ASC, "TITLE", False),
        (SortOption.NAME_DESC, "TITLE", True),
        (SortOption.NEWEST, "CREATED_AT", True),
        (SortOption.POPULAR, "BEST_SELLING", True),
        (SortOption.FEATURED, "UPDATED_AT", True),
    ],
)
def test_sort_table(option, sort_key, reverse):
    backend_sort = compile_sort(option)

    assert backend_sort.sort_key == sort_key
    assert backend_sort.reverse is reverse


def test_inverted_price_range_is_rejected():
    with pytest.raises(ValueError):
        PriceRange(min=50, max=10)


def test_search_with_operators_is_grouped_before_filters():
    compiled = compile_query(ProductFilters(featured=True), "mug OR tee")

    assert compiled.query == "(mug OR tee) AND tag:featured"
    assert compile_query(None, "mug OR tee").query == "mug OR tee"
