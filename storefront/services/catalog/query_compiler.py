"""Compile structured filter/sort/search state into the catalog query grammar."""

from __future__ import annotations

from storefront.models.filters import (
    BackendSort,
    CompiledQuery,
    ProductFilters,
    SortOption,
)
from storefront.models.product import ProductCategory

CATEGORY_PREDICATES: dict[ProductCategory, tuple[str, ...]] = {
    ProductCategory.APPAREL: (
        "product_type:Apparel",
        "tag:apparel",
        "tag:clothing",
    ),
    ProductCategory.ACCESSORIES: ("product_type:Accessories", "tag:accessories"),
    ProductCategory.BOOKS: ("product_type:Books", "tag:books", "tag:education"),
    ProductCategory.GIFTS: ("product_type:Gifts", "tag:gifts"),
    ProductCategory.SEASONAL: (
        "product_type:Seasonal",
        "tag:seasonal",
        "tag:holiday",
    ),
}

SORT_TABLE: dict[SortOption, BackendSort] = {
    SortOption.PRICE_ASC: BackendSort(sort_key="PRICE", reverse=False),
    SortOption.PRICE_DESC: BackendSort(sort_key="PRICE", reverse=True),
    SortOption.NAME_ASC: BackendSort(sort_key="TITLE", reverse=False),
    SortOption.NAME_DESC: BackendSort(sort_key="TITLE", reverse=True),
    SortOption.NEWEST: BackendSort(sort_key="CREATED_AT", reverse=True),
    SortOption.POPULAR: BackendSort(sort_key="BEST_SELLING", reverse=True),
    SortOption.FEATURED: BackendSort(sort_key="UPDATED_AT", reverse=True),
}

AND = " AND "
OR = " OR "


def _format_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def _any_of(predicates: list[str]) -> str:
    return f"({OR.join(predicates)})"


def compile_filters(filters: ProductFilters | None) -> str:
    """Return the conjunctive filter clause, or an empty string."""

    if filters is None:
        return ""

    parts: list[str] = []

    if filters.categories:
        predicates: list[str] = []
        for category in dict.fromkeys(filters.categories):
            predicates.extend(CATEGORY_PREDICATES[category])
        parts.append(_any_of(predicates))

    if filters.price_range.has_min:
        parts.append(f"variants.price:>={_format_number(filters.price_range.min)}")
    if filters.price_range.has_max:
        parts.append(f"variants.price:<={_format_number(filters.price_range.max)}")

    if filters.in_stock_only:
        parts.append("available:true")

    if filters.featured:
        parts.append("tag:featured")

    if filters.on_sale:
        parts.append("compare_at_price:>0")

    tags = [tag.strip() for tag in filters.tags if tag and tag.strip()]
    if tags:
        parts.append(_any_of([f"tag:{tag}" for tag in dict.fromkeys(tags)]))

    return AND.join(parts)


def compile_search(text: str | None) -> str:
    return (text or "").strip()


def compile_sort(option: SortOption | None) -> BackendSort:
    if option is None:
        option = SortOption.FEATURED
    return SORT_TABLE[option].model_copy()


def compile_query(
    filters: ProductFilters | None = None,
    search: str | None = None,
    sort: SortOption | None = None,
) -> CompiledQuery:
    """Combine search text and filters with a conjunction.

    Returns ``query=None`` when neither contributes a clause. Multi-term
    search text is grouped so that the filters apply to all of it.
    """

    text = compile_search(search)
    clause = compile_filters(filters)
    if text and clause and len(text.split()) > 1:
        text = f"({text})"
    clauses = [part for part in (text, clause) if part]
    query = AND.join(clauses) if clauses else None
    return CompiledQuery(query=query, sort=compile_sort(sort))
