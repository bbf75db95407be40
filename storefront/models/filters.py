"""Filter, sort and catalog page models."""

from __future__ import annotations

import sys
from enum import Enum

from pydantic import BaseModel, Field, model_validator

from storefront.models.product import Product, ProductCategory

# Upper bound meaning "no maximum price"; kept explicit instead of None.
PRICE_UNBOUNDED: float = sys.float_info.max


class PriceRange(BaseModel):
    min: float = Field(0, ge=0)
    max: float = Field(PRICE_UNBOUNDED, ge=0)

    @model_validator(mode="after")
    def _check_bounds(self) -> PriceRange:
        if self.min > self.max:
            raise ValueError("price range minimum cannot exceed its maximum")
        return self

    @property
    def has_min(self) -> bool:
        return self.min > 0

    @property
    def has_max(self) -> bool:
        return self.max < PRICE_UNBOUNDED


class ProductFilters(BaseModel):
    """Structured filter state selected by the shopper."""

    categories: list[ProductCategory] = Field(default_factory=list)
    price_range: PriceRange = Field(default_factory=PriceRange)
    in_stock_only: bool = False
    featured: bool = False
    on_sale: bool = False
    tags: list[str] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (
            self.categories
            or self.price_range.has_min
            or self.price_range.has_max
            or self.in_stock_only
            or self.featured
            or self.on_sale
            or self.tags
        )


class SortOption(str, Enum):
    PRICE_ASC = "price-asc"
    PRICE_DESC = "price-desc"
    NAME_ASC = "name-asc"
    NAME_DESC = "name-desc"
    NEWEST = "newest"
    POPULAR = "popular"
    FEATURED = "featured"


class BackendSort(BaseModel):
    """Sort key and direction in the backend's vocabulary."""

    sort_key: str
    reverse: bool = False


class CompiledQuery(BaseModel):
    """Query string and sort ready to be sent to the catalog API."""

    query: str | None = None
    sort: BackendSort


class CatalogPage(BaseModel):
    """One adapted page of the catalog."""

    products: list[Product] = Field(default_factory=list)
    has_next_page: bool = False
    has_previous_page: bool = False
    end_cursor: str | None = None
