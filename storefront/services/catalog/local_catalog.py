"""In-memory catalog backed by the bundled sample products."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path
from threading import RLock

from pydantic import TypeAdapter

from storefront.models.filters import PriceRange, ProductFilters, SortOption
from storefront.models.product import CategoryData, Product
from storefront.services.adapters.product_adapter import build_category_data

logger = logging.getLogger(__name__)

SAMPLE_PRODUCTS_PATH = Path(__file__).resolve().parents[2] / "data" / "sample_products.json"

_products_adapter = TypeAdapter(list[Product])


def create_default_filters() -> ProductFilters:
    return ProductFilters()


def apply_product_filters(
    products: Iterable[Product], filters: ProductFilters | None
) -> list[Product]:
    """Keep the products matching every active filter."""

    filtered = list(products)
    if filters is None:
        return filtered

    if filters.categories:
        filtered = [p for p in filtered if p.category in filters.categories]

    price_range = filters.price_range
    if price_range.has_min or price_range.has_max:
        filtered = [
            p
            for p in filtered
            if price_range.min <= float(p.effective_price) <= price_range.max
        ]

    if filters.in_stock_only:
        filtered = [p for p in filtered if p.in_stock]

    if filters.tags:
        wanted = set(filters.tags)
        filtered = [p for p in filtered if wanted.intersection(p.tags)]

    if filters.featured:
        filtered = [p for p in filtered if p.featured]

    if filters.on_sale:
        filtered = [p for p in filtered if p.on_sale]

    return filtered


def sort_products(
    products: Iterable[Product], sort: SortOption | None
) -> list[Product]:
    """Order products the way the catalog API would for ``sort``."""

    items = list(products)
    if sort is None:
        return items
    if sort is SortOption.PRICE_ASC:
        return sorted(items, key=lambda p: p.effective_price)
    if sort is SortOption.PRICE_DESC:
        return sorted(items, key=lambda p: p.effective_price, reverse=True)
    if sort is SortOption.NAME_ASC:
        return sorted(items, key=lambda p: p.name.casefold())
    if sort is SortOption.NAME_DESC:
        return sorted(items, key=lambda p: p.name.casefold(), reverse=True)
    if sort is SortOption.NEWEST:
        return sorted(items, key=lambda p: p.created_at, reverse=True)
    if sort is SortOption.POPULAR:
        # featured first, newest first within each group
        by_date = sorted(items, key=lambda p: p.created_at, reverse=True)
        return sorted(by_date, key=lambda p: not p.featured)
    if sort is SortOption.FEATURED:
        return sorted(items, key=lambda p: (not p.featured, p.name.casefold()))
    return items


def price_bounds(products: Iterable[Product]) -> PriceRange:
    """Cheapest and dearest effective price, for seeding a price slider."""

    prices = [float(p.effective_price) for p in products]
    if not prices:
        return PriceRange(min=0, max=100)
    return PriceRange(min=min(prices), max=max(prices))


def related_products(
    product: Product, products: Iterable[Product], limit: int = 4
) -> list[Product]:
    """Products sharing the category or a tag, best matches first.

    A shared category scores 2 and every shared tag scores 1; ties keep
    catalog order.
    """

    tags = set(product.tags)
    scored = []
    for candidate in products:
        if candidate.id == product.id:
            continue
        same_category = candidate.category == product.category
        shared_tags = len(tags.intersection(candidate.tags))
        if same_category or shared_tags:
            scored.append(((2 if same_category else 0) + shared_tags, candidate))
    scored.sort(key=lambda entry: entry[0], reverse=True)
    return [candidate for _, candidate in scored[:limit]]


class LocalCatalog:
    """Read-mostly product catalog kept in process memory."""

    def __init__(self, products: Iterable[Product] = ()) -> None:
        self._lock = RLock()
        self._products: dict[str, Product] = {}
        for product in products:
            self._products[product.id] = product

    @classmethod
    def from_file(cls, path: Path = SAMPLE_PRODUCTS_PATH) -> LocalCatalog:
        products = _products_adapter.validate_json(path.read_bytes())
        logger.info("Loaded %s local products from %s", len(products), path.name)
        return cls(products)

    def list_products(
        self,
        filters: ProductFilters | None = None,
        sort: SortOption | None = None,
    ) -> list[Product]:
        with self._lock:
            products = list(self._products.values())
        return sort_products(apply_product_filters(products, filters), sort)

    def get_product(self, product_id: str) -> Product | None:
        with self._lock:
            product = self._products.get(product_id)
            if product is not None:
                return product
            return next(
                (p for p in self._products.values() if p.handle == product_id),
                None,
            )

    def upsert(self, product: Product) -> None:
        with self._lock:
            self._products[product.id] = product
        logger.debug("Upserted local product %s", product.id)

    def categories(self) -> list[CategoryData]:
        categories = build_category_data(self.list_products())
        # the whole catalog is in memory, so these counts are exact
        return [c.model_copy(update={"count_is_approximate": False}) for c in categories]

    def related(self, product: Product, limit: int = 4) -> list[Product]:
        return related_products(product, self.list_products(), limit)

    def price_bounds(self) -> PriceRange:
        return price_bounds(self.list_products())


_local_catalog: LocalCatalog | None = None


def get_local_catalog() -> LocalCatalog:
    """FastAPI dependency factory."""

    global _local_catalog
    if _local_catalog is None:
        _local_catalog = LocalCatalog.from_file()
    return _local_catalog
