"""Forward-only cursor pagination over the backend catalog."""

from __future__ import annotations

import logging

from storefront.config import settings
from storefront.models.errors import ErrorPayload, NotFoundError, normalize_error
from storefront.models.filters import CatalogPage, ProductFilters, SortOption
from storefront.models.product import CategoryData, Product
from storefront.services.adapters.product_adapter import (
    adapt_product_connection,
    build_category_data,
)
from storefront.services.catalog.query_compiler import compile_query, compile_sort
from storefront.services.clients.storefront_client import StorefrontClient

logger = logging.getLogger(__name__)


async def fetch_catalog_page(
    client: StorefrontClient,
    *,
    filters: ProductFilters | None = None,
    sort: SortOption | None = None,
    search: str | None = None,
    after: str | None = None,
    page_size: int | None = None,
) -> CatalogPage:
    """Compile the query, fetch one page and adapt it."""

    compiled = compile_query(filters, search, sort)
    connection = await client.get_products(
        first=page_size or settings.CATALOG_PAGE_SIZE,
        after=after,
        query=compiled.query,
        sort_key=compiled.sort.sort_key,
        reverse=compiled.sort.reverse,
    )
    products, page_info = adapt_product_connection(connection)
    return CatalogPage(products=products, **page_info)


async def fetch_collection_page(
    client: StorefrontClient,
    handle: str,
    *,
    sort: SortOption | None = None,
    after: str | None = None,
    page_size: int | None = None,
) -> CatalogPage:
    """Fetch one page of a collection's products."""

    backend_sort = compile_sort(sort)
    collection = await client.get_collection_products(
        handle,
        first=page_size or settings.CATALOG_PAGE_SIZE,
        after=after,
        sort_key=backend_sort.sort_key,
        reverse=backend_sort.reverse,
    )
    if collection is None:
        raise NotFoundError(f"Collection {handle} not found")
    products, page_info = adapt_product_connection(collection.get("products"))
    return CatalogPage(products=products, **page_info)


class CatalogPaginator:
    """Holds the loaded product list and the forward cursor.

    Pages are appended strictly in cursor order. A first-page fetch bumps the
    generation so that any response belonging to an older generation is
    dropped instead of overwriting newer state.
    """

    def __init__(
        self,
        client: StorefrontClient,
        *,
        page_size: int | None = None,
    ) -> None:
        self._client = client
        self._page_size = page_size or settings.CATALOG_PAGE_SIZE
        self._generation = 0

        self.products: list[Product] = []
        self.end_cursor: str | None = None
        self.has_next_page = False
        self.loading = False
        self.error: ErrorPayload | None = None

        self.filters: ProductFilters | None = None
        self.sort: SortOption | None = None
        self.search: str | None = None

    @property
    def generation(self) -> int:
        return self._generation

    async def fetch_first_page(
        self,
        filters: ProductFilters | None = None,
        sort: SortOption | None = None,
        search: str | None = None,
    ) -> ErrorPayload | None:
        """Replace the product list with the first page for the given state.

        The new query only becomes current once its first page arrives, so a
        failed fetch leaves the previous query and its cursor paired.
        """

        self._generation += 1
        generation = self._generation
        self.loading = True
        try:
            page = await self._fetch(filters, sort, search, after=None)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            return self._record_failure(generation, exc)
        finally:
            if generation == self._generation:
                self.loading = False

        if generation != self._generation:
            logger.debug("Dropping superseded first page (generation %s)", generation)
            return None

        self.filters, self.sort, self.search = filters, sort, search
        self.products = list(page.products)
        self._apply_page_info(page)
        self.error = None
        logger.info(
            "Loaded first catalog page",
            extra={"count": len(page.products), "has_next": page.has_next_page},
        )
        return None

    async def load_more(self) -> ErrorPayload | None:
        """Append the next page; a no-op without cursor, next page or idle state."""

        if not self.end_cursor or not self.has_next_page or self.loading:
            return None

        generation = self._generation
        self.loading = True
        try:
            page = await self._fetch(
                self.filters, self.sort, self.search, after=self.end_cursor
            )
        except Exception as exc:  # pylint: disable=broad-exception-caught
            return self._record_failure(generation, exc)
        finally:
            if generation == self._generation:
                self.loading = False

        if generation != self._generation:
            logger.debug("Dropping page fetched for a superseded query")
            return None

        self.products = [*self.products, *page.products]
        self._apply_page_info(page)
        self.error = None
        return None

    async def refetch(self) -> ErrorPayload | None:
        """Clear the cursor and reload the first page for the current state."""

        self.end_cursor = None
        return await self.fetch_first_page(self.filters, self.sort, self.search)

    def categories(self) -> list[CategoryData]:
        """Category facets for the loaded products (approximate counts)."""
        return build_category_data(self.products)

    async def _fetch(
        self,
        filters: ProductFilters | None,
        sort: SortOption | None,
        search: str | None,
        *,
        after: str | None,
    ) -> CatalogPage:
        return await fetch_catalog_page(
            self._client,
            filters=filters,
            sort=sort,
            search=search,
            after=after,
            page_size=self._page_size,
        )

    def _apply_page_info(self, page: CatalogPage) -> None:
        self.has_next_page = page.has_next_page
        self.end_cursor = page.end_cursor

    def _record_failure(self, generation: int, exc: Exception) -> ErrorPayload:
        error = normalize_error(exc)
        logger.error("Error fetching products: %s", error.message)
        if generation == self._generation:
            self.error = error
        return error
