"""Product search, typeahead suggestions and recent-query memory."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable

from storefront.config import settings
from storefront.models.product import Product
from storefront.services.storage.state_store import StorefrontState

logger = logging.getLogger(__name__)

ProductSource = Callable[[], Iterable[Product]]


def search_products(products: Iterable[Product], query: str | None) -> list[Product]:
    """Case-insensitive substring match over the searchable product fields.

    A blank query matches everything.
    """

    items = list(products)
    term = (query or "").strip().lower()
    if not term:
        return items

    def matches(product: Product) -> bool:
        return (
            term in product.name.lower()
            or term in product.description.lower()
            or term in product.short_description.lower()
            or any(term in tag.lower() for tag in product.tags)
            or term in product.category.value
        )

    return [product for product in items if matches(product)]


def search_suggestions(
    products: Iterable[Product],
    query: str | None,
    limit: int | None = None,
) -> list[str]:
    """Typeahead suggestions: name prefixes, then name substrings, then tags."""

    limit = settings.SUGGESTION_LIMIT if limit is None else limit
    if not query or len(query) < settings.SEARCH_MIN_QUERY_LENGTH:
        return []

    term = query.lower()
    items = list(products)
    # dict keeps insertion order and drops duplicates
    suggestions: dict[str, None] = {}

    for product in items:
        if product.name.lower().startswith(term):
            suggestions.setdefault(product.name)
    for product in items:
        name = product.name.lower()
        if term in name and not name.startswith(term):
            suggestions.setdefault(product.name)
    for product in items:
        for tag in product.tags:
            if term in tag.lower():
                suggestions.setdefault(tag)

    return list(suggestions)[:limit]


class RecentSearches:
    """Bounded list of distinct queries, most recent first."""

    def __init__(self, state: StorefrontState, limit: int | None = None) -> None:
        self._state = state
        self.limit = limit or settings.RECENT_SEARCH_LIMIT

    async def list(self) -> list[str]:
        return (await self._state.get_recent_searches())[: self.limit]

    async def add(self, query: str) -> list[str]:
        query = query.strip()
        if not query:
            return await self.list()
        async with self._state.recent_searches_lock:
            existing = await self._state.get_recent_searches()
            searches = [query, *(entry for entry in existing if entry != query)]
            searches = searches[: self.limit]
            await self._state.set_recent_searches(searches)
        return searches

    async def clear(self) -> None:
        async with self._state.recent_searches_lock:
            await self._state.clear_recent_searches()


class SearchSession:
    """Typeahead state for one search box.

    Every ``set_query`` cancels the pending computation and schedules a new
    one after the debounce delay, so only the latest query is evaluated.
    """

    def __init__(
        self,
        products: ProductSource,
        recent: RecentSearches,
        *,
        debounce_ms: int | None = None,
        suggestion_limit: int | None = None,
    ) -> None:
        self._products = products
        self._recent = recent
        self._delay = (
            settings.SEARCH_DEBOUNCE_MS if debounce_ms is None else debounce_ms
        ) / 1000
        self._suggestion_limit = suggestion_limit
        self._pending: asyncio.Task | None = None

        self.query = ""
        self.suggestions: list[str] = []
        self.results: list[Product] = []
        self.loading = False

    def set_query(self, query: str) -> None:
        self.query = query
        self._cancel_pending()
        if len(query) < settings.SEARCH_MIN_QUERY_LENGTH:
            self.suggestions = []
            self.results = []
            self.loading = False
            return
        self.loading = True
        self._pending = asyncio.create_task(
            self._debounced(query), name="search-debounce"
        )

    async def wait(self) -> None:
        """Wait for the pending debounced computation, if any."""
        if self._pending is not None:
            await asyncio.gather(self._pending, return_exceptions=True)

    async def submit(self, query: str | None = None) -> list[Product]:
        """Run the search now and remember the query."""

        query = (self.query if query is None else query).strip()
        if not query:
            return self.results
        self._cancel_pending()
        self.query = query
        self._evaluate(query)
        await self._recent.add(query)
        logger.info("Search submitted", extra={"query": query, "hits": len(self.results)})
        return self.results

    def clear(self) -> None:
        self._cancel_pending()
        self.query = ""
        self.suggestions = []
        self.results = []
        self.loading = False

    async def _debounced(self, query: str) -> None:
        await asyncio.sleep(self._delay)
        self._evaluate(query)

    def _evaluate(self, query: str) -> None:
        products = list(self._products())
        self.suggestions = search_suggestions(products, query, self._suggestion_limit)
        self.results = search_products(products, query)
        self.loading = False

    def _cancel_pending(self) -> None:
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None
