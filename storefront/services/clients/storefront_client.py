"""Storefront (commerce backend) client abstractions and implementations."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

import httpx

from storefront.config import settings
from storefront.models.errors import StorefrontError
from storefront.services.clients import queries

logger = logging.getLogger(__name__)

JSONDict = dict[str, Any]


class StorefrontClient(ABC):
    """Abstract commerce backend reachable through a cursor-paginated API.

    Every method returns the backend's raw payload and raises
    ``StorefrontError`` on any failure.
    """

    @abstractmethod
    async def get_products(
        self,
        *,
        first: int,
        after: str | None = None,
        query: str | None = None,
        sort_key: str | None = None,
        reverse: bool | None = None,
    ) -> JSONDict:
        """Return a ``{edges, pageInfo}`` product connection."""

    @abstractmethod
    async def get_product(self, handle: str) -> JSONDict | None:
        """Return a single product node or ``None`` when unknown."""

    @abstractmethod
    async def get_collections(
        self, *, first: int, after: str | None = None
    ) -> JSONDict:
        """Return a ``{edges, pageInfo}`` collection connection."""

    @abstractmethod
    async def get_collection_products(
        self,
        handle: str,
        *,
        first: int,
        after: str | None = None,
        sort_key: str | None = None,
        reverse: bool | None = None,
    ) -> JSONDict | None:
        """Return the collection with its product connection, or ``None``."""

    @abstractmethod
    async def create_cart(self) -> JSONDict:
        """Create an empty cart and return it."""

    @abstractmethod
    async def add_lines(self, cart_id: str, lines: list[JSONDict]) -> JSONDict:
        """Add ``{merchandiseId, quantity}`` lines and return the full cart."""

    @abstractmethod
    async def update_lines(self, cart_id: str, lines: list[JSONDict]) -> JSONDict:
        """Update ``{id, quantity}`` lines and return the full cart."""

    @abstractmethod
    async def remove_lines(self, cart_id: str, line_ids: list[str]) -> JSONDict:
        """Remove lines by id and return the full cart."""

    @abstractmethod
    async def get_cart(self, cart_id: str) -> JSONDict:
        """Return the full cart; raises when the cart does not exist."""

    async def close(self) -> None:
        """Release network resources."""


class GraphQLStorefrontClient(StorefrontClient):
    """Client backed by the Storefront GraphQL API over httpx."""

    def __init__(
        self,
        *,
        endpoint: str,
        access_token: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not access_token:
            raise ValueError("Storefront access token is required")
        self._endpoint = endpoint
        self._http_client = httpx.AsyncClient(
            timeout=timeout,
            transport=transport,
            headers={
                "Content-Type": "application/json",
                "Accept": "application/json",
                "X-Shopify-Storefront-Access-Token": access_token,
            },
        )

    async def close(self) -> None:
        await self._http_client.aclose()

    async def _request(self, query: str, variables: JSONDict) -> JSONDict:
        """POST a GraphQL document and return its ``data`` member."""

        try:
            response = await self._http_client.post(
                self._endpoint,
                json={"query": query, "variables": variables},
            )
        except httpx.HTTPError as exc:
            logger.error("Storefront request failed: %s", exc, exc_info=True)
            raise StorefrontError(
                f"Network error occurred: {exc}", kind="transport"
            ) from exc

        if response.status_code >= 400:
            logger.error(
                "Storefront request failed: %s - %s",
                response.status_code,
                response.text[:500],
            )
            raise StorefrontError(
                f"HTTP error! status: {response.status_code}", kind="transport"
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise StorefrontError("Storefront returned invalid JSON", kind="data") from exc

        errors = body.get("errors") if isinstance(body, dict) else None
        if errors:
            message = ", ".join(
                str(error.get("message", error)) if isinstance(error, dict) else str(error)
                for error in errors
            )
            raise StorefrontError(message or "Storefront query failed", kind="backend")

        data = body.get("data") if isinstance(body, dict) else None
        if not isinstance(data, dict):
            raise StorefrontError("Storefront response has no data", kind="data")
        return data

    async def _mutate_cart(
        self,
        query: str,
        variables: JSONDict,
        field: str,
    ) -> JSONDict:
        data = await self._request(query, variables)
        result = data.get(field) or {}
        user_errors = result.get("userErrors") or []
        if user_errors:
            message = ", ".join(
                str(error.get("message")) for error in user_errors if error.get("message")
            )
            raise StorefrontError(message or "Cart update rejected", kind="user")
        cart = result.get("cart")
        if not isinstance(cart, dict):
            raise StorefrontError(f"{field} returned no cart", kind="data")
        return cart

    async def get_products(
        self,
        *,
        first: int,
        after: str | None = None,
        query: str | None = None,
        sort_key: str | None = None,
        reverse: bool | None = None,
    ) -> JSONDict:
        variables: JSONDict = {"first": first}
        if after:
            variables["after"] = after
        if query:
            variables["query"] = query
        if sort_key:
            variables["sortKey"] = sort_key
            variables["reverse"] = bool(reverse)

        logger.debug("Fetching products with variables: %s", variables)
        data = await self._request(queries.GET_PRODUCTS, variables)
        return data.get("products") or {}

    async def get_product(self, handle: str) -> JSONDict | None:
        data = await self._request(queries.GET_PRODUCT, {"handle": handle})
        return data.get("product")

    async def get_collections(
        self, *, first: int, after: str | None = None
    ) -> JSONDict:
        variables: JSONDict = {"first": first}
        if after:
            variables["after"] = after
        data = await self._request(queries.GET_COLLECTIONS, variables)
        return data.get("collections") or {}

    async def get_collection_products(
        self,
        handle: str,
        *,
        first: int,
        after: str | None = None,
        sort_key: str | None = None,
        reverse: bool | None = None,
    ) -> JSONDict | None:
        variables: JSONDict = {"handle": handle, "first": first}
        if after:
            variables["after"] = after
        if sort_key:
            variables["sortKey"] = sort_key
            variables["reverse"] = bool(reverse)
        data = await self._request(queries.GET_COLLECTION_PRODUCTS, variables)
        return data.get("collection")

    async def create_cart(self) -> JSONDict:
        return await self._mutate_cart(queries.CART_CREATE, {"input": {}}, "cartCreate")

    async def add_lines(self, cart_id: str, lines: list[JSONDict]) -> JSONDict:
        return await self._mutate_cart(
            queries.CART_LINES_ADD,
            {"cartId": cart_id, "lines": lines},
            "cartLinesAdd",
        )

    async def update_lines(self, cart_id: str, lines: list[JSONDict]) -> JSONDict:
        return await self._mutate_cart(
            queries.CART_LINES_UPDATE,
            {"cartId": cart_id, "lines": lines},
            "cartLinesUpdate",
        )

    async def remove_lines(self, cart_id: str, line_ids: list[str]) -> JSONDict:
        return await self._mutate_cart(
            queries.CART_LINES_REMOVE,
            {"cartId": cart_id, "lineIds": line_ids},
            "cartLinesRemove",
        )

    async def get_cart(self, cart_id: str) -> JSONDict:
        data = await self._request(queries.GET_CART, {"cartId": cart_id})
        cart = data.get("cart")
        if not isinstance(cart, dict):
            raise StorefrontError(f"Cart {cart_id} not found", kind="backend")
        return cart


_storefront_client: StorefrontClient | None = None


def _initialize_storefront() -> StorefrontClient | None:
    if not settings.backend_configured:
        return None

    return GraphQLStorefrontClient(
        endpoint=settings.graphql_endpoint,
        access_token=settings.SHOPIFY_STOREFRONT_TOKEN,
        timeout=settings.HTTP_TIMEOUT_SECONDS,
    )


_storefront_client = _initialize_storefront()


def get_storefront_client() -> StorefrontClient | None:
    """FastAPI dependency returning the configured storefront client if any."""

    return _storefront_client
