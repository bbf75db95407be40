"""Pytest configuration and fixtures for the storefront service."""

import asyncio
from decimal import ROUND_HALF_UP, Decimal

import pytest
import pytest_asyncio
from fakeredis import aioredis as fakeredis
from httpx import ASGITransport, AsyncClient

from storefront.api.dependencies import get_cart_service
from storefront.models.errors import StorefrontError
from storefront.services.cart.cart_service import CartService
from storefront.services.cart.local_cart import LocalCartService, get_local_cart_service
from storefront.services.catalog.local_catalog import LocalCatalog, get_local_catalog
from storefront.services.clients.storefront_client import (
    StorefrontClient,
    get_storefront_client,
)
from storefront.services.storage.state_store import (
    MemoryStateStore,
    StorefrontState,
    get_state,
)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests as integration tests")
    config.addinivalue_line("markers", "unit: marks tests as unit tests")
    config.addinivalue_line("markers", "asyncio: marks tests as async tests")


def product_node(
    handle,
    title,
    price,
    *,
    product_type="Apparel",
    tags=(),
    compare_at=None,
    available=True,
    variants=None,
    created_at="2024-01-01T00:00:00Z",
):
    """Build a catalog node shaped like the Storefront API returns it."""
    if variants is None:
        variants = [
            {
                "id": f"gid://shopify/ProductVariant/{handle}-default",
                "title": "Default Title",
                "availableForSale": available,
                "quantityAvailable": 5 if available else 0,
                "price": {"amount": price, "currencyCode": "USD"},
                "selectedOptions": [{"name": "Title", "value": "Default Title"}],
            }
        ]
    node = {
        "id": f"gid://shopify/Product/{handle}",
        "handle": handle,
        "title": title,
        "description": f"{title} from the sanctuary store.",
        "productType": product_type,
        "tags": list(tags),
        "availableForSale": available,
        "createdAt": created_at,
        "updatedAt": created_at,
        "priceRange": {"minVariantPrice": {"amount": price, "currencyCode": "USD"}},
        "images": {
            "edges": [
                {
                    "node": {
                        "id": f"gid://shopify/ProductImage/{handle}",
                        "url": f"https://cdn.example.com/{handle}.jpg",
                        "altText": None,
                    }
                }
            ]
        },
        "variants": {"edges": [{"node": variant} for variant in variants]},
    }
    if compare_at is not None:
        node["compareAtPriceRange"] = {
            "minVariantPrice": {"amount": compare_at, "currencyCode": "USD"}
        }
    return node


class FakeStorefrontClient(StorefrontClient):
    """In-memory commerce backend mimicking the Storefront API payloads."""

    def __init__(self, products=None, *, tax_rate=Decimal("0.08")):
        self.products = list(products or [])
        self.collections = {}
        self.carts = {}
        self.calls = []
        self.fail_with = None
        self.delay = 0.0
        self.closed = False
        self._tax_rate = tax_rate
        self._cart_seq = 0
        self._line_seq = 0

    async def _enter(self, name, **kwargs):
        self.calls.append((name, kwargs))
        await asyncio.sleep(self.delay)
        if self.fail_with is not None:
            raise self.fail_with

    @staticmethod
    def _connection(nodes, start, first):
        page = nodes[start : start + first]
        return {
            "edges": [
                {"node": node, "cursor": f"cursor-{start + index}"}
                for index, node in enumerate(page)
            ],
            "pageInfo": {
                "hasNextPage": start + first < len(nodes),
                "hasPreviousPage": start > 0,
                "startCursor": f"cursor-{start}" if page else None,
                "endCursor": f"cursor-{start + len(page) - 1}" if page else None,
            },
        }

    @staticmethod
    def _start(after):
        return int(after.split("-")[1]) + 1 if after else 0

    async def get_products(self, *, first, after=None, query=None, sort_key=None, reverse=None):
        nodes = list(self.products)
        await self._enter(
            "get_products",
            first=first,
            after=after,
            query=query,
            sort_key=sort_key,
            reverse=reverse,
        )
        return self._connection(nodes, self._start(after), first)

    async def get_product(self, handle):
        await self._enter("get_product", handle=handle)
        return next((p for p in self.products if p["handle"] == handle), None)

    async def get_collections(self, *, first, after=None):
        await self._enter("get_collections", first=first, after=after)
        nodes = [
            {
                "id": f"gid://shopify/Collection/{handle}",
                "handle": handle,
                "title": handle.replace("-", " ").title(),
            }
            for handle in self.collections
        ]
        return self._connection(nodes, self._start(after), first)

    async def get_collection_products(
        self, handle, *, first, after=None, sort_key=None, reverse=None
    ):
        await self._enter(
            "get_collection_products",
            handle=handle,
            first=first,
            after=after,
            sort_key=sort_key,
            reverse=reverse,
        )
        if handle not in self.collections:
            return None
        return {
            "id": f"gid://shopify/Collection/{handle}",
            "handle": handle,
            "title": handle,
            "products": self._connection(
                self.collections[handle], self._start(after), first
            ),
        }

    async def create_cart(self):
        await self._enter("create_cart")
        self._cart_seq += 1
        cart_id = f"gid://shopify/Cart/c{self._cart_seq}"
        self.carts[cart_id] = []
        return self._cart_payload(cart_id)

    async def add_lines(self, cart_id, lines):
        await self._enter("add_lines", cart_id=cart_id, lines=lines)
        cart_lines = self._cart_lines(cart_id)
        for line in lines:
            self._variant(line["merchandiseId"])
            existing = next(
                (l for l in cart_lines if l["merchandiseId"] == line["merchandiseId"]),
                None,
            )
            if existing is not None:
                existing["quantity"] += line["quantity"]
            else:
                self._line_seq += 1
                cart_lines.append(
                    {
                        "id": f"gid://shopify/CartLine/l{self._line_seq}",
                        "merchandiseId": line["merchandiseId"],
                        "quantity": line["quantity"],
                    }
                )
        return self._cart_payload(cart_id)

    async def update_lines(self, cart_id, lines):
        await self._enter("update_lines", cart_id=cart_id, lines=lines)
        cart_lines = self._cart_lines(cart_id)
        for line in lines:
            target = next((l for l in cart_lines if l["id"] == line["id"]), None)
            if target is None:
                raise StorefrontError("The merchandise line was not found", kind="user")
            target["quantity"] = line["quantity"]
        self.carts[cart_id] = [l for l in cart_lines if l["quantity"] > 0]
        return self._cart_payload(cart_id)

    async def remove_lines(self, cart_id, line_ids):
        await self._enter("remove_lines", cart_id=cart_id, line_ids=line_ids)
        cart_lines = self._cart_lines(cart_id)
        self.carts[cart_id] = [l for l in cart_lines if l["id"] not in line_ids]
        return self._cart_payload(cart_id)

    async def get_cart(self, cart_id):
        await self._enter("get_cart", cart_id=cart_id)
        if cart_id not in self.carts:
            raise StorefrontError(f"Cart {cart_id} not found", kind="backend")
        return self._cart_payload(cart_id)

    async def close(self):
        self.closed = True

    def _cart_lines(self, cart_id):
        if cart_id not in self.carts:
            raise StorefrontError("The specified cart does not exist.", kind="user")
        return self.carts[cart_id]

    def _variant(self, merchandise_id):
        for product in self.products:
            for edge in product["variants"]["edges"]:
                if edge["node"]["id"] == merchandise_id:
                    return product, edge["node"]
        raise StorefrontError(
            f"The merchandise with id {merchandise_id} does not exist.", kind="user"
        )

    def _cart_payload(self, cart_id):
        subtotal = Decimal("0")
        edges = []
        for line in self.carts[cart_id]:
            product, variant = self._variant(line["merchandiseId"])
            price = Decimal(variant["price"]["amount"])
            subtotal += price * line["quantity"]
            edges.append(
                {
                    "node": {
                        "id": line["id"],
                        "quantity": line["quantity"],
                        "merchandise": {
                            "id": variant["id"],
                            "title": variant["title"],
                            "price": variant["price"],
                            "compareAtPrice": None,
                            "product": {
                                "id": product["id"],
                                "handle": product["handle"],
                                "title": product["title"],
                                "featuredImage": None,
                            },
                        },
                    }
                }
            )
        tax = (subtotal * self._tax_rate).quantize(
            Decimal("0.01"), rounding=ROUND_HALF_UP
        )
        return {
            "id": cart_id,
            "checkoutUrl": f"https://harmony-farm.myshopify.com/cart/{cart_id[-2:]}",
            "totalQuantity": sum(line["quantity"] for line in self.carts[cart_id]),
            "createdAt": "2024-06-01T12:00:00Z",
            "updatedAt": "2024-06-01T12:00:00Z",
            "lines": {"edges": edges},
            "cost": {
                "subtotalAmount": {"amount": str(subtotal), "currencyCode": "USD"},
                "totalTaxAmount": {"amount": str(tax), "currencyCode": "USD"},
                "totalAmount": {"amount": str(subtotal + tax), "currencyCode": "USD"},
            },
        }


@pytest.fixture()
def catalog_nodes():
    """A small backend catalog covering every category."""
    return [
        product_node(
            "classic-tee",
            "Classic Sanctuary Tee",
            "24.99",
            tags=["organic", "featured"],
            created_at="2024-01-15T00:00:00Z",
        ),
        product_node(
            "bella-hoodie",
            "Bella Rescue Hoodie",
            "44.99",
            tags=["bella", "rescue"],
            created_at="2024-02-01T00:00:00Z",
        ),
        product_node(
            "heroes-mug",
            "Rescue Heroes Mug",
            "12.99",
            product_type="Coffee Mug",
            tags=["mug"],
        ),
        product_node(
            "care-guide",
            "Farm Animal Care Guide",
            "29.99",
            product_type="Book",
            tags=["education"],
        ),
        product_node(
            "rescue-calendar",
            "Rescue Stories Calendar",
            "14.99",
            product_type="Holiday",
            compare_at="18.99",
            tags=["calendar", "featured"],
        ),
    ]


@pytest.fixture()
def storefront_backend(catalog_nodes):
    backend = FakeStorefrontClient(catalog_nodes)
    backend.collections["best-sellers"] = catalog_nodes[:2]
    return backend


@pytest.fixture()
def memory_state():
    return StorefrontState(MemoryStateStore())


@pytest.fixture()
def local_catalog():
    return LocalCatalog.from_file()


@pytest.fixture(autouse=True)
def storefront_stubs(storefront_backend, memory_state, local_catalog):
    """Route every app dependency to in-memory fakes."""
    from storefront.main import app

    cart_service = CartService(storefront_backend, memory_state)
    local_cart_service = LocalCartService(memory_state, local_catalog)

    app.dependency_overrides[get_storefront_client] = lambda: storefront_backend
    app.dependency_overrides[get_state] = lambda: memory_state
    app.dependency_overrides[get_local_catalog] = lambda: local_catalog
    app.dependency_overrides[get_cart_service] = lambda: cart_service
    app.dependency_overrides[get_local_cart_service] = lambda: local_cart_service
    yield
    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def redis_client():
    """Provide a fake Redis client for each test."""
    client = fakeredis.FakeRedis()
    try:
        yield client
    finally:
        await client.flushdb()
        await client.aclose()


@pytest_asyncio.fixture()
async def client():
    """Return an HTTPX async client pointing at the FastAPI app."""
    from storefront.main import app

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://testserver",
    ) as test_client:
        yield test_client
