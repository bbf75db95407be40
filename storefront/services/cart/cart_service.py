"""Backend cart lifecycle: identity, mutations and wholesale replacement."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from storefront.models.cart import Cart, CartResult
from storefront.models.errors import ErrorPayload, StorefrontError, normalize_error
from storefront.services.adapters.cart_adapter import adapt_cart
from storefront.services.adapters.product_adapter import build_gid
from storefront.services.cart.mutation_queue import CartMutationQueue
from storefront.services.clients.storefront_client import StorefrontClient
from storefront.services.storage.state_store import StorefrontState

logger = logging.getLogger(__name__)

# Every operation on the held cart, including replacing it, shares one queue.
CART_QUEUE_KEY = "cart"


class CartService:
    """Owns the canonical backend cart.

    Every successful backend response replaces ``cart`` wholesale; a failed
    operation leaves it untouched and reports an ``ErrorPayload``.
    All operations run through one FIFO queue and read the held cart id only
    when they start, so a mutation queued behind ``clear()`` targets the new
    cart.
    """

    def __init__(
        self,
        client: StorefrontClient,
        state: StorefrontState,
        queue: CartMutationQueue | None = None,
    ) -> None:
        self._client = client
        self._state = state
        self._queue = queue or CartMutationQueue()
        self.cart: Cart | None = None
        self.error: ErrorPayload | None = None
        self._init_lock = asyncio.Lock()

    @property
    def loading(self) -> bool:
        return self._queue.is_busy(CART_QUEUE_KEY)

    @property
    def checkout_url(self) -> str | None:
        return self.cart.checkout_url if self.cart else None

    async def initialize(self) -> CartResult:
        """Restore the stored cart, or start a new one.

        The stored id is probed once; if it cannot be retrieved it is
        discarded and a fresh cart is created.
        """

        stored_id = await self._state.get_cart_id()
        if stored_id:
            result = await self._run(
                lambda: self._client.get_cart(stored_id),
                action="restore",
            )
            if result.ok:
                return result
            logger.warning("Could not fetch stored cart %s, creating new one", stored_id)
            await self._state.clear_cart_id()
            self.error = None

        return await self.create_cart()

    async def ensure_cart(self) -> CartResult:
        """Initialize on first use; afterwards return the current cart.

        Concurrent first calls share one initialization.
        """
        async with self._init_lock:
            if self.cart is None:
                return await self.initialize()
        return CartResult(cart=self.cart)

    async def create_cart(self) -> CartResult:
        return await self._run(
            self._client.create_cart,
            action="create",
            persist_id=True,
        )

    async def add_line(self, merchandise_id: str, quantity: int = 1) -> CartResult:
        if quantity < 1:
            return self._fail("Quantity must be at least 1")
        line = {
            "merchandiseId": build_gid("ProductVariant", merchandise_id),
            "quantity": quantity,
        }
        return await self._mutate(
            "add", lambda cart_id: self._client.add_lines(cart_id, [line])
        )

    async def update_line(self, line_id: str, quantity: int) -> CartResult:
        """Set a line's quantity; zero or less removes the line."""

        if quantity <= 0:
            return await self.remove_line(line_id)
        return await self._mutate(
            "update",
            lambda cart_id: self._client.update_lines(
                cart_id, [{"id": line_id, "quantity": quantity}]
            ),
        )

    async def remove_line(self, line_id: str) -> CartResult:
        return await self._mutate(
            "remove",
            lambda cart_id: self._client.remove_lines(cart_id, [line_id]),
        )

    async def get_cart(self) -> CartResult:
        """Re-read the cart from the backend (explicit refresh)."""
        return await self._mutate("refresh", self._client.get_cart)

    async def clear(self) -> CartResult:
        """Replace the cart with a new empty one."""
        return await self._run(
            self._client.create_cart,
            action="clear",
            persist_id=True,
        )

    async def _mutate(
        self,
        action: str,
        call: Callable[[str], Awaitable[dict[str, Any]]],
    ) -> CartResult:
        if self.cart is None:
            return self._fail("Cart is not initialized")

        async def on_current_cart() -> dict[str, Any]:
            if self.cart is None:
                raise StorefrontError("Cart is not initialized", kind="user")
            return await call(self.cart.id)

        return await self._run(on_current_cart, action=action)

    async def _run(
        self,
        call: Callable[[], Awaitable[dict[str, Any]]],
        *,
        action: str,
        persist_id: bool = False,
    ) -> CartResult:
        async def operation() -> CartResult:
            try:
                payload = await call()
                cart = adapt_cart(payload)
                if persist_id:
                    await self._state.set_cart_id(cart.id)
            except Exception as exc:  # pylint: disable=broad-exception-caught
                logger.error("Cart %s failed: %s", action, exc)
                return self._fail(exc)

            self.cart = cart
            self.error = None
            logger.info(
                "Cart %s applied",
                action,
                extra={"cart_id": cart.id, "total_quantity": cart.total_quantity},
            )
            return CartResult(cart=cart)

        return await self._queue.submit(CART_QUEUE_KEY, operation)

    def _fail(self, error: Any) -> CartResult:
        payload = normalize_error(error)
        self.error = payload
        return CartResult(error=payload)
