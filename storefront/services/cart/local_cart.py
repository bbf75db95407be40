"""Cart priced locally against the in-memory catalog."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Annotated

from fastapi import Depends

from storefront.models.cart import Cart
from storefront.models.errors import NotFoundError
from storefront.services.cart import pricing
from storefront.services.cart.mutation_queue import CartMutationQueue
from storefront.services.cart.pricing import PricingConfig
from storefront.services.catalog.local_catalog import LocalCatalog, get_local_catalog
from storefront.services.storage.state_store import StorefrontState, get_state

logger = logging.getLogger(__name__)

LOCAL_QUEUE_KEY = "local"


class LocalCartService:
    """Load, mutate and persist the local cart.

    Each change is a read-modify-write of the persisted cart, so changes go
    through the same FIFO queue used for backend carts.
    """

    def __init__(
        self,
        state: StorefrontState,
        catalog: LocalCatalog,
        config: PricingConfig | None = None,
        queue: CartMutationQueue | None = None,
    ) -> None:
        self._state = state
        self._catalog = catalog
        self.config = config or PricingConfig()
        self._queue = queue or CartMutationQueue()

    async def get_cart(self) -> Cart:
        return await self._queue.submit(LOCAL_QUEUE_KEY, self._load)

    async def add_item(
        self,
        product_id: str,
        variant_id: str | None = None,
        quantity: int = 1,
    ) -> Cart:
        product = self._catalog.get_product(product_id)
        if product is None:
            raise NotFoundError(f"Product {product_id} not found")

        price = product.effective_price
        variant_title = None
        if variant_id is not None:
            variant = product.find_variant(variant_id)
            if variant is None:
                raise NotFoundError(
                    f"Variant {variant_id} not found for product {product_id}"
                )
            if variant.price is not None:
                price = variant.price
            variant_title = variant.name

        main_image = product.main_image
        return await self._apply(
            "add",
            lambda cart: pricing.add_item(
                cart,
                product.id,
                variant_id,
                quantity,
                price,
                self.config,
                title=product.name,
                variant_title=variant_title,
                image=main_image.url if main_image else None,
            ),
        )

    async def update_item(self, item_id: str, quantity: int) -> Cart:
        def change(cart: Cart) -> Cart:
            self._require_item(cart, item_id)
            return pricing.update_item_quantity(cart, item_id, quantity, self.config)

        return await self._apply("update", change)

    async def remove_item(self, item_id: str) -> Cart:
        def change(cart: Cart) -> Cart:
            self._require_item(cart, item_id)
            return pricing.remove_item(cart, item_id, self.config)

        return await self._apply("remove", change)

    async def clear(self) -> Cart:
        return await self._apply(
            "clear", lambda cart: pricing.clear_cart(cart, self.config)
        )

    async def refresh_prices(self) -> Cart:
        return await self._apply(
            "refresh",
            lambda cart: pricing.refresh_prices(
                cart, self._catalog.list_products(), self.config
            ),
        )

    @staticmethod
    def _require_item(cart: Cart, item_id: str) -> None:
        if cart.find_item(item_id) is None:
            raise NotFoundError(f"Cart item {item_id} not found")

    async def _load(self) -> Cart:
        cart = await self._state.get_local_cart()
        if cart is None:
            cart = pricing.empty_cart()
            await self._state.set_local_cart(cart)
            logger.info("Started local cart %s", cart.id)
            return cart

        # A cart stored under other pricing settings is re-derived on load.
        repriced = pricing.recalculate(cart, self.config)
        if (repriced.total, repriced.total_quantity) != (cart.total, cart.total_quantity):
            logger.warning("Re-derived totals of stored local cart %s", cart.id)
            await self._state.set_local_cart(repriced)
            return repriced
        return cart

    async def _apply(self, action: str, change: Callable[[Cart], Cart]) -> Cart:
        async def operation() -> Cart:
            cart = change(await self._load())
            await self._state.set_local_cart(cart)
            logger.info(
                "Local cart %s applied",
                action,
                extra={"cart_id": cart.id, "total": str(cart.total)},
            )
            return cart

        return await self._queue.submit(LOCAL_QUEUE_KEY, operation)


_local_cart_service: LocalCartService | None = None


def get_local_cart_service(
    state: Annotated[StorefrontState, Depends(get_state)],
    catalog: Annotated[LocalCatalog, Depends(get_local_catalog)],
) -> LocalCartService:
    """FastAPI dependency returning the process-wide local cart service."""

    global _local_cart_service
    if _local_cart_service is None:
        _local_cart_service = LocalCartService(state, catalog)
    return _local_cart_service


LocalCartDependency = Annotated[LocalCartService, Depends(get_local_cart_service)]
