"""Per-cart FIFO serialization of cart mutations."""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Operation = Callable[[], Awaitable[Any]]


class CartMutationQueue:
    """Run mutations for the same cart id one at a time, in submission order.

    Each cart id gets its own queue drained by a single task; a mutation
    starts only after the previous one for that id has fully resolved.
    Different cart ids do not wait on each other.
    """

    def __init__(self) -> None:
        self._queues: dict[str, deque[tuple[Operation, asyncio.Future]]] = {}
        self._drainers: dict[str, asyncio.Task] = {}

    def is_busy(self, cart_id: str) -> bool:
        return cart_id in self._drainers

    async def submit(self, cart_id: str, operation: Callable[[], Awaitable[T]]) -> T:
        """Queue ``operation`` behind earlier mutations and await its result."""

        future: asyncio.Future = asyncio.get_running_loop().create_future()
        self._queues.setdefault(cart_id, deque()).append((operation, future))
        if cart_id not in self._drainers:
            self._drainers[cart_id] = asyncio.create_task(
                self._drain(cart_id),
                name=f"cart-mutations:{cart_id}",
            )
        return await future

    async def _drain(self, cart_id: str) -> None:
        queue = self._queues[cart_id]
        future: asyncio.Future | None = None
        try:
            while queue:
                operation, future = queue.popleft()
                if future.cancelled():
                    continue
                try:
                    result = await operation()
                except Exception as exc:  # pylint: disable=broad-exception-caught
                    if not future.done():
                        future.set_exception(exc)
                else:
                    if not future.done():
                        future.set_result(result)
        except asyncio.CancelledError:
            logger.warning("Mutation queue for cart %s cancelled", cart_id)
            if future is not None and not future.done():
                future.cancel()
            while queue:
                _, future = queue.popleft()
                future.cancel()
            raise
        finally:
            self._queues.pop(cart_id, None)
            self._drainers.pop(cart_id, None)
