"""Durable key/value state: the active cart id, recent searches, the local cart."""

from __future__ import annotations

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from typing import Annotated

import redis.asyncio as redis
from fastapi import Depends

from storefront.config import settings
from storefront.models.cart import Cart

logger = logging.getLogger(__name__)

_redis_client: redis.Redis | None = None


def get_redis_client() -> redis.Redis:
    """Return a singleton Redis client for the current process."""

    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(
            settings.REDIS_URL,
            encoding="utf-8",
            decode_responses=True,
        )
    return _redis_client


async def close_redis_client() -> None:
    """Close the shared Redis client if one was opened."""

    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None


class StateStore(ABC):
    """Minimal string key/value backend."""

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Return the stored value or ``None``."""

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove ``key`` if present."""


class MemoryStateStore(StateStore):
    """Process-local store used in development and tests."""

    def __init__(self) -> None:
        self._values: dict[str, str] = {}

    async def get(self, key: str) -> str | None:
        return self._values.get(key)

    async def set(self, key: str, value: str) -> None:
        self._values[key] = value

    async def delete(self, key: str) -> None:
        self._values.pop(key, None)


class RedisStateStore(StateStore):
    """Wrapper around Redis used to persist storefront state."""

    def __init__(self, client: redis.Redis, prefix: str | None = None) -> None:
        self._client = client
        self._prefix = settings.STATE_KEY_PREFIX if prefix is None else prefix

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    async def get(self, key: str) -> str | None:
        raw = await self._client.get(self._key(key))
        if raw is None:
            return None
        return raw.decode("utf-8") if isinstance(raw, bytes) else raw

    async def set(self, key: str, value: str) -> None:
        await self._client.set(self._key(key), value)

    async def delete(self, key: str) -> None:
        await self._client.delete(self._key(key))


class StorefrontState:
    """Typed accessors over the durable keys the storefront owns."""

    def __init__(
        self,
        store: StateStore,
        *,
        cart_id_key: str | None = None,
        recent_searches_key: str | None = None,
        local_cart_key: str | None = None,
    ) -> None:
        self.store = store
        self._cart_id_key = cart_id_key or settings.CART_ID_KEY
        self._recent_key = recent_searches_key or settings.RECENT_SEARCHES_KEY
        self._local_cart_key = local_cart_key or settings.LOCAL_CART_KEY
        # Serializes read-modify-write updates of the recent searches list.
        self.recent_searches_lock = asyncio.Lock()

    async def get_cart_id(self) -> str | None:
        return await self.store.get(self._cart_id_key) or None

    async def set_cart_id(self, cart_id: str) -> None:
        await self.store.set(self._cart_id_key, cart_id)

    async def clear_cart_id(self) -> None:
        await self.store.delete(self._cart_id_key)

    async def get_recent_searches(self) -> list[str]:
        raw = await self.store.get(self._recent_key)
        if not raw:
            return []
        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("Discarding unreadable recent searches")
            return []
        if not isinstance(data, list):
            return []
        return [entry for entry in data if isinstance(entry, str)]

    async def set_recent_searches(self, searches: list[str]) -> None:
        await self.store.set(self._recent_key, json.dumps(searches))

    async def clear_recent_searches(self) -> None:
        await self.store.delete(self._recent_key)

    async def get_local_cart(self) -> Cart | None:
        raw = await self.store.get(self._local_cart_key)
        if not raw:
            return None
        try:
            return Cart.model_validate_json(raw)
        except ValueError:
            logger.warning("Discarding unreadable local cart")
            return None

    async def set_local_cart(self, cart: Cart) -> None:
        await self.store.set(self._local_cart_key, cart.model_dump_json())

    async def clear_local_cart(self) -> None:
        await self.store.delete(self._local_cart_key)


_state: StorefrontState | None = None


def _initialize_state() -> StorefrontState:
    if settings.STATE_BACKEND.lower() == "redis":
        return StorefrontState(RedisStateStore(get_redis_client()))
    return StorefrontState(MemoryStateStore())


def get_state() -> StorefrontState:
    """FastAPI dependency returning the process-wide storefront state."""

    global _state
    if _state is None:
        _state = _initialize_state()
    return _state


StateDependency = Annotated[StorefrontState, Depends(get_state)]
