"""System-level routes such as health checks."""

from __future__ import annotations

import logging

import httpx
from fastapi import APIRouter

from storefront.config import settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["system"])

_HEALTH_QUERY = "{ shop { name } }"


@router.get("/")
async def read_root() -> dict[str, str]:
    """Service banner used by smoke tests."""

    return {"message": "Harmony Farm Storefront"}


@router.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint with storefront backend connectivity check."""

    if not settings.backend_configured:
        backend_status = "not_configured"
    else:
        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    settings.graphql_endpoint,
                    json={"query": _HEALTH_QUERY},
                    headers={
                        "X-Shopify-Storefront-Access-Token": settings.SHOPIFY_STOREFRONT_TOKEN
                        or ""
                    },
                    timeout=5.0,
                )
                backend_status = (
                    "connected" if response.status_code == 200 else "disconnected"
                )
        except httpx.HTTPError as exc:
            logger.warning("Storefront health probe failed: %s", exc)
            backend_status = "disconnected"

    return {
        "status": "healthy",
        "storefront": backend_status,
        "state_backend": settings.STATE_BACKEND,
        "environment": settings.ENVIRONMENT,
    }
