"""Typeahead and recent-search routes."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from storefront.models.search import (
    RecentSearchesResponse,
    RecentSearchRequest,
    SuggestionsResponse,
)
from storefront.services.catalog.local_catalog import LocalCatalog, get_local_catalog
from storefront.services.search.search_engine import RecentSearches, search_suggestions
from storefront.services.storage.state_store import StateDependency

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/search", tags=["search"])


def get_recent_searches(state: StateDependency) -> RecentSearches:
    return RecentSearches(state)


RecentDependency = Annotated[RecentSearches, Depends(get_recent_searches)]


@router.get("/suggestions", response_model=SuggestionsResponse)
async def suggestions(
    catalog: Annotated[LocalCatalog, Depends(get_local_catalog)],
    q: str = "",
    limit: Annotated[int | None, Query(ge=1, le=50)] = None,
) -> SuggestionsResponse:
    return SuggestionsResponse(
        query=q,
        suggestions=search_suggestions(catalog.list_products(), q, limit),
    )


@router.get("/recent", response_model=RecentSearchesResponse)
async def list_recent(recent: RecentDependency) -> RecentSearchesResponse:
    return RecentSearchesResponse(searches=await recent.list())


@router.post("/recent", response_model=RecentSearchesResponse)
async def add_recent(
    payload: RecentSearchRequest, recent: RecentDependency
) -> RecentSearchesResponse:
    searches = await recent.add(payload.query)
    logger.debug("Recorded recent search %s", payload.query)
    return RecentSearchesResponse(searches=searches)


@router.delete("/recent", status_code=status.HTTP_204_NO_CONTENT)
async def clear_recent(recent: RecentDependency) -> None:
    await recent.clear()
