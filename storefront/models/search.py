"""Search API schemas."""

from __future__ import annotations

from pydantic import BaseModel, Field


class RecentSearchRequest(BaseModel):
    query: str = Field(..., min_length=1)


class RecentSearchesResponse(BaseModel):
    searches: list[str] = Field(default_factory=list)


class SuggestionsResponse(BaseModel):
    query: str
    suggestions: list[str] = Field(default_factory=list)
