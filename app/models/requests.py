"""Pydantic models for catalog requests."""
from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_PAGE_SIZE = 28


class SortOrder(str, Enum):
    """Public sort options for the drama grid."""
    POPULARITY = "popularity"
    RATING = "rating"
    NEWEST = "newest"
    OLDEST = "oldest"
    TITLE = "title"


class SearchQuery(BaseModel):
    """Normalized, immutable search request.

    Attributes:
        text: Case-insensitive substring matched against title or overview.
        genre: Genre name; matched as membership in the item's genre set.
        country: Country code or name; expanded through the alias table.
        min_rating: Inclusive lower bound on the canonical 0–10 rating.
        year: Exact release year.
        status: Airing status, compared case-insensitively.
        sort: Result order.
        page: 1-based page number.
        page_size: Items per page.
    """
    model_config = ConfigDict(frozen=True)

    text: Optional[str] = None
    genre: Optional[str] = None
    country: Optional[str] = None
    min_rating: Optional[float] = Field(default=None, ge=0.0, le=10.0)
    year: Optional[int] = None
    status: Optional[str] = None
    sort: SortOrder = SortOrder.POPULARITY
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=DEFAULT_PAGE_SIZE, gt=0)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    def active_filters(self) -> dict[str, object]:
        """Return only the filters that are set (for logging)."""
        return self.model_dump(
            include={"text", "genre", "country", "min_rating", "year", "status"},
            exclude_none=True,
        )
