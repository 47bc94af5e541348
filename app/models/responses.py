"""Pydantic models for API response serialization."""
from __future__ import annotations

import math

from pydantic import Field

from app.models.drama import CamelModel, Drama, DramaGridItem


class SearchResult(CamelModel):
    """One page of grid items.

    Attributes:
        items: At most ``page_size`` grid items.
        total: Number of items matching the filters (not just this page).
        page: 1-based page number that was requested.
        page_size: Requested page size.
        total_pages: ``ceil(total / page_size)``.
        total_is_estimate: True when the store could only estimate ``total``.
    """
    items: list[DramaGridItem] = Field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int
    total_pages: int = 0
    total_is_estimate: bool = False

    @classmethod
    def build(
        cls,
        items: list[DramaGridItem],
        total: int,
        page: int,
        page_size: int,
        total_is_estimate: bool = False,
    ) -> "SearchResult":
        return cls(
            items=items,
            total=total,
            page=page,
            page_size=page_size,
            total_pages=math.ceil(total / page_size) if total > 0 else 0,
            total_is_estimate=total_is_estimate,
        )


class DramaResponse(CamelModel):
    """Detail response: ``{"item": Drama}``."""
    item: Drama


class GenreListResponse(CamelModel):
    genres: list[str] = Field(default_factory=list)


class ErrorResponse(CamelModel):
    """Standard error response."""
    success: bool = False
    error: str = Field(..., description="Machine-readable error code")
    message: str = Field(default="", description="Human-readable explanation")
