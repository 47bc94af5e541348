"""Abstract catalog backend shared by every concrete store.

The Query Resolver talks to the catalog exclusively through this interface,
so the concrete store (in-memory fixture, Supabase/PostgREST table) is
swappable. A backend is only expected to support:

- case-insensitive substring match on text fields
- equality, range and membership filters
- ordering by one or more fields
- offset/limit pagination
- an exact or estimated match count

Backends also keep a small listener registry so callers can be told when the
underlying collection changed (see ``app.services.live_search``).
"""
from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

import structlog
from pydantic import BaseModel, ConfigDict, Field

logger = structlog.get_logger(__name__)

ChangeListener = Callable[[dict[str, Any]], None]


class FieldMap(BaseModel):
    """Stored field name for each logical catalog field."""
    model_config = ConfigDict(frozen=True)

    id: str = "id"
    title: str = "title"
    overview: str = "overview"
    genre: str = "genres"
    country: str = "country"
    status: str = "status"
    rating: str = "rating"
    year: str = "year"

    def column(self, logical: str) -> str:
        return getattr(self, logical)


class SortKey(BaseModel):
    """Ordering on one logical field. Missing values always sort last."""
    model_config = ConfigDict(frozen=True)

    field: str
    descending: bool = False


class BackendQuery(BaseModel):
    """Backend-agnostic filter/sort/page request.

    ``countries`` holds every accepted spelling of one country (the filter
    matches any of them). ``min_rating`` is already in the store's scale.
    """
    model_config = ConfigDict(frozen=True)

    text: Optional[str] = None
    genre: Optional[str] = None
    countries: frozenset[str] = frozenset()
    min_rating: Optional[float] = None
    year: Optional[int] = None
    status: Optional[str] = None
    order_by: tuple[SortKey, ...] = ()
    offset: int = Field(default=0, ge=0)
    limit: int = Field(default=28, gt=0)


class BackendPage(BaseModel):
    """Raw records for one page plus the total match count."""
    records: list[dict[str, Any]] = Field(default_factory=list)
    total: int = 0
    total_is_estimate: bool = False


class CatalogBackend(ABC):
    """Abstract base class for catalog stores.

    Args:
        field_map: Stored field names for the logical catalog fields.
    """

    name = "catalog"

    def __init__(self, field_map: FieldMap | None = None) -> None:
        self.field_map = field_map or FieldMap()
        self._listeners: list[ChangeListener] = []
        self._listeners_lock = threading.Lock()

    # ── Queries ───────────────────────────────────────────────────────

    @abstractmethod
    def query_by_filters(self, query: BackendQuery) -> BackendPage:
        """Run one filtered, ordered, paginated query.

        Raises:
            BackendUnavailableError: The store could not be reached.
            BackendQueryError: The store rejected the query.
        """
        ...

    @abstractmethod
    def get_record_by_id(self, record_id: str) -> dict[str, Any] | None:
        """Fetch one raw record, or None if the id does not exist."""
        ...

    @abstractmethod
    def list_distinct_values(self, field: str) -> set[str]:
        """Distinct stored values of a logical field.

        Array-valued fields are flattened into their elements; string values
        are returned as stored (callers canonicalize delimited strings).
        """
        ...

    @abstractmethod
    def health_check(self) -> bool:
        """Verify the store is reachable. Used by /health endpoint."""
        ...

    def close(self) -> None:
        """Release any held connections."""

    # ── Change notifications ──────────────────────────────────────────

    def add_listener(self, listener: ChangeListener) -> None:
        with self._listeners_lock:
            if listener not in self._listeners:
                self._listeners.append(listener)

    def remove_listener(self, listener: ChangeListener) -> None:
        with self._listeners_lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def notify_changed(self, event: dict[str, Any] | None = None) -> None:
        """Tell every listener the collection changed.

        A failing listener is logged and does not stop the others.
        """
        event = event or {"type": "changed"}
        with self._listeners_lock:
            listeners = list(self._listeners)

        logger.debug("collection_changed", backend=self.name, listeners=len(listeners))
        for listener in listeners:
            try:
                listener(event)
            except Exception as e:
                logger.error(
                    "change_listener_failed",
                    backend=self.name,
                    error=str(e),
                    exc_info=True,
                )

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()
