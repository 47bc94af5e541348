"""Live search — re-run the last query whenever the catalog changes.

A convenience for auto-refreshing a stale result list. It is not a
consistency mechanism: callers that never attach one get exactly the same
search results.

Usage:
    live = LiveSearch(resolver, query, on_result=render)
    live.attach()          # starts listening
    live.update(new_query) # re-targets the subscription
    live.detach()          # stop listening; late notifications are ignored
"""
from __future__ import annotations

import threading
from typing import Any, Callable

import structlog

from app.models.requests import SearchQuery
from app.models.responses import SearchResult
from app.services.query_resolver import QueryResolver
from app.utils.exceptions import BackendError

logger = structlog.get_logger(__name__)

ResultCallback = Callable[[SearchResult], None]


class LiveSearch:
    """Observer that re-issues a search on backend change notifications.

    Args:
        resolver: Resolver used to re-run the query.
        query: Initial query.
        on_result: Called with each refreshed SearchResult.
    """

    def __init__(
        self,
        resolver: QueryResolver,
        query: SearchQuery,
        on_result: ResultCallback,
    ) -> None:
        self._resolver = resolver
        self._query = query
        self._on_result = on_result
        self._lock = threading.Lock()
        self._generation = 0
        self._attached = False

    @property
    def attached(self) -> bool:
        return self._attached

    @property
    def query(self) -> SearchQuery:
        return self._query

    def attach(self) -> None:
        """Start listening for backend changes."""
        with self._lock:
            if self._attached:
                return
            self._attached = True
            self._generation += 1
        self._resolver.backend.add_listener(self._handle_change)
        logger.debug("live_search_attached", filters=self._query.active_filters())

    def detach(self) -> None:
        """Stop listening. In-flight refreshes finish but are not delivered."""
        with self._lock:
            if not self._attached:
                return
            self._attached = False
            self._generation += 1
        self._resolver.backend.remove_listener(self._handle_change)
        logger.debug("live_search_detached")

    def update(self, query: SearchQuery) -> None:
        """Replace the query; refreshes for the old query are dropped."""
        with self._lock:
            self._query = query
            self._generation += 1

    def refresh(self) -> SearchResult | None:
        """Re-run the current query and deliver the result.

        Returns:
            The delivered result, or None if it was superseded, the
            subscription was detached, or the backend failed.
        """
        with self._lock:
            if not self._attached:
                return None
            generation = self._generation
            query = self._query

        try:
            result = self._resolver.search(query)
        except BackendError as e:
            logger.warning("live_search_refresh_failed", error=e.message)
            return None

        with self._lock:
            if not self._attached or generation != self._generation:
                logger.debug("live_search_result_superseded")
                return None

        self._on_result(result)
        return result

    def _handle_change(self, event: dict[str, Any]) -> None:
        logger.debug("live_search_change", event_type=event.get("type"))
        self.refresh()
