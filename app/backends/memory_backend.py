"""In-memory catalog backend.

Holds raw records in a dict keyed by id and evaluates every filter in
Python with exact counts. It is loaded from a JSON fixture (a list of
records, or ``{"dramas": [...]}``) and serves local development and tests.
``replace_records()`` is the ingestion hook: it swaps the whole collection
and notifies change listeners.
"""
from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Any, Iterable

import structlog

from app.backends.base import BackendPage, BackendQuery, CatalogBackend, FieldMap, SortKey
from app.utils import records as rec

logger = structlog.get_logger(__name__)


class MemoryBackend(CatalogBackend):
    """Catalog store backed by a Python dict."""

    name = "memory"

    def __init__(
        self,
        records: Iterable[dict[str, Any]] = (),
        field_map: FieldMap | None = None,
    ) -> None:
        super().__init__(field_map)
        self._lock = threading.Lock()
        self._records: dict[str, dict[str, Any]] = {}
        self._load(records)

    @classmethod
    def from_fixture(cls, path: str | Path, field_map: FieldMap | None = None) -> "MemoryBackend":
        """Build a backend from a JSON fixture file.

        A missing file yields an empty catalog (logged as a warning).
        """
        path = Path(path)
        if not path.exists():
            logger.warning("fixture_missing", path=str(path))
            return cls(field_map=field_map)

        with path.open(encoding="utf-8") as fh:
            data = json.load(fh)
        records = data.get("dramas", []) if isinstance(data, dict) else data
        logger.info("fixture_loaded", path=str(path), records=len(records))
        return cls(records, field_map=field_map)

    # ── Ingestion ─────────────────────────────────────────────────────

    def replace_records(self, records: Iterable[dict[str, Any]]) -> None:
        """Replace the whole collection and notify listeners."""
        self._load(records)
        self.notify_changed({"type": "replaced", "count": len(self._records)})

    def _load(self, records: Iterable[dict[str, Any]]) -> None:
        loaded: dict[str, dict[str, Any]] = {}
        for record in records:
            record_id = rec.record_id(record)
            if not record_id:
                logger.warning("record_without_id_skipped", title=record.get("title"))
                continue
            loaded[record_id] = dict(record)
        with self._lock:
            self._records = loaded

    def _snapshot(self) -> list[dict[str, Any]]:
        with self._lock:
            return list(self._records.values())

    # ── Queries ───────────────────────────────────────────────────────

    def query_by_filters(self, query: BackendQuery) -> BackendPage:
        matches = [r for r in self._snapshot() if self._matches(r, query)]
        for key in reversed(query.order_by):
            matches = self._sorted(matches, key)

        page = matches[query.offset:query.offset + query.limit]
        return BackendPage(records=[dict(r) for r in page], total=len(matches))

    def get_record_by_id(self, record_id: str) -> dict[str, Any] | None:
        with self._lock:
            record = self._records.get(str(record_id))
        return dict(record) if record is not None else None

    def list_distinct_values(self, field: str) -> set[str]:
        column = self.field_map.column(field)
        values: set[str] = set()
        for record in self._snapshot():
            value = record.get(column)
            if field == "genre" and value in (None, "", []):
                value = rec.first_present(record, *rec.GENRE_FIELDS)
            if isinstance(value, (list, tuple)):
                values.update(
                    str(v.get("name") if isinstance(v, dict) else v)
                    for v in value
                    if v is not None
                )
            elif value not in (None, ""):
                values.add(str(value))
        return values

    def health_check(self) -> bool:
        return True

    @property
    def size(self) -> int:
        with self._lock:
            return len(self._records)

    # ── Evaluation ────────────────────────────────────────────────────

    def _value(self, record: dict[str, Any], field: str) -> Any:
        """Read a logical field, honoring the legacy field-name fallbacks."""
        column = self.field_map.column(field)
        if field == "rating":
            value = rec.to_float(record.get(column))
            return value if value is not None else rec.record_rating(record)
        if field == "year":
            value = rec.to_int(record.get(column))
            return value if value else rec.record_year(record)
        if field == "genre":
            value = record.get(column)
            return rec.split_genres(value) if value not in (None, "", []) else rec.record_genres(record)
        if field == "id":
            return rec.record_id(record)
        return rec.record_text(record, column)

    def _matches(self, record: dict[str, Any], query: BackendQuery) -> bool:
        if query.text:
            needle = query.text.casefold()
            title = self._value(record, "title").casefold()
            overview = self._value(record, "overview").casefold()
            if needle not in title and needle not in overview:
                return False

        if query.genre:
            wanted = query.genre.strip().casefold()
            if wanted not in {g.casefold() for g in self._value(record, "genre")}:
                return False

        if query.countries:
            country = self._value(record, "country").strip().casefold()
            if country not in {c.casefold() for c in query.countries}:
                return False

        if query.min_rating is not None:
            rating = self._value(record, "rating")
            if rating is None or rating < query.min_rating:
                return False

        if query.year is not None and self._value(record, "year") != query.year:
            return False

        if query.status:
            status = self._value(record, "status").strip().casefold()
            if status != query.status.strip().casefold():
                return False

        return True

    def _sorted(self, records: list[dict[str, Any]], key: SortKey) -> list[dict[str, Any]]:
        """Stable sort on one key with missing values last in either direction."""
        present = []
        missing = []
        for record in records:
            value = self._value(record, key.field)
            if value is None or value == "":
                missing.append(record)
            else:
                present.append((value, record))
        present.sort(key=lambda pair: pair[0], reverse=key.descending)
        return [record for _, record in present] + missing
