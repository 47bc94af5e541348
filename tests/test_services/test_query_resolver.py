"""Unit tests for the Query Resolver."""
from unittest.mock import MagicMock

import pytest

from app.backends.base import BackendPage, CatalogBackend
from app.backends.memory_backend import MemoryBackend
from app.models.drama import Drama
from app.models.requests import SearchQuery, SortOrder
from app.services.query_resolver import QueryResolver
from app.services.record_mapper import RecordMapper
from app.utils.exceptions import BackendQueryError, BackendUnavailableError


@pytest.fixture
def mock_backend():
    """Create a mock CatalogBackend."""
    backend = MagicMock(spec=CatalogBackend)
    backend.name = "mock"
    return backend


# ── Search: filters and pagination ───────────────────────────────────


class TestSearch:
    """Tests for QueryResolver.search."""

    def test_text_and_genre_second_page(self, resolver):
        """25 items, 15 matching both filters, page 2 of 10 → 5 items."""
        result = resolver.search(SearchQuery(text="love", genre="Romance", page=2, page_size=10))

        assert result.total == 15
        assert result.total_pages == 2
        assert len(result.items) == 5
        assert result.page == 2
        assert result.total_is_estimate is False

    def test_every_item_satisfies_filters(self, resolver):
        result = resolver.search(SearchQuery(text="LOVE", genre="romance", page_size=50))

        assert result.total == 15
        for item in result.items:
            assert "love" in item.title.lower()
            assert "romance" in [g.lower() for g in item.genres]

    def test_text_matches_overview(self, resolver):
        result = resolver.search(SearchQuery(text="doctors", page_size=50))
        assert {item.id for item in result.items} == {"d20", "d21", "d22", "d23", "d24"}

    def test_text_is_substring_not_prefix(self, resolver):
        result = resolver.search(SearchQuery(text="story", page_size=50))
        assert result.total == 15

    def test_no_filters_returns_everything(self, resolver):
        result = resolver.search(SearchQuery(page_size=10))
        assert result.total == 25
        assert result.total_pages == 3
        assert len(result.items) == 10

    def test_page_never_exceeds_page_size(self, resolver):
        for page in range(1, 5):
            result = resolver.search(SearchQuery(page=page, page_size=7))
            assert len(result.items) <= 7

    def test_page_past_end_is_empty_not_error(self, resolver):
        result = resolver.search(SearchQuery(page=10, page_size=10))
        assert result.items == []
        assert result.total == 25
        assert result.total_pages == 3

    def test_no_matches(self, resolver):
        result = resolver.search(SearchQuery(text="zombie"))
        assert result.items == []
        assert result.total == 0
        assert result.total_pages == 0

    def test_country_code_and_name_are_equivalent(self, resolver):
        by_code = resolver.search(SearchQuery(country="kr", page_size=50))
        by_name = resolver.search(SearchQuery(country="South Korea", page_size=50))

        assert by_code.total == 17
        assert {i.id for i in by_code.items} == {i.id for i in by_name.items}

    def test_other_country_filter(self, resolver):
        result = resolver.search(SearchQuery(country="Japan", page_size=50))
        assert result.total == 8

    def test_genre_array_and_comma_string_both_match(self, resolver):
        result = resolver.search(SearchQuery(genre="Drama", page_size=50))
        ids = {item.id for item in result.items}
        assert "d00" in ids  # stored as a list
        assert "d01" in ids  # stored as "Romance, Drama"
        assert result.total == 15

    def test_genre_is_membership_not_substring(self, resolver):
        result = resolver.search(SearchQuery(genre="Rom"))
        assert result.total == 0

    def test_min_rating_is_inclusive(self, resolver):
        result = resolver.search(SearchQuery(min_rating=9.5, page_size=50))
        assert {i.id for i in result.items} == {"d09", "d19"}

    def test_year_filter(self, resolver):
        result = resolver.search(SearchQuery(year=2005))
        assert [i.id for i in result.items] == ["d05"]

    def test_status_is_case_insensitive(self, resolver):
        result = resolver.search(SearchQuery(status="ENDED", page_size=50))
        assert result.total == 18

    def test_blank_filters_are_ignored(self, resolver):
        result = resolver.search(SearchQuery(genre="  ", country=" ", status=""))
        assert result.total == 25


# ── Search: ordering ─────────────────────────────────────────────────


class TestSearchOrdering:
    """Tests for deterministic sort orders."""

    def test_popularity_orders_by_rating_then_year(self, resolver):
        result = resolver.search(SearchQuery(page_size=4))
        assert [i.id for i in result.items] == ["d19", "d09", "d18", "d08"]

    def test_title_sort_is_ascending(self, resolver):
        result = resolver.search(SearchQuery(sort=SortOrder.TITLE, page_size=50))
        titles = [i.title for i in result.items]
        assert titles == sorted(titles)

    def test_newest_and_oldest(self, resolver):
        newest = resolver.search(SearchQuery(sort=SortOrder.NEWEST, page_size=3))
        oldest = resolver.search(SearchQuery(sort=SortOrder.OLDEST, page_size=3))
        assert [i.release_year for i in newest.items] == [2024, 2023, 2022]
        assert [i.release_year for i in oldest.items] == [2000, 2001, 2002]

    def test_pages_are_disjoint_and_complete(self, resolver):
        seen = []
        for page in range(1, 4):
            result = resolver.search(SearchQuery(sort=SortOrder.RATING, page=page, page_size=10))
            seen.extend(i.id for i in result.items)
        assert len(seen) == 25
        assert len(set(seen)) == 25

    def test_repeated_search_is_deterministic(self, resolver):
        query = SearchQuery(sort=SortOrder.RATING, page=2, page_size=6)
        assert resolver.search(query) == resolver.search(query)

    def test_missing_rating_sorts_last(self, backend, resolver, catalog):
        backend.replace_records(catalog + [{"id": "zz", "title": "Unrated"}])
        result = resolver.search(SearchQuery(sort=SortOrder.RATING, page_size=50))
        assert result.items[-1].id == "zz"
        assert result.items[-1].rating == 0.0


# ── Backend translation ──────────────────────────────────────────────


class TestToBackendQuery:
    """Tests for QueryResolver.to_backend_query."""

    def test_single_backend_call(self, mock_backend):
        mock_backend.query_by_filters.return_value = BackendPage(records=[], total=0)
        QueryResolver(mock_backend).search(SearchQuery(text="love"))
        assert mock_backend.query_by_filters.call_count == 1

    def test_offset_and_limit(self, resolver):
        backend_query = resolver.to_backend_query(SearchQuery(page=3, page_size=10))
        assert backend_query.offset == 20
        assert backend_query.limit == 10

    def test_country_expanded_to_aliases(self, resolver):
        backend_query = resolver.to_backend_query(SearchQuery(country="South Korea"))
        assert {"kr", "KR", "South Korea"} <= backend_query.countries

    def test_rating_converted_to_stored_scale(self, mock_backend):
        resolver = QueryResolver(mock_backend, RecordMapper(rating_scale=5))
        backend_query = resolver.to_backend_query(SearchQuery(min_rating=8))
        assert backend_query.min_rating == 4.0

    def test_every_sort_ends_with_id_tiebreak(self, resolver):
        for sort in SortOrder:
            order_by = resolver.to_backend_query(SearchQuery(sort=sort)).order_by
            assert order_by[-1].field == "id"

    def test_estimated_total_is_flagged(self, mock_backend):
        mock_backend.query_by_filters.return_value = BackendPage(
            records=[{"id": "a", "title": "A"}], total=120, total_is_estimate=True,
        )
        result = QueryResolver(mock_backend).search(SearchQuery(page_size=10))
        assert result.total == 120
        assert result.total_is_estimate is True
        assert result.total_pages == 12

    def test_five_point_scale_ratings_exposed_on_ten(self):
        backend = MemoryBackend([{"id": "a", "title": "A", "rating": 4.5}])
        resolver = QueryResolver(backend, RecordMapper(rating_scale=5))

        result = resolver.search(SearchQuery(min_rating=9))
        assert result.total == 1
        assert result.items[0].rating == 9.0


# ── Failures ─────────────────────────────────────────────────────────


class TestBackendFailures:
    """Backend errors propagate instead of becoming empty results."""

    def test_unavailable_propagates(self, mock_backend):
        mock_backend.query_by_filters.side_effect = BackendUnavailableError("down", backend_name="mock")
        with pytest.raises(BackendUnavailableError):
            QueryResolver(mock_backend).search(SearchQuery(text="love"))

    def test_query_error_propagates(self, mock_backend):
        mock_backend.query_by_filters.side_effect = BackendQueryError("bad filter", backend_name="mock")
        with pytest.raises(BackendQueryError):
            QueryResolver(mock_backend).search(SearchQuery())

    def test_get_by_id_unavailable_propagates(self, mock_backend):
        mock_backend.get_record_by_id.side_effect = BackendUnavailableError("down", backend_name="mock")
        with pytest.raises(BackendUnavailableError):
            QueryResolver(mock_backend).get_by_id("d01")


# ── Detail ───────────────────────────────────────────────────────────


class TestGetById:
    """Tests for QueryResolver.get_by_id."""

    def test_round_trip_from_search(self, resolver):
        result = resolver.search(SearchQuery(text="love", page_size=5))
        for item in result.items:
            drama = resolver.get_by_id(item.id)
            assert isinstance(drama, Drama)
            assert drama.id == item.id
            assert drama.title == item.title
            assert drama.to_grid_item() == item

    def test_unknown_id_returns_none(self, resolver):
        assert resolver.get_by_id("does-not-exist") is None

    def test_blank_id_skips_backend(self, mock_backend):
        assert QueryResolver(mock_backend).get_by_id("  ") is None
        mock_backend.get_record_by_id.assert_not_called()


# ── Genres ───────────────────────────────────────────────────────────


class TestListGenres:
    """Tests for QueryResolver.list_genres."""

    def test_distinct_sorted(self, resolver):
        assert resolver.list_genres() == ["Action", "Drama", "Romance"]

    def test_comma_strings_split_and_case_deduplicated(self, mock_backend):
        mock_backend.list_distinct_values.return_value = {
            "Romance, Drama", "romance", "Thriller", " Comedy ",
        }
        genres = QueryResolver(mock_backend).list_genres()

        assert genres == ["Comedy", "Drama", "Romance", "Thriller"]
        mock_backend.list_distinct_values.assert_called_once_with("genre")

    def test_empty_catalog(self):
        assert QueryResolver(MemoryBackend()).list_genres() == []
