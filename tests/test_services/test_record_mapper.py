"""Unit tests for the RecordMapper (raw record → Drama)."""
import json
from pathlib import Path

import pytest

from app.models.drama import Drama, DramaGridItem
from app.services.record_mapper import RecordMapper

SAMPLE_FIXTURE = Path(__file__).resolve().parents[2] / "data" / "dramas.json"


@pytest.fixture
def mapper():
    return RecordMapper(image_base_url="https://img.test/w500/")


@pytest.fixture
def sample_records():
    """The shipped sample fixture, keyed by id."""
    data = json.loads(SAMPLE_FIXTURE.read_text(encoding="utf-8"))
    return {r["id"]: r for r in data["dramas"]}


class TestRatingScale:
    """Tests for rating conversion."""

    def test_ten_point_scale_unchanged(self, mapper):
        assert mapper.to_canonical_rating(8.7) == 8.7

    def test_five_point_scale_doubled(self):
        mapper = RecordMapper(rating_scale=5)
        assert mapper.to_canonical_rating(4.25) == 8.5
        assert mapper.to_stored_rating(8.5) == 4.25

    def test_clamped_to_range(self):
        mapper = RecordMapper(rating_scale=5)
        assert mapper.to_canonical_rating(6) == 10.0
        assert mapper.to_canonical_rating(-1) == 0.0

    def test_missing_rating_is_zero(self, mapper):
        assert mapper.to_canonical_rating(None) == 0.0


class TestToGridItem:
    """Tests for RecordMapper.to_grid_item."""

    def test_relative_poster_gets_base_url(self, mapper, sample_records):
        item = mapper.to_grid_item(sample_records["crash-landing-on-you"])

        assert isinstance(item, DramaGridItem)
        assert item.poster_url == "https://img.test/w500/x1Y7F9yQ0m9wV0bD7FZfmTP3x2V.jpg"
        assert item.release_year == 2019
        assert item.rating == 8.7
        assert item.country == "South Korea"
        assert item.genres == ["Romance", "Comedy", "Drama"]

    def test_legacy_field_names(self, mapper, sample_records):
        item = mapper.to_grid_item(sample_records["goblin"])

        assert item.poster_url == "https://example.com/posters/goblin.jpg"
        assert item.release_year == 2016
        assert item.genres == ["Fantasy", "Romance", "Drama"]

    def test_bare_record(self, mapper):
        item = mapper.to_grid_item({"id": 42})
        assert item.id == "42"
        assert item.title == ""
        assert item.poster_url == ""
        assert item.release_year is None
        assert item.genres == []

    def test_camel_case_json(self, mapper, sample_records):
        data = mapper.to_grid_item(sample_records["moving"]).model_dump(by_alias=True)
        assert {"posterUrl", "releaseYear"} <= data.keys()


class TestToDrama:
    """Tests for RecordMapper.to_drama."""

    def test_full_record(self, mapper, sample_records):
        drama = mapper.to_drama(sample_records["crash-landing-on-you"])

        assert isinstance(drama, Drama)
        assert drama.backdrop_url == "https://img.test/w500/nQv7cMH7lzGj9Pe7D8vCYVYbHb2.jpg"
        assert drama.release_date == "2019-12-14"
        assert drama.vote_count == 1720
        assert drama.networks == ["tvN"]
        assert drama.duration_minutes == 70
        assert drama.episode_count == 16
        assert [c.name for c in drama.cast] == ["Hyun Bin", "Son Ye-jin"]
        assert drama.crew[0].job == "Director"
        assert [k.name for k in drama.keywords] == ["north korea"]
        assert drama.external_links.imdb_id == "tt10850932"
        assert drama.origin_country == ["KR"]

    def test_episodes_are_ordered(self, mapper, sample_records):
        drama = mapper.to_drama(sample_records["crash-landing-on-you"])

        season = drama.seasons[0]
        assert season.season_number == 1
        assert [ep.episode_number for ep in season.episodes] == [1, 2]
        assert season.episodes[0].rating == 8.0

    def test_text_duration_and_numeric_episodes(self, mapper, sample_records):
        drama = mapper.to_drama(sample_records["goblin"])

        assert drama.duration_minutes == "82 min"
        assert drama.episode_count == 16
        assert drama.seasons == []

    def test_origin_country_list(self, mapper):
        assert mapper.to_drama({"id": "a", "origin_country": "KR"}).origin_country == ["KR"]
        assert mapper.to_drama({"id": "a"}).origin_country == []

    def test_html_stripped_from_overview(self, mapper):
        drama = mapper.to_drama({"id": "a", "overview": "<p>First <b>love</b></p>"})
        assert drama.overview == "First love"

    def test_invalid_sub_records_skipped(self, mapper):
        drama = mapper.to_drama({
            "id": "a",
            "cast": [{"name": "Kim"}, {"character": "nameless"}, "junk"],
            "videos": {"results": [{"key": "abc", "site": "YouTube"}, {"name": "no key"}]},
        })
        assert [c.name for c in drama.cast] == ["Kim"]
        assert [v.key for v in drama.videos] == ["abc"]

    def test_seasons_from_episodes_list(self, mapper):
        drama = mapper.to_drama({
            "id": "a",
            "episodes": [
                {"season_number": 2, "episodes": []},
                {"season_number": 1, "episode_count": 12},
            ],
        })
        assert [s.season_number for s in drama.seasons] == [1, 2]
        assert drama.seasons[0].name == "Season 1"
        assert drama.seasons[0].episode_count == 12
        assert drama.episode_count is None

    def test_recommendations_mapped_to_grid_items(self, mapper):
        drama = mapper.to_drama({
            "id": "a",
            "recommendations": {"results": [{"id": 7, "title": "Other"}, {"title": "no id"}]},
        })
        assert [r.id for r in drama.recommendations] == ["7"]

    def test_images_and_languages(self, mapper):
        drama = mapper.to_drama({
            "id": "a",
            "images": {"posters": [{"file_path": "/p.jpg", "width": 500}]},
            "spoken_languages": [{"english_name": "Korean", "name": "한국어"}],
        })
        assert drama.images.posters[0].url == "https://img.test/w500/p.jpg"
        assert drama.languages == ["Korean"]

    def test_grid_projection_matches(self, mapper, sample_records):
        record = sample_records["queen-of-tears"]
        assert mapper.to_drama(record).to_grid_item() == mapper.to_grid_item(record)
