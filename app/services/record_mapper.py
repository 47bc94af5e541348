"""Raw catalog record → canonical Drama model.

Every ingestion generation stored dramas a little differently, so this is
the single place that knows the fallbacks:

- rating: ``rating`` then ``vote_average``, rescaled to 0–10
- poster: ``poster`` / ``poster_url`` / ``poster_path`` (relative TMDB paths
  are prefixed with the image base URL)
- year: ``year`` / ``release_year``, else the prefix of the release date
- genres: native array or comma-joined string
- cast / crew: top level or under ``credits``
- videos / keywords / recommendations: plain list or ``{"results": [...]}``

Missing or malformed fields fall back to empty defaults; a bad record never
fails the request.
"""
from __future__ import annotations

from typing import Any, Callable, TypeVar

import structlog
from pydantic import BaseModel, ValidationError

from app.models.drama import (
    CastMember,
    CrewMember,
    Drama,
    DramaGridItem,
    Episode,
    ExternalLinks,
    ImageData,
    Images,
    Keyword,
    Season,
    Video,
)
from app.utils import records as rec
from app.utils.countries import display_country
from app.utils.sanitizer import strip_html

logger = structlog.get_logger(__name__)

CANONICAL_RATING_SCALE = 10.0

M = TypeVar("M", bound=BaseModel)


class RecordMapper:
    """Maps raw store records into Drama / DramaGridItem models.

    Args:
        rating_scale: Scale the store's ratings use (5 or 10).
        image_base_url: Prefix for relative image paths.
    """

    def __init__(
        self,
        rating_scale: float = CANONICAL_RATING_SCALE,
        image_base_url: str = "https://image.tmdb.org/t/p/w500",
    ) -> None:
        self._rating_scale = rating_scale
        self._image_base_url = image_base_url.rstrip("/")

    # ── Rating scale ──────────────────────────────────────────────────

    def to_canonical_rating(self, value: float | None) -> float:
        """Convert a stored rating to the 0–10 scale, clamped."""
        if value is None:
            return 0.0
        scaled = value * CANONICAL_RATING_SCALE / self._rating_scale
        return round(min(max(scaled, 0.0), CANONICAL_RATING_SCALE), 2)

    def to_stored_rating(self, value: float) -> float:
        """Convert a 0–10 rating back to the store's scale (for filters)."""
        return value * self._rating_scale / CANONICAL_RATING_SCALE

    # ── Public mappers ────────────────────────────────────────────────

    def to_grid_item(self, record: dict[str, Any]) -> DramaGridItem:
        return DramaGridItem(
            id=rec.record_id(record),
            title=rec.record_text(record, "title"),
            poster_url=self._image_url(rec.first_present(record, "poster", "poster_url", "poster_path")) or "",
            release_year=rec.record_year(record),
            rating=self.to_canonical_rating(rec.record_rating(record)),
            country=display_country(rec.record_text(record, "country")),
            genres=rec.record_genres(record),
        )

    def to_drama(self, record: dict[str, Any]) -> Drama:
        """Build the fully-populated detail model."""
        credits = record.get("credits") if isinstance(record.get("credits"), dict) else {}
        episodes_field = record.get("episodes")

        return Drama(
            id=rec.record_id(record),
            title=rec.record_text(record, "title"),
            original_title=_opt_str(rec.first_present(record, "original_title", "original_name")),
            overview=strip_html(rec.record_text(record, "overview")),
            tagline=rec.record_text(record, "tagline"),
            poster_url=self._image_url(rec.first_present(record, "poster", "poster_url", "poster_path")) or "",
            backdrop_url=self._image_url(rec.first_present(record, "backdrop_url", "backdrop_path", "backdrop")),
            release_year=rec.record_year(record),
            release_date=_opt_str(rec.first_present(record, *rec.DATE_FIELDS)),
            rating=self.to_canonical_rating(rec.record_rating(record)),
            vote_count=rec.to_int(record.get("vote_count")),
            popularity=rec.to_float(record.get("popularity"), 0.0),
            genres=rec.record_genres(record),
            country=display_country(rec.record_text(record, "country")),
            origin_country=_names(record.get("origin_country") or []),
            original_language=_opt_str(rec.first_present(record, "original_language", "language")),
            languages=_names(rec.first_present(record, "languages", "spoken_languages", default=[])),
            networks=_names(record.get("networks") or []),
            status=rec.record_text(record, "status").strip(),
            duration_minutes=_duration(record),
            episode_count=rec.to_int(
                episodes_field if not isinstance(episodes_field, list) else None
            ) or rec.to_int(record.get("number_of_episodes")),
            homepage=_opt_str(rec.first_present(record, "homepage")),
            seasons=self._seasons(record),
            cast=self._many(CastMember, rec.first_present(record, "cast", default=credits.get("cast")), self._cast),
            crew=self._many(CrewMember, rec.first_present(record, "crew", default=credits.get("crew")), self._crew),
            videos=self._many(Video, rec.unwrap_results(record.get("videos")), dict),
            images=self._images(record.get("images")),
            keywords=self._many(Keyword, rec.unwrap_results(record.get("keywords"), "results", "keywords"), _keyword),
            external_links=self._external_links(record.get("external_ids")),
            recommendations=[
                self.to_grid_item(r)
                for r in rec.unwrap_results(record.get("recommendations"))
                if isinstance(r, dict) and rec.record_id(r)
            ],
        )

    # ── Private Parsers ───────────────────────────────────────────────

    def _image_url(self, path: Any) -> str | None:
        if not path or not isinstance(path, str):
            return None
        if path.startswith("/"):
            return f"{self._image_base_url}{path}"
        return path

    def _many(
        self,
        model: type[M],
        raw: Any,
        parse: Callable[[Any], dict[str, Any]],
    ) -> list[M]:
        """Parse a list of sub-records, skipping entries that don't validate."""
        if not isinstance(raw, list):
            return []
        parsed: list[M] = []
        for entry in raw:
            if not isinstance(entry, dict):
                continue
            try:
                parsed.append(model.model_validate(parse(entry)))
            except ValidationError as e:
                logger.debug("sub_record_skipped", model=model.__name__, error=str(e))
        return parsed

    def _cast(self, raw: dict[str, Any]) -> dict[str, Any]:
        return {
            "id": rec.to_int(raw.get("id")),
            "name": raw.get("name"),
            "character": raw.get("character") or "",
            "profile_url": self._image_url(raw.get("profile_path") or raw.get("profile_url")),
            "order": rec.to_int(raw.get("order")),
        }

    def _crew(self, raw: dict[str, Any]) -> dict[str, Any]:
        return {
            "id": rec.to_int(raw.get("id")),
            "name": raw.get("name"),
            "job": raw.get("job") or "",
            "department": raw.get("department") or "",
            "profile_url": self._image_url(raw.get("profile_path") or raw.get("profile_url")),
        }

    def _seasons(self, record: dict[str, Any]) -> list[Season]:
        raw = record.get("seasons")
        if not isinstance(raw, list) or not raw:
            # Some rows keep the season list under "episodes"
            episodes_field = record.get("episodes")
            raw = episodes_field if isinstance(episodes_field, list) else []

        seasons = self._many(Season, raw, self._season)
        return sorted(seasons, key=lambda s: s.season_number)

    def _season(self, raw: dict[str, Any]) -> dict[str, Any]:
        season_number = rec.to_int(raw.get("season_number"), 0)
        episodes = self._many(
            Episode,
            raw.get("episodes"),
            lambda ep: self._episode(ep, season_number),
        )
        episodes.sort(key=lambda ep: (ep.season_number, ep.episode_number))
        return {
            "season_number": season_number,
            "name": raw.get("name") or f"Season {season_number}",
            "overview": strip_html(raw.get("overview")),
            "air_date": raw.get("air_date"),
            "episode_count": rec.to_int(raw.get("episode_count")) or len(episodes),
            "poster_url": self._image_url(raw.get("poster_path") or raw.get("poster_url")),
            "episodes": episodes,
        }

    def _episode(self, raw: dict[str, Any], season_number: int) -> dict[str, Any]:
        return {
            "episode_number": rec.to_int(raw.get("episode_number")),
            "season_number": rec.to_int(raw.get("season_number"), season_number),
            "name": raw.get("name") or "",
            "overview": strip_html(raw.get("overview")),
            "air_date": raw.get("air_date"),
            "still_url": self._image_url(raw.get("still_path") or raw.get("still_url")),
            "rating": self.to_canonical_rating(rec.to_float(raw.get("vote_average"))),
        }

    def _images(self, raw: Any) -> Images:
        if not isinstance(raw, dict):
            return Images()

        def image(entry: dict[str, Any]) -> dict[str, Any]:
            return {
                "url": self._image_url(entry.get("file_path") or entry.get("url")),
                "width": rec.to_int(entry.get("width")),
                "height": rec.to_int(entry.get("height")),
                "aspect_ratio": rec.to_float(entry.get("aspect_ratio")),
            }

        return Images(
            backdrops=self._many(ImageData, raw.get("backdrops"), image),
            posters=self._many(ImageData, raw.get("posters"), image),
            logos=self._many(ImageData, raw.get("logos"), image),
        )

    @staticmethod
    def _external_links(raw: Any) -> ExternalLinks:
        if not isinstance(raw, dict):
            return ExternalLinks()
        return ExternalLinks(
            imdb_id=raw.get("imdb_id") or None,
            facebook_id=raw.get("facebook_id") or None,
            instagram_id=raw.get("instagram_id") or None,
            twitter_id=raw.get("twitter_id") or None,
        )


def _keyword(raw: dict[str, Any]) -> dict[str, Any]:
    return {"id": rec.to_int(raw.get("id")), "name": raw.get("name")}


def _names(raw: Any) -> list[str]:
    """Flatten ``["Korean"]`` or ``[{"name": "tvN"}]`` into plain names."""
    if isinstance(raw, str):
        return [raw] if raw.strip() else []
    if not isinstance(raw, list):
        return []
    names = []
    for entry in raw:
        name = entry.get("english_name") or entry.get("name") if isinstance(entry, dict) else entry
        if name:
            names.append(str(name))
    return names


def _duration(record: dict[str, Any]) -> int | str | None:
    """Runtime in minutes when numeric, otherwise the stored text ("60 min")."""
    value = rec.first_present(record, "duration", "runtime", "episode_run_time")
    if isinstance(value, list):
        value = value[0] if value else None
    if value is None:
        return None
    number = rec.to_int(value)
    return number if number is not None else str(value)


def _opt_str(value: Any) -> str | None:
    return None if value is None else str(value)
