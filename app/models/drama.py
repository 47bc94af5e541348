"""Pydantic models for catalog entries.

These models are the canonical, display-ready shape of a drama. Raw store
records are mapped into them by ``app.services.record_mapper``; nothing
else constructs them from raw data. JSON output uses camelCase aliases.
"""
from __future__ import annotations

from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serializing field names as camelCase."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ══════════════════════════════════════════════════════════════════════
# People
# ══════════════════════════════════════════════════════════════════════

class CastMember(CamelModel):
    """Actor credited on a drama."""
    id: Optional[int] = None
    name: str
    character: str = ""
    profile_url: Optional[str] = None
    order: Optional[int] = None


class CrewMember(CamelModel):
    """Crew credit (director, writer, ...)."""
    id: Optional[int] = None
    name: str
    job: str = ""
    department: str = ""
    profile_url: Optional[str] = None


# ══════════════════════════════════════════════════════════════════════
# Seasons / Episodes
# ══════════════════════════════════════════════════════════════════════

class Episode(CamelModel):
    """One episode, ordered by (season_number, episode_number)."""
    episode_number: int
    season_number: int
    name: str = ""
    overview: str = ""
    air_date: Optional[str] = None
    still_url: Optional[str] = None
    rating: float = 0.0


class Season(CamelModel):
    """A season owning its ordered episodes."""
    season_number: int
    name: str = ""
    overview: str = ""
    air_date: Optional[str] = None
    episode_count: int = 0
    poster_url: Optional[str] = None
    episodes: list[Episode] = Field(default_factory=list)


# ══════════════════════════════════════════════════════════════════════
# Auxiliary media
# ══════════════════════════════════════════════════════════════════════

class Video(CamelModel):
    """Trailer / teaser hosted on an external site."""
    key: str
    name: str = ""
    site: str = ""
    type: str = ""
    official: bool = False
    published_at: Optional[str] = None


class ImageData(CamelModel):
    url: str
    width: Optional[int] = None
    height: Optional[int] = None
    aspect_ratio: Optional[float] = None


class Images(CamelModel):
    backdrops: list[ImageData] = Field(default_factory=list)
    posters: list[ImageData] = Field(default_factory=list)
    logos: list[ImageData] = Field(default_factory=list)


class Keyword(CamelModel):
    id: Optional[int] = None
    name: str


class ExternalLinks(CamelModel):
    imdb_id: Optional[str] = None
    facebook_id: Optional[str] = None
    instagram_id: Optional[str] = None
    twitter_id: Optional[str] = None


# ══════════════════════════════════════════════════════════════════════
# Dramas
# ══════════════════════════════════════════════════════════════════════

class DramaGridItem(CamelModel):
    """Reduced projection used by list views."""
    id: str
    title: str = ""
    poster_url: str = ""
    release_year: Optional[int] = None
    rating: float = 0.0
    country: str = ""
    genres: list[str] = Field(default_factory=list)


class Drama(CamelModel):
    """Fully-populated catalog entry for the detail page."""
    id: str
    title: str = ""
    original_title: Optional[str] = None
    overview: str = ""
    tagline: str = ""
    poster_url: str = ""
    backdrop_url: Optional[str] = None
    release_year: Optional[int] = None
    release_date: Optional[str] = None
    rating: float = 0.0                 # canonical 0–10 scale
    vote_count: Optional[int] = None
    popularity: float = 0.0
    genres: list[str] = Field(default_factory=list)
    country: str = ""
    origin_country: list[str] = Field(default_factory=list)
    original_language: Optional[str] = None
    languages: list[str] = Field(default_factory=list)
    networks: list[str] = Field(default_factory=list)
    status: str = ""
    duration_minutes: Optional[Union[int, str]] = None
    episode_count: Optional[int] = None
    homepage: Optional[str] = None
    seasons: list[Season] = Field(default_factory=list)
    cast: list[CastMember] = Field(default_factory=list)
    crew: list[CrewMember] = Field(default_factory=list)
    videos: list[Video] = Field(default_factory=list)
    images: Images = Field(default_factory=Images)
    keywords: list[Keyword] = Field(default_factory=list)
    external_links: ExternalLinks = Field(default_factory=ExternalLinks)
    recommendations: list[DramaGridItem] = Field(default_factory=list)

    def to_grid_item(self) -> DramaGridItem:
        return DramaGridItem(
            id=self.id,
            title=self.title,
            poster_url=self.poster_url,
            release_year=self.release_year,
            rating=self.rating,
            country=self.country,
            genres=list(self.genres),
        )
