"""Centralized application configuration using Pydantic Settings.

Loads configuration from environment variables and `.env` file with
full validation, type coercion, and sensible defaults.

Usage:
    from app.config import get_settings

    settings = get_settings()  # cached singleton
    print(settings.CATALOG_BACKEND)
"""
from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

AD_PLATFORMS = {"adsense", "adsterra", "clickadu", "clickadilla"}


class Settings(BaseSettings):
    """Application settings loaded from environment variables / .env file.

    With the default ``memory`` backend no variable is required. Selecting
    ``supabase`` requires SUPABASE_URL and SUPABASE_ANON_KEY.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # silently ignore unknown env vars
    )

    # ── Flask ──────────────────────────────────────────────────────────
    FLASK_ENV: str = Field(default="development", description="Flask environment (development/production)")
    FLASK_DEBUG: bool = Field(default=False, description="Enable Flask debug mode")
    SECRET_KEY: str = Field(default="change-me-in-production", description="Flask secret key")
    HOST: str = Field(default="0.0.0.0", description="Development server bind address")
    PORT: int = Field(default=5000, ge=1, le=65535, description="Development server port")

    # ── Logging ───────────────────────────────────────────────────────
    LOG_LEVEL: str = Field(default="INFO", description="Logging level (DEBUG/INFO/WARNING/ERROR)")
    LOG_FORMAT: str = Field(default="json", description="Log output format ('json' for prod, 'console' for dev)")

    # ── Catalog Backend ───────────────────────────────────────────────
    CATALOG_BACKEND: Literal["memory", "supabase"] = Field(
        default="memory", description="Which catalog store to read from"
    )
    CATALOG_FIXTURE_PATH: str = Field(
        default="data/dramas.json", description="JSON fixture for the memory backend"
    )

    # ── Supabase ──────────────────────────────────────────────────────
    SUPABASE_URL: str = Field(default="", description="Supabase project URL")
    SUPABASE_ANON_KEY: str = Field(default="", description="Supabase anon key (public reads)")
    SUPABASE_TABLE: str = Field(default="korean_dramas", description="Table holding drama rows")
    SUPABASE_GENRE_COLUMN: Literal["array", "text"] = Field(
        default="array", description="Genre column type: text[] array or comma-joined text"
    )
    SUPABASE_COUNT_MODE: Literal["exact", "planned", "estimated"] = Field(
        default="exact", description="PostgREST count strategy"
    )

    # ── HTTP Client ───────────────────────────────────────────────────
    HTTP_TIMEOUT: int = Field(default=10, ge=1, le=120, description="Backend request timeout (seconds)")
    HTTP_MAX_RETRIES: int = Field(default=3, ge=1, le=10, description="Max attempts per backend request")

    # ── Field Map (stored column names) ───────────────────────────────
    FIELD_ID: str = "id"
    FIELD_TITLE: str = "title"
    FIELD_OVERVIEW: str = "overview"
    FIELD_GENRE: str = "genres"
    FIELD_COUNTRY: str = "country"
    FIELD_STATUS: str = "status"
    FIELD_RATING: str = "rating"
    FIELD_YEAR: str = "year"

    # ── Catalog Semantics ─────────────────────────────────────────────
    SOURCE_RATING_SCALE: float = Field(
        default=10.0, gt=0.0, description="Scale stored ratings use (10 or 5); exposed ratings are 0–10"
    )
    IMAGE_BASE_URL: str = Field(
        default="https://image.tmdb.org/t/p/w500", description="Prefix for relative TMDB image paths"
    )
    DEFAULT_PAGE_SIZE: int = Field(default=28, ge=1, le=500, description="Grid page size")
    MAX_PAGE_SIZE: int = Field(default=100, ge=1, le=1000, description="Upper bound for ?limit=")

    # ── Ads ───────────────────────────────────────────────────────────
    ADS_ENABLED: bool = Field(default=False, description="Master switch for ad placements")
    PRIMARY_AD_PLATFORM: str = Field(default="adsense", description="Preferred ad platform")
    FALLBACK_AD_PLATFORMS: str = Field(default="", description="Comma-separated fallback platforms")
    ADSENSE_CLIENT_ID: str = ""
    ADSENSE_BANNER_SLOT: str = ""
    ADSENSE_SIDEBAR_SLOT: str = ""
    ADSENSE_FOOTER_SLOT: str = ""
    ADSTERRA_BANNER_KEY: str = ""
    ADSTERRA_SIDEBAR_KEY: str = ""
    ADSTERRA_FOOTER_KEY: str = ""
    CLICKADU_BANNER_ZONE: str = ""
    CLICKADU_SIDEBAR_ZONE: str = ""
    CLICKADU_FOOTER_ZONE: str = ""
    CLICKADILLA_BANNER_ZONE: str = ""
    CLICKADILLA_SIDEBAR_ZONE: str = ""
    CLICKADILLA_FOOTER_ZONE: str = ""

    # ── Validators ────────────────────────────────────────────────────

    @field_validator("SECRET_KEY")
    @classmethod
    def validate_secret_key(cls, v: str, info) -> str:
        """Refuse the default secret key in production."""
        env = info.data.get("FLASK_ENV", "development")
        if env == "production" and v == "change-me-in-production":
            raise ValueError("SECRET_KEY must be changed from the default in production.")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize and validate log level."""
        v = v.upper().strip()
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}, got '{v}'")
        return v

    @field_validator("LOG_FORMAT")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate log format."""
        v = v.lower().strip()
        if v not in ("json", "console"):
            raise ValueError("LOG_FORMAT must be 'json' or 'console'")
        return v

    @field_validator("SUPABASE_URL", "IMAGE_BASE_URL")
    @classmethod
    def validate_urls(cls, v: str) -> str:
        """Ensure base URLs don't have trailing slashes."""
        return v.strip().rstrip("/")

    @field_validator("PRIMARY_AD_PLATFORM")
    @classmethod
    def validate_primary_platform(cls, v: str) -> str:
        v = v.lower().strip()
        if v not in AD_PLATFORMS | {"none"}:
            raise ValueError(f"PRIMARY_AD_PLATFORM must be one of {sorted(AD_PLATFORMS)} or 'none'")
        return v

    @field_validator("FALLBACK_AD_PLATFORMS")
    @classmethod
    def validate_fallback_platforms(cls, v: str) -> str:
        names = [p.strip().lower() for p in v.split(",") if p.strip()]
        unknown = [p for p in names if p not in AD_PLATFORMS]
        if unknown:
            raise ValueError(f"Unknown ad platforms in FALLBACK_AD_PLATFORMS: {unknown}")
        return ",".join(names)

    @model_validator(mode="after")
    def validate_backend_credentials(self) -> "Settings":
        """Fail fast when the Supabase backend is selected without credentials."""
        if self.CATALOG_BACKEND == "supabase" and not (self.SUPABASE_URL and self.SUPABASE_ANON_KEY):
            raise ValueError("SUPABASE_URL and SUPABASE_ANON_KEY are required when CATALOG_BACKEND=supabase")
        if self.DEFAULT_PAGE_SIZE > self.MAX_PAGE_SIZE:
            raise ValueError("DEFAULT_PAGE_SIZE cannot exceed MAX_PAGE_SIZE")
        return self

    @property
    def fallback_ad_platforms(self) -> list[str]:
        return [p for p in self.FALLBACK_AD_PLATFORMS.split(",") if p]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached singleton Settings instance.

    Uses `lru_cache` so the `.env` file is only read once.
    Call this everywhere instead of instantiating Settings directly.
    """
    return Settings()
