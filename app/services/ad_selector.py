"""Ad platform selector.

Maps configuration to the ad placement the front end should render. The
selector only decides *which* vendor and *which* identifiers to use; the
vendor embed snippets themselves live in the front end.

Selection order for a placement:
1. Nothing when ads are globally disabled
2. The primary platform, if configured
3. The first configured fallback platform
4. Otherwise ``none``

A platform counts as configured when its banner identifier is set (AdSense
additionally needs a client id).
"""
from __future__ import annotations

from enum import Enum
from typing import Any

import structlog
from pydantic import BaseModel, Field

from app.config import Settings

logger = structlog.get_logger(__name__)


class AdPlatform(str, Enum):
    ADSENSE = "adsense"
    ADSTERRA = "adsterra"
    CLICKADU = "clickadu"
    CLICKADILLA = "clickadilla"
    NONE = "none"


class Placement(str, Enum):
    BANNER = "banner"
    SIDEBAR = "sidebar"
    FOOTER = "footer"


class AdPlacement(BaseModel):
    """Resolved ad slot for one page placement."""
    platform: AdPlatform = AdPlatform.NONE
    placement: Placement
    params: dict[str, str] = Field(default_factory=dict)


class AdSelector:
    """Chooses an ad platform per placement from settings.

    Args:
        settings: Application settings holding the ad configuration.
    """

    def __init__(self, settings: Settings) -> None:
        self._enabled = settings.ADS_ENABLED
        self._primary = AdPlatform(settings.PRIMARY_AD_PLATFORM)
        self._fallbacks = [AdPlatform(p) for p in settings.fallback_ad_platforms]

        # platform → placement → identifier
        self._ids: dict[AdPlatform, dict[Placement, str]] = {
            AdPlatform.ADSENSE: {
                Placement.BANNER: settings.ADSENSE_BANNER_SLOT,
                Placement.SIDEBAR: settings.ADSENSE_SIDEBAR_SLOT,
                Placement.FOOTER: settings.ADSENSE_FOOTER_SLOT,
            },
            AdPlatform.ADSTERRA: {
                Placement.BANNER: settings.ADSTERRA_BANNER_KEY,
                Placement.SIDEBAR: settings.ADSTERRA_SIDEBAR_KEY,
                Placement.FOOTER: settings.ADSTERRA_FOOTER_KEY,
            },
            AdPlatform.CLICKADU: {
                Placement.BANNER: settings.CLICKADU_BANNER_ZONE,
                Placement.SIDEBAR: settings.CLICKADU_SIDEBAR_ZONE,
                Placement.FOOTER: settings.CLICKADU_FOOTER_ZONE,
            },
            AdPlatform.CLICKADILLA: {
                Placement.BANNER: settings.CLICKADILLA_BANNER_ZONE,
                Placement.SIDEBAR: settings.CLICKADILLA_SIDEBAR_ZONE,
                Placement.FOOTER: settings.CLICKADILLA_FOOTER_ZONE,
            },
        }
        self._adsense_client_id = settings.ADSENSE_CLIENT_ID

    def is_configured(self, platform: AdPlatform) -> bool:
        if platform == AdPlatform.NONE:
            return False
        if platform == AdPlatform.ADSENSE and not self._adsense_client_id:
            return False
        return bool(self._ids[platform][Placement.BANNER])

    def best_platform(self) -> AdPlatform:
        """Primary platform if usable, else the first usable fallback."""
        if not self._enabled:
            return AdPlatform.NONE
        for platform in [self._primary, *self._fallbacks]:
            if self.is_configured(platform):
                return platform
        return AdPlatform.NONE

    def select(self, placement: Placement | str) -> AdPlacement:
        """Resolve the ad slot for one placement.

        Raises:
            ValueError: Unknown placement name.
        """
        placement = Placement(placement)
        platform = self.best_platform()
        if platform == AdPlatform.NONE:
            return AdPlacement(placement=placement)

        params = self._params(platform, placement)
        logger.debug("ad_selected", platform=platform.value, placement=placement.value)
        return AdPlacement(platform=platform, placement=placement, params=params)

    def _params(self, platform: AdPlatform, placement: Placement) -> dict[str, str]:
        ident = self._ids[platform][placement]
        params: dict[str, Any]
        if platform == AdPlatform.ADSENSE:
            params = {"clientId": self._adsense_client_id, "adSlot": ident}
        elif platform == AdPlatform.ADSTERRA:
            params = {"key": ident}
        else:
            params = {"zone": ident}
        return {k: v for k, v in params.items() if v}
