from __future__ import annotations

import logging
from typing import Dict, Iterable, List
from importlib import metadata

from .base import FieldSelectorProfile
from .shopify import SHOPIFY
from .woocommerce import WOOCOMMERCE
from ..errors import UnknownPlatform
from ..utils.loader import load_symbol

logger = logging.getLogger(__name__)

DEFAULT_PLATFORM = WOOCOMMERCE.key


class ProfileRegistry:
    """
    Registry for available selector profiles.
    Supports built-ins, config-defined dotted paths, and entry-point plugins.
    """
    def __init__(self) -> None:
        self._profiles: Dict[str, FieldSelectorProfile] = {}
        for profile in (WOOCOMMERCE, SHOPIFY):
            self.register(profile)

    # ---- Introspection / Management ----

    def register(self, profile: FieldSelectorProfile) -> None:
        if profile.key in self._profiles:
            logger.info("Replacing selector profile %r", profile.key)
        self._profiles[profile.key] = profile

    def keys(self) -> List[str]:
        return list(self._profiles)

    def get(self, key: str | None = None) -> FieldSelectorProfile:
        key = (key or DEFAULT_PLATFORM).strip().lower()
        try:
            return self._profiles[key]
        except KeyError:
            raise UnknownPlatform(key) from None

    # ---- Discovery ----

    def load_dotted(self, dotted_paths: Iterable[str]) -> int:
        """
        Register profiles named by dotted paths. A path may point at a profile
        instance or at a zero-argument factory returning one.
        """
        added = 0
        for dotted in dotted_paths:
            try:
                self.register(_as_profile(load_symbol(dotted)))
                added += 1
            except Exception as exc:
                logger.warning("Failed to load profile %s: %r", dotted, exc)
        return added

    def discover_entry_points(self, group: str = "product_scraper.profiles") -> int:
        """
        Discover third-party profiles installed as entry points.
        Returns count of newly registered profiles.
        """
        added = 0
        for ep in metadata.entry_points().select(group=group):
            try:
                self.register(_as_profile(ep.load()))
                added += 1
            except Exception as exc:
                # Plugins are optional; one broken plugin must not block the rest.
                logger.warning("Failed to load profile entry point %s: %r", ep.name, exc)
        return added


def _as_profile(obj: object) -> FieldSelectorProfile:
    if callable(obj) and not isinstance(obj, FieldSelectorProfile):
        obj = obj()
    if not isinstance(obj, FieldSelectorProfile):
        raise TypeError(f"{obj!r} is not a FieldSelectorProfile")
    return obj
