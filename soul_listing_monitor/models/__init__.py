"""
Data models for the Soul Listing Monitor.

This module contains all data classes and type definitions used throughout
the application for representing offers, rarity data, snapshots and
configuration.
"""

from .catalogue import CatalogueResult
from .config import (
    Configuration,
    CursorConfig,
    MarketplaceConfig,
    SystemConfig,
    Thresholds,
    TraitFilterConfig,
)
from .listing import MatchedListing, SnapshotDiff
from .offer import PRICE_FLOOR_SENTINEL, PRICE_SCALE, Offer, OfferAttribute
from .rarity import RarityEntry

__all__ = [
    "CatalogueResult",
    "Configuration",
    "CursorConfig",
    "MarketplaceConfig",
    "SystemConfig",
    "Thresholds",
    "TraitFilterConfig",
    "MatchedListing",
    "SnapshotDiff",
    "Offer",
    "OfferAttribute",
    "PRICE_SCALE",
    "PRICE_FLOOR_SENTINEL",
    "RarityEntry",
]
