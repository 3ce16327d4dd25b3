"""
Core components for the Soul Listing Monitor.

This module contains the components that load rarity data, maintain shard
cursors, fetch the catalogue, filter offers, detect snapshot changes and
report them.
"""

from .catalogue_fetcher import CatalogueFetcher
from .cursor_store import CursorRefresher, CursorStore
from .filter_engine import FilterEngine, ThresholdFilter, TraitFilter, filter_offers
from .listing_reporter import ListingReporter
from .marketplace_client import MarketplaceClient
from .rarity_index import RarityIndex, load_rarity_index
from .snapshot_differ import SnapshotDiffer, diff_snapshots

__all__ = [
    "CatalogueFetcher",
    "CursorRefresher",
    "CursorStore",
    "FilterEngine",
    "ThresholdFilter",
    "TraitFilter",
    "filter_offers",
    "ListingReporter",
    "MarketplaceClient",
    "RarityIndex",
    "load_rarity_index",
    "SnapshotDiffer",
    "diff_snapshots",
]
