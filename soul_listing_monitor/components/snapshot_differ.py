"""
Snapshot change detection for the Soul Listing Monitor.

A snapshot is the sorted tuple of matched listings from one poll cycle.
Successive snapshots are compared field by field; when they differ, the
change is reported as the names that appeared and disappeared.
"""

import logging
from typing import Iterable, Sequence, Tuple

from ..models.config import SORT_KEYS
from ..models.listing import MatchedListing, SnapshotDiff

logger = logging.getLogger(__name__)

Snapshot = Tuple[MatchedListing, ...]


def sort_listings(listings: Iterable[MatchedListing], sort_key: str = "rank") -> Snapshot:
    """
    Sort listings by the given field, descending.

    Args:
        listings: Listings to sort
        sort_key: One of price, rank, rarity, name, url

    Returns:
        Sorted snapshot tuple
    """
    if sort_key not in SORT_KEYS:
        raise ValueError(f"Sort key must be one of: {list(SORT_KEYS)}")

    return tuple(
        sorted(listings, key=lambda listing: getattr(listing, sort_key), reverse=True)
    )


def snapshots_equal(previous: Sequence[MatchedListing], current: Sequence[MatchedListing]) -> bool:
    """Same length, same order and every field of every listing equal."""
    if len(previous) != len(current):
        return False
    return all(a == b for a, b in zip(previous, current))


def diff_snapshots(
    previous: Sequence[MatchedListing],
    current: Iterable[MatchedListing],
    sort_key: str = "rank",
) -> SnapshotDiff:
    """
    Compare a new result set against the previous snapshot.

    Listings present by name in both snapshots are neither added nor
    removed, even if their price or other fields changed.

    Args:
        previous: Snapshot from the previous cycle
        current: Unsorted listings from this cycle
        sort_key: Field to sort the new snapshot by

    Returns:
        SnapshotDiff with changed=False when the snapshots are identical
    """
    current_snapshot = sort_listings(current, sort_key)

    if snapshots_equal(previous, current_snapshot):
        return SnapshotDiff(current=current_snapshot, changed=False)

    previous_names = {listing.name for listing in previous}
    current_names = {listing.name for listing in current_snapshot}

    return SnapshotDiff(
        added=tuple(
            listing for listing in current_snapshot if listing.name not in previous_names
        ),
        removed=tuple(
            listing for listing in previous if listing.name not in current_names
        ),
        current=current_snapshot,
        changed=True,
    )


class SnapshotDiffer:
    """Holds the previous snapshot between poll cycles."""

    def __init__(self, sort_key: str = "rank"):
        if sort_key not in SORT_KEYS:
            raise ValueError(f"Sort key must be one of: {list(SORT_KEYS)}")
        self.sort_key = sort_key
        self.previous: Snapshot = ()

    def update(self, listings: Iterable[MatchedListing]) -> SnapshotDiff:
        """
        Diff the new listings against the previous snapshot and keep them.

        Args:
            listings: Filtered listings from this cycle

        Returns:
            SnapshotDiff for this cycle
        """
        diff = diff_snapshots(self.previous, listings, self.sort_key)
        self.previous = diff.current

        if diff.changed:
            logger.info(
                f"Snapshot changed: {len(diff.added)} added, {len(diff.removed)} removed, "
                f"{len(diff.current)} total"
            )
        else:
            logger.debug("Snapshot unchanged")

        return diff

    def reset(self) -> None:
        """Forget the previous snapshot."""
        self.previous = ()
