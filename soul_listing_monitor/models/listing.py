"""
Matched listing and snapshot models.
"""

from dataclasses import dataclass, field
from typing import Tuple


@dataclass(frozen=True)
class MatchedListing:
    """Offer joined with its rarity entry that passed all filters."""

    name: str
    url: str
    rank: int
    rarity: float
    price: int


@dataclass
class SnapshotDiff:
    """Name-level difference between two successive snapshots."""

    added: Tuple[MatchedListing, ...] = ()
    removed: Tuple[MatchedListing, ...] = ()
    current: Tuple[MatchedListing, ...] = field(default_factory=tuple)
    changed: bool = False

    @property
    def has_updates(self) -> bool:
        """True if any listing appeared or disappeared."""
        return bool(self.added or self.removed)
