"""
Protocol interfaces for the Soul Listing Monitor.

These protocols mark the seams between the poll loop and its components so
that tests and alternative implementations can be swapped in.
"""

from typing import Iterable, List, Mapping, Protocol, Sequence, Tuple

from .models.catalogue import CatalogueResult
from .models.listing import MatchedListing, SnapshotDiff
from .models.offer import Offer
from .models.rarity import RarityEntry


class ICursorSource(Protocol):
    """Protocol for anything that provides the current shard cursors."""

    def snapshot(self) -> Tuple[str, ...]:
        """Current cursor list."""
        ...


class IPageFetcher(Protocol):
    """Protocol for fetching one page of offers."""

    def fetch_page(self, cursor: str) -> dict:
        """Fetch and decode the page starting at the cursor."""
        ...


class ICatalogueFetcher(Protocol):
    """Protocol for catalogue acquisition."""

    async def fetch_catalogue(self) -> CatalogueResult:
        """Fetch all shards and aggregate them."""
        ...


class IFilterEngine(Protocol):
    """Protocol for offer filtering."""

    def filter_offers(
        self, offers: Iterable[Offer], rarity_index: Mapping[str, RarityEntry]
    ) -> List[MatchedListing]:
        """Join offers with rarity data and apply filters."""
        ...


class ISnapshotDiffer(Protocol):
    """Protocol for snapshot change detection."""

    previous: Sequence[MatchedListing]

    def update(self, listings: Iterable[MatchedListing]) -> SnapshotDiff:
        """Diff new listings against the previous snapshot."""
        ...


class IReporter(Protocol):
    """Protocol for cycle reporting."""

    def report_status(self, message: str) -> None:
        """Report a status line."""
        ...

    def report_cycle(self, catalogue: CatalogueResult, diff: SnapshotDiff) -> None:
        """Report the outcome of a poll cycle."""
        ...
