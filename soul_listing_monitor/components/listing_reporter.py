"""
Console reporting for the Soul Listing Monitor.

This module formats cycle status lines and per-listing lines and writes
them to a text stream.
"""

import sys
from datetime import datetime
from typing import List, Optional, TextIO

from ..models.catalogue import CatalogueResult
from ..models.listing import MatchedListing, SnapshotDiff
from ..models.offer import PRICE_SCALE


def format_price(price: int) -> str:
    """Format a fixed-point price in whole tokens with two decimals."""
    return f"{price / PRICE_SCALE:.2f}"


class ListingReporter:
    """Writes status and listing lines for each poll cycle."""

    ADDED_MARKER = "+"
    REMOVED_MARKER = "-"

    def __init__(self, stream: Optional[TextIO] = None, currency: str = "SOL"):
        """
        Initialize the reporter.

        Args:
            stream: Output stream, stdout if None
            currency: Currency symbol shown after prices
        """
        self.stream = stream
        self.currency = currency

    def _write(self, line: str) -> None:
        stream = self.stream or sys.stdout
        stream.write(line + "\n")
        stream.flush()

    def format_listing(self, listing: MatchedListing, marker: str = " ") -> str:
        """Format a single listing line."""
        return (
            f"{marker} RANK: {listing.rank:04d}  "
            f"PRICE: {format_price(listing.price)} {self.currency}  "
            f"RARITY: {listing.rarity:.2f}  "
            f"NAME: {listing.name}  URL: {listing.url}"
        )

    def format_status(self, message: str) -> str:
        """Format a timestamped status line."""
        return f"[{datetime.now().strftime('%H:%M:%S')}] {message}"

    def format_summary(self, catalogue: CatalogueResult, match_count: int) -> str:
        """Format the per-cycle catalogue summary."""
        floor = (
            f"{format_price(catalogue.price_floor)} {self.currency}"
            if catalogue.has_floor
            else "n/a"
        )
        return self.format_status(
            f"{len(catalogue.offers)} offers from {catalogue.shards_succeeded}/"
            f"{catalogue.shards_requested} shards, floor {floor}, {match_count} matches"
        )

    def format_diff(self, diff: SnapshotDiff) -> List[str]:
        """Format the added and removed listings of a diff."""
        lines = [self.format_listing(listing, self.ADDED_MARKER) for listing in diff.added]
        lines.extend(
            self.format_listing(listing, self.REMOVED_MARKER) for listing in diff.removed
        )
        return lines

    def report_status(self, message: str) -> None:
        self._write(self.format_status(message))

    def report_cycle(self, catalogue: CatalogueResult, diff: SnapshotDiff) -> None:
        """Write the summary and, if the snapshot changed, its updates."""
        if not diff.changed:
            return

        self._write(self.format_summary(catalogue, len(diff.current)))
        for line in self.format_diff(diff):
            self._write(line)
