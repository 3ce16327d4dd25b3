"""
Catalogue fetch result model.
"""

from dataclasses import dataclass, field
from typing import List

from .offer import PRICE_FLOOR_SENTINEL, Offer


@dataclass
class CatalogueResult:
    """Aggregated offers and price floor across all fetched shards."""

    offers: List[Offer] = field(default_factory=list)
    price_floor: int = PRICE_FLOOR_SENTINEL
    shards_requested: int = 0
    shards_succeeded: int = 0
    shards_failed: int = 0

    @property
    def has_floor(self) -> bool:
        """True if at least one shard reported a price floor."""
        return self.price_floor < PRICE_FLOOR_SENTINEL
