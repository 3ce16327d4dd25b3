"""Filter engine joining offers with rarity data and applying thresholds and trait rules."""

import logging
from typing import Dict, Iterable, List, Mapping, Optional

from ..models.config import MarketplaceConfig, Thresholds, TraitFilterConfig
from ..models.listing import MatchedListing
from ..models.offer import Offer
from ..models.rarity import RarityEntry

logger = logging.getLogger(__name__)


class ThresholdFilter:
    """Handles price, rarity and rank thresholds."""

    def __init__(self, thresholds: Thresholds):
        """Initialize threshold filter."""
        self.price_max = thresholds.price_max_fixed
        self.rarity_min = thresholds.rarity_min
        self.rank_min = thresholds.rank_min

    def passes(self, offer: Offer, entry: RarityEntry) -> bool:
        """Check price, rarity and rank against their limits (all strict)."""
        return (
            offer.price < self.price_max
            and entry.rarity_score > self.rarity_min
            and entry.rank < self.rank_min
        )


class TraitFilter:
    """
    Applies the per-category trait table to an offer's attributes.

    OR mode passes an offer if any attribute is enabled. AND mode rejects an
    offer if any attribute with a known table entry is disabled. Attributes
    with an unmapped trait type or an unknown value never count as enabled,
    and never reject in AND mode.
    """

    def __init__(self, config: TraitFilterConfig):
        """Initialize trait filter from its table."""
        self.config = config

    def is_enabled(self, trait_type: str, value: str) -> Optional[bool]:
        """
        Look up an attribute in the table.

        Returns:
            True/False from the table, or None if the trait type is
            unmapped or the value has no entry
        """
        category = self.config.category_for(trait_type)
        if category is None:
            return None

        values = self.config.categories.get(category)
        if values is None or value not in values:
            return None

        return values[value]

    def passes(self, offer: Offer) -> bool:
        """Check an offer against the trait table."""
        if not self.config.enabled:
            return True

        lookups = [
            self.is_enabled(attribute.trait_type, attribute.value)
            for attribute in offer.attributes
        ]

        if self.config.combine:
            return all(enabled is not False for enabled in lookups)

        return any(enabled is True for enabled in lookups)


def filter_offers(
    offers: Iterable[Offer],
    rarity_index: Mapping[str, RarityEntry],
    thresholds: Thresholds,
    trait_config: Optional[TraitFilterConfig] = None,
    marketplace: Optional[MarketplaceConfig] = None,
) -> List[MatchedListing]:
    """
    Join offers with rarity data and keep those passing every filter.

    When several surviving offers share a name, the cheapest one is kept
    (first seen on ties). Output order follows first appearance.

    Args:
        offers: Aggregated offers
        rarity_index: Mapping of item name to RarityEntry
        thresholds: Price, rarity and rank limits
        trait_config: Trait table, pass-through if None
        marketplace: Used to derive item URLs

    Returns:
        One MatchedListing per distinct surviving name
    """
    threshold_filter = ThresholdFilter(thresholds)
    trait_filter = TraitFilter(trait_config or TraitFilterConfig())
    marketplace = marketplace or MarketplaceConfig()

    matches: Dict[str, MatchedListing] = {}

    for offer in offers:
        entry = rarity_index.get(offer.metadata_name)
        if entry is None:
            continue

        if not threshold_filter.passes(offer, entry):
            continue

        if not trait_filter.passes(offer):
            continue

        existing = matches.get(entry.name)
        if existing is not None and existing.price <= offer.price:
            continue

        matches[entry.name] = MatchedListing(
            name=entry.name,
            url=marketplace.item_url(offer.mint),
            rank=entry.rank,
            rarity=entry.rarity_score,
            price=offer.price,
        )

    return list(matches.values())


class FilterEngine:
    """Main filter engine holding the active thresholds and trait table."""

    def __init__(
        self,
        thresholds: Thresholds,
        trait_config: Optional[TraitFilterConfig] = None,
        marketplace: Optional[MarketplaceConfig] = None,
    ):
        """Initialize filter engine with its criteria."""
        self.thresholds = thresholds
        self.trait_config = trait_config or TraitFilterConfig()
        self.marketplace = marketplace or MarketplaceConfig()

        logger.info(
            f"FilterEngine initialized with price_max={thresholds.price_max}, "
            f"rarity_min={thresholds.rarity_min}, rank_min={thresholds.rank_min}, "
            f"traits={'on' if self.trait_config.enabled else 'off'}"
            f"{' (combine)' if self.trait_config.combine else ''}"
        )

    def filter_offers(
        self, offers: Iterable[Offer], rarity_index: Mapping[str, RarityEntry]
    ) -> List[MatchedListing]:
        """Apply all filters to the given offers."""
        offers = list(offers)
        listings = filter_offers(
            offers,
            rarity_index,
            self.thresholds,
            self.trait_config,
            self.marketplace,
        )
        logger.debug(f"{len(listings)} of {len(offers)} offers matched")
        return listings
