"""
Offer data models for the Soul Listing Monitor.
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, Tuple

# Prices on the wire are fixed-point integers with 9 implied decimals
PRICE_SCALE = 1_000_000_000

# Starting value for the aggregated price floor
PRICE_FLOOR_SENTINEL = 10_000 * PRICE_SCALE


@dataclass(frozen=True)
class OfferAttribute:
    """Single trait attribute of an offered item."""

    trait_type: str
    value: str


@dataclass(frozen=True)
class Offer:
    """Active marketplace listing as returned by the offers endpoint."""

    mint: str
    price: int
    metadata_name: str
    attributes: Tuple[OfferAttribute, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Offer":
        """
        Build an Offer from its wire representation.

        Args:
            data: Offer dictionary from the marketplace response

        Returns:
            Offer instance

        Raises:
            ValueError: If required fields are missing or malformed
        """
        if not isinstance(data, dict):
            raise ValueError("Offer must be an object")

        mint = data.get("mint")
        if not isinstance(mint, str) or not mint.strip():
            raise ValueError("Offer mint cannot be empty")

        price = data.get("price")
        if isinstance(price, bool) or not isinstance(price, (int, float)):
            raise ValueError(f"Offer price must be a number: {price!r}")
        if not math.isfinite(price):
            raise ValueError(f"Offer price must be finite: {price!r}")

        metadata = data.get("metadata")
        if not isinstance(metadata, dict):
            raise ValueError("Offer metadata must be an object")

        name = metadata.get("name")
        if not isinstance(name, str) or not name.strip():
            raise ValueError("Offer metadata name cannot be empty")

        attributes = []
        for raw_attribute in metadata.get("attributes") or []:
            if not isinstance(raw_attribute, dict):
                continue
            trait_type = raw_attribute.get("trait_type")
            if trait_type is None:
                continue
            attributes.append(
                OfferAttribute(
                    trait_type=str(trait_type),
                    value=str(raw_attribute.get("value", "")),
                )
            )

        return cls(
            mint=mint,
            price=int(price),
            metadata_name=name,
            attributes=tuple(attributes),
        )
