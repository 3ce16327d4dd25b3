"""
Rarity data models.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class RarityEntry:
    """Rarity score and rank of a single collection item."""

    name: str
    rarity_score: float
    rank: int

    def validate(self) -> bool:
        """Validate rarity entry data."""
        if not self.name or not self.name.strip():
            raise ValueError("Rarity entry name cannot be empty")

        if isinstance(self.rank, bool) or not isinstance(self.rank, int):
            raise ValueError("Rank must be an integer")

        if self.rank < 1:
            raise ValueError(f"Rank must be at least 1: {self.rank}")

        if not isinstance(self.rarity_score, (int, float)):
            raise ValueError("Rarity score must be a number")

        return True
