"""
Configuration models for the system.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional
from urllib.parse import urlparse

from .offer import PRICE_SCALE

TRAIT_CATEGORIES = (
    "background",
    "body",
    "eyes",
    "mouth",
    "glasses",
    "hands",
    "hair",
)

SORT_KEYS = ("price", "rank", "rarity", "name", "url")


@dataclass
class MarketplaceConfig:
    """Configuration for the marketplace offers endpoint."""

    base_url: str = (
        "https://us-central1-digitaleyes-prod.cloudfunctions.net/"
        "offers-retriever-datastore"
    )
    collection: str = "Solana Souls"
    item_url_template: str = "https://digitaleyes.market/item/{mint}"
    request_timeout: float = 100.0
    max_concurrent_requests: int = 32

    def item_url(self, mint: str) -> str:
        """Build the public item URL for a mint address."""
        return self.item_url_template.format(mint=mint)

    def validate(self) -> bool:
        """Validate marketplace configuration."""
        parsed_url = urlparse(self.base_url)
        if not parsed_url.scheme or not parsed_url.netloc:
            raise ValueError(f"Invalid marketplace URL format: {self.base_url}")

        if parsed_url.scheme not in ["http", "https"]:
            raise ValueError(f"Marketplace URL must use HTTP or HTTPS: {self.base_url}")

        if not self.collection or not self.collection.strip():
            raise ValueError("Collection name cannot be empty")

        if "{mint}" not in self.item_url_template:
            raise ValueError("Item URL template must contain '{mint}'")

        if self.request_timeout <= 0:
            raise ValueError("Request timeout must be positive")

        if (
            not isinstance(self.max_concurrent_requests, int)
            or self.max_concurrent_requests <= 0
        ):
            raise ValueError("Max concurrent requests must be a positive integer")

        return True


@dataclass
class Thresholds:
    """Price, rarity and rank thresholds for matching offers."""

    price_max: float = 10.0  # whole tokens
    rarity_min: float = 100.0
    rank_min: int = 1000

    @property
    def price_max_fixed(self) -> int:
        """Maximum price in fixed-point units."""
        return int(round(self.price_max * PRICE_SCALE))

    def validate(self) -> bool:
        """Validate threshold values."""
        if self.price_max <= 0:
            raise ValueError("Maximum price must be positive")

        if self.rarity_min < 0:
            raise ValueError("Minimum rarity cannot be negative")

        if not isinstance(self.rank_min, int) or self.rank_min < 1:
            raise ValueError("Rank limit must be a positive integer")

        return True


@dataclass
class TraitFilterConfig:
    """
    Trait filter table and mode.

    `categories` maps a trait category to the known values of that
    category and whether each value is enabled.
    """

    enabled: bool = False
    combine: bool = False
    file: Optional[str] = None
    categories: Dict[str, Dict[str, bool]] = field(default_factory=dict)
    trait_type_map: Dict[str, str] = field(default_factory=dict)

    def category_for(self, trait_type: str) -> Optional[str]:
        """Map a wire trait type onto a tracked category."""
        key = trait_type.strip().lower()
        category = self.trait_type_map.get(key, key)
        if category in TRAIT_CATEGORIES:
            return category
        return None

    def validate(self) -> bool:
        """Validate trait filter configuration."""
        for category, values in self.categories.items():
            if category not in TRAIT_CATEGORIES:
                raise ValueError(
                    f"Unknown trait category '{category}', must be one of: "
                    f"{list(TRAIT_CATEGORIES)}"
                )
            if not isinstance(values, dict):
                raise ValueError(f"Trait values for '{category}' must be a mapping")
            for value, enabled in values.items():
                if not isinstance(enabled, bool):
                    raise ValueError(
                        f"Trait value '{category}.{value}' must map to a boolean"
                    )

        for trait_type, category in self.trait_type_map.items():
            if category not in TRAIT_CATEGORIES:
                raise ValueError(
                    f"Trait type '{trait_type}' maps to unknown category '{category}'"
                )

        return True


@dataclass
class CursorConfig:
    """Cursor seeding and background refresh settings."""

    seed: List[str] = field(default_factory=lambda: [""])
    refresh_interval: float = 60.0
    refresh_jitter: float = 5.0
    max_pages: int = 200
    backoff_base: float = 2.0
    backoff_max: float = 120.0

    def validate(self) -> bool:
        """Validate cursor settings."""
        if not isinstance(self.seed, list) or not self.seed:
            raise ValueError("At least one seed cursor must be configured")

        for cursor in self.seed:
            if not isinstance(cursor, str):
                raise ValueError("Seed cursors must be strings")

        if self.refresh_interval <= 0:
            raise ValueError("Cursor refresh interval must be positive")

        if self.refresh_jitter < 0:
            raise ValueError("Cursor refresh jitter cannot be negative")

        if not isinstance(self.max_pages, int) or self.max_pages <= 0:
            raise ValueError("Max pages must be a positive integer")

        if self.backoff_base <= 0 or self.backoff_max < self.backoff_base:
            raise ValueError("Backoff base must be positive and not exceed backoff max")

        return True


@dataclass
class SystemConfig:
    """Poll loop and logging settings."""

    poll_interval: float = 5.0
    sort_key: str = "rank"
    log_dir: str = "logs"
    log_level: str = "INFO"

    def validate(self) -> bool:
        """Validate system settings."""
        if self.poll_interval <= 0:
            raise ValueError("Poll interval must be positive")

        if self.sort_key not in SORT_KEYS:
            raise ValueError(f"Sort key must be one of: {list(SORT_KEYS)}")

        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.log_level.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")

        return True


@dataclass
class Configuration:
    """System configuration."""

    rarity_file: str
    marketplace: MarketplaceConfig = field(default_factory=MarketplaceConfig)
    thresholds: Thresholds = field(default_factory=Thresholds)
    trait_filter: TraitFilterConfig = field(default_factory=TraitFilterConfig)
    cursors: CursorConfig = field(default_factory=CursorConfig)
    system: SystemConfig = field(default_factory=SystemConfig)

    def validate(self) -> bool:
        """Validate system configuration."""
        if not self.rarity_file or not self.rarity_file.strip():
            raise ValueError("Rarity file path cannot be empty")

        # Validate nested configurations
        self.marketplace.validate()
        self.thresholds.validate()
        self.trait_filter.validate()
        self.cursors.validate()
        self.system.validate()

        return True
