"""
Pytest configuration and shared fixtures.

This module provides common fixtures and configuration for all tests
in the Soul Listing Monitor test suite.
"""

import json
import logging
from unittest.mock import Mock

import pytest
import yaml

from soul_listing_monitor.components.rarity_index import RarityIndex
from soul_listing_monitor.models.config import (
    Configuration,
    CursorConfig,
    MarketplaceConfig,
    SystemConfig,
    Thresholds,
    TraitFilterConfig,
)
from soul_listing_monitor.models.listing import MatchedListing
from soul_listing_monitor.models.offer import PRICE_SCALE, Offer, OfferAttribute
from soul_listing_monitor.models.rarity import RarityEntry
from soul_listing_monitor.utils import error_handling as error_handling_module
from soul_listing_monitor.utils import logging as logging_module


def sol(amount):
    """Whole tokens to fixed-point price."""
    return int(round(amount * PRICE_SCALE))


def make_offer(name, price, mint=None, attributes=None):
    """Build an Offer with (trait_type, value) attribute pairs."""
    return Offer(
        mint=mint or f"mint-{name.replace(' ', '-').replace('#', '')}",
        price=price,
        metadata_name=name,
        attributes=tuple(
            OfferAttribute(trait_type=trait_type, value=value)
            for trait_type, value in (attributes or [])
        ),
    )


def make_listing(name, rank=1, rarity=150.0, price=None, url=None):
    return MatchedListing(
        name=name,
        url=url or f"https://digitaleyes.market/item/mint-{name}",
        rank=rank,
        rarity=rarity,
        price=price if price is not None else sol(1),
    )


def raw_offer(name, price, mint=None, attributes=None):
    """Offer dictionary as returned by the marketplace."""
    return {
        "mint": mint or f"mint-{name.replace(' ', '-').replace('#', '')}",
        "price": price,
        "metadata": {
            "name": name,
            "attributes": [
                {"trait_type": trait_type, "value": value}
                for trait_type, value in (attributes or [])
            ],
        },
    }


# Test data fixtures
@pytest.fixture
def rarity_entries():
    """Rarity entries covering pass and fail cases for each threshold."""
    return {
        "Soul #1": RarityEntry(name="Soul #1", rarity_score=250.5, rank=5),
        "Soul #2": RarityEntry(name="Soul #2", rarity_score=180.0, rank=42),
        "Soul #3": RarityEntry(name="Soul #3", rarity_score=90.0, rank=300),
        "Soul #4": RarityEntry(name="Soul #4", rarity_score=120.0, rank=1500),
        "Soul #5": RarityEntry(name="Soul #5", rarity_score=101.0, rank=999),
    }


@pytest.fixture
def rarity_index(rarity_entries):
    """In-memory RarityIndex."""
    return RarityIndex(rarity_entries)


@pytest.fixture
def thresholds():
    """Default thresholds: price < 10, rarity > 100, rank < 1000."""
    return Thresholds(price_max=10.0, rarity_min=100.0, rank_min=1000)


@pytest.fixture
def marketplace_config():
    """Marketplace configuration pointing at a test host."""
    return MarketplaceConfig(
        base_url="https://offers.example.com/retrieve",
        collection="Solana Souls",
        item_url_template="https://digitaleyes.market/item/{mint}",
        request_timeout=5.0,
        max_concurrent_requests=4,
    )


@pytest.fixture
def trait_config():
    """Enabled trait table in OR mode."""
    return TraitFilterConfig(
        enabled=True,
        combine=False,
        categories={
            "eyes": {"Laser": True, "Normal": False},
            "hair": {"Crown": True, "Bald": False},
            "background": {"Blue": False, "Gold": True},
        },
        trait_type_map={"head": "hair"},
    )


@pytest.fixture
def sample_configuration(marketplace_config, thresholds):
    """Create a sample Configuration for testing."""
    return Configuration(
        rarity_file="soul_top2500.json",
        marketplace=marketplace_config,
        thresholds=thresholds,
        trait_filter=TraitFilterConfig(),
        cursors=CursorConfig(),
        system=SystemConfig(poll_interval=0.01),
    )


# File fixtures
@pytest.fixture
def rarity_file(tmp_path):
    """Rarity dataset on disk in its published format."""
    data = [
        {"Soul Name": "Soul #1", "Rarity Score": 250.5, "Rank": "#5"},
        {"Soul Name": "Soul #2", "Rarity Score": 180, "Rank": "#42"},
        {"Soul Name": "Soul #3", "Rarity Score": 90.0, "Rank": "#300"},
    ]
    path = tmp_path / "rarity.json"
    path.write_text(json.dumps(data))
    return path


@pytest.fixture
def config_data(rarity_file, tmp_path):
    """Raw configuration dictionary."""
    return {
        "rarity_file": str(rarity_file),
        "marketplace": {
            "base_url": "https://offers.example.com/retrieve",
            "collection": "Solana Souls",
            "request_timeout": 5,
            "max_concurrent_requests": 4,
        },
        "thresholds": {"price_max": 10, "rarity_min": 100, "rank_min": 1000},
        "trait_filter": {"enabled": False},
        "cursors": {"seed": [""], "refresh_interval": 60},
        "system": {
            "poll_interval": 0.01,
            "sort_key": "rank",
            "log_dir": str(tmp_path / "logs"),
            "log_level": "DEBUG",
        },
    }


@pytest.fixture
def config_file(tmp_path, config_data):
    """Configuration file on disk."""
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(config_data))
    return path


# Mock fixtures
@pytest.fixture
def mock_client():
    """Page fetcher mock returning an empty first page."""
    client = Mock()
    client.fetch_page.return_value = {"offers": []}
    return client


@pytest.fixture(autouse=True)
def reset_global_state():
    """Reset the global error tracker and logging manager between tests."""
    yield

    error_handling_module._error_tracker = None
    logging_module._logging_manager = None

    names = [logging_module.ROOT_LOGGER_NAME] + [
        f"{logging_module.ROOT_LOGGER_NAME}.{component}"
        for component in logging_module.COMPONENTS
    ]
    for name in names:
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            handler.close()
        logger.handlers.clear()


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "integration: mark test as integration test")
    config.addinivalue_line("markers", "unit: mark test as unit test")


def pytest_collection_modifyitems(config, items):
    """Add the unit marker to every test not marked as integration."""
    for item in items:
        if not any(marker.name == "integration" for marker in item.iter_markers()):
            item.add_marker(pytest.mark.unit)
