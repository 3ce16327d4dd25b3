"""
Smoke tests for package imports and the command line entry point.
"""

import sys
from unittest.mock import AsyncMock, patch

import pytest


def test_package_imports():
    """Test the public modules import cleanly."""
    import soul_listing_monitor
    from soul_listing_monitor import components, models, services
    from soul_listing_monitor.orchestrator import ApplicationOrchestrator

    assert soul_listing_monitor.__version__ == "0.1.0"
    assert components.CatalogueFetcher
    assert models.Offer
    assert services.ConfigurationManager
    assert ApplicationOrchestrator


def test_components_satisfy_interfaces():
    """Test the concrete components expose the methods the poll loop uses."""
    from soul_listing_monitor.components import (
        CatalogueFetcher,
        CursorStore,
        FilterEngine,
        ListingReporter,
        MarketplaceClient,
        SnapshotDiffer,
    )

    assert callable(CursorStore.snapshot)
    assert callable(MarketplaceClient.fetch_page)
    assert callable(CatalogueFetcher.fetch_catalogue)
    assert callable(FilterEngine.filter_offers)
    assert callable(SnapshotDiffer.update)
    assert callable(ListingReporter.report_cycle)


class TestMain:
    """Test cases for the entry point."""

    def test_main_passes_config_path(self):
        from soul_listing_monitor import main as main_module

        with patch.object(sys, "argv", ["soul-listing-monitor", "custom.yaml"]), patch.object(
            main_module, "async_main", new=AsyncMock(return_value=0)
        ) as mock_async_main:
            with pytest.raises(SystemExit) as exc_info:
                main_module.main()

        assert exc_info.value.code == 0
        mock_async_main.assert_awaited_once_with("custom.yaml")

    def test_main_reports_failure(self):
        from soul_listing_monitor import main as main_module

        with patch.object(sys, "argv", ["soul-listing-monitor"]), patch.object(
            main_module, "async_main", new=AsyncMock(return_value=1)
        ):
            with pytest.raises(SystemExit) as exc_info:
                main_module.main()

        assert exc_info.value.code == 1

    def test_main_handles_keyboard_interrupt(self):
        from soul_listing_monitor import main as main_module

        with patch.object(sys, "argv", ["soul-listing-monitor"]), patch.object(
            main_module, "async_main", new=AsyncMock(side_effect=KeyboardInterrupt)
        ):
            with pytest.raises(SystemExit) as exc_info:
                main_module.main()

        assert exc_info.value.code == 0
