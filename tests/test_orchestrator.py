"""
Tests for the application orchestrator.
"""

import asyncio
import io
import os
from unittest.mock import AsyncMock, Mock, patch

import pytest
import pytest_asyncio
import yaml

from soul_listing_monitor.components.listing_reporter import ListingReporter
from soul_listing_monitor.components.marketplace_client import MarketplaceClient
from soul_listing_monitor.orchestrator import ApplicationOrchestrator

from conftest import raw_offer, sol


def serve(pages):
    """fetch_page replacement serving a cursor -> page mapping."""

    def fetch_page(self, cursor):
        return pages[cursor]

    return fetch_page


@pytest.fixture
def stream():
    return io.StringIO()


@pytest_asyncio.fixture
async def orchestrator(config_file, stream):
    """Initialized orchestrator writing to an in-memory stream."""
    orchestrator = ApplicationOrchestrator(
        str(config_file), reporter=ListingReporter(stream=stream)
    )
    assert await orchestrator.initialize() is True
    yield orchestrator
    await orchestrator.shutdown()


class TestInitialization:
    """Test cases for startup."""

    @pytest.mark.asyncio
    async def test_initialize(self, config_file, tmp_path):
        orchestrator = ApplicationOrchestrator(str(config_file))

        assert await orchestrator.initialize() is True

        status = orchestrator.get_system_status()
        assert status["config_loaded"]
        assert status["cursors"] == 1
        assert status["cursor_generation"] == 0
        assert status["cursors_refreshed_at"] is None
        assert status["cycles"] == 0
        assert status["startup_time"] is not None
        assert len(orchestrator._rarity_index) == 3
        assert (tmp_path / "logs" / "soul_listing_monitor.log").exists()

        await orchestrator.shutdown()

    @pytest.mark.asyncio
    async def test_initialize_missing_config(self, tmp_path):
        orchestrator = ApplicationOrchestrator(str(tmp_path / "missing.yaml"))

        assert await orchestrator.initialize() is False

    @pytest.mark.asyncio
    async def test_initialize_missing_rarity_file(self, tmp_path, config_data):
        config_data["rarity_file"] = str(tmp_path / "missing.json")
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump(config_data))

        orchestrator = ApplicationOrchestrator(str(path))

        assert await orchestrator.initialize() is False
        errors = orchestrator.error_tracker.get_component_errors("orchestrator")
        assert errors[-1].exception_type == "FileNotFoundError"

    @pytest.mark.asyncio
    async def test_run_returns_false_on_failed_init(self, tmp_path):
        orchestrator = ApplicationOrchestrator(str(tmp_path / "missing.yaml"))

        assert await orchestrator.run() is False


@pytest.mark.integration
class TestPollCycle:
    """Test cases for single poll cycles."""

    @pytest.mark.asyncio
    async def test_run_cycle(self, orchestrator, stream):
        pages = {
            "": {
                "offers": [
                    raw_offer("Soul #1", sol(5), mint="m1"),
                    raw_offer("Soul #2", sol(50), mint="m2"),
                    raw_offer("Soul #3", sol(1), mint="m3"),
                    raw_offer("Unknown", sol(1), mint="m4"),
                ],
                "price_floor": sol(1),
            }
        }

        with patch.object(MarketplaceClient, "fetch_page", serve(pages)):
            diff = await orchestrator.run_cycle()

        assert [listing.name for listing in diff.added] == ["Soul #1"]
        assert diff.removed == ()
        output = stream.getvalue()
        assert "Fetching price data..." in output
        assert "floor 1.00 SOL, 1 matches" in output
        assert "+ RANK: 0005  PRICE: 5.00 SOL" in output
        assert "/item/m1" in output
        assert orchestrator.get_system_status()["cycles"] == 1

    @pytest.mark.asyncio
    async def test_unchanged_cycle_prints_status_only(self, orchestrator, stream):
        pages = {"": {"offers": [raw_offer("Soul #1", sol(5))]}}

        with patch.object(MarketplaceClient, "fetch_page", serve(pages)):
            await orchestrator.run_cycle()
            stream.seek(0)
            stream.truncate()
            diff = await orchestrator.run_cycle()

        assert not diff.changed
        lines = stream.getvalue().splitlines()
        assert len(lines) == 1
        assert lines[0].endswith("Fetching price data...")

    @pytest.mark.asyncio
    async def test_added_and_removed_across_cycles(self, orchestrator, stream):
        first = {"": {"offers": [raw_offer("Soul #1", sol(5)), raw_offer("Soul #2", sol(5))]}}
        second = {"": {"offers": [raw_offer("Soul #2", sol(5))]}}

        with patch.object(MarketplaceClient, "fetch_page", serve(first)):
            await orchestrator.run_cycle()
        with patch.object(MarketplaceClient, "fetch_page", serve(second)):
            diff = await orchestrator.run_cycle()

        assert diff.added == ()
        assert [listing.name for listing in diff.removed] == ["Soul #1"]
        assert "- RANK: 0005" in stream.getvalue()

    @pytest.mark.asyncio
    async def test_failed_shards_yield_empty_cycle(self, orchestrator, stream):
        def fetch_page(self, cursor):
            raise ConnectionError("unreachable")

        with patch.object(MarketplaceClient, "fetch_page", fetch_page):
            diff = await orchestrator.run_cycle()

        assert not diff.changed
        assert orchestrator.get_system_status()["last_offer_count"] == 0


class TestPollLoop:
    """Test cases for the poll loop and lifecycle."""

    @pytest.mark.asyncio
    async def test_start_survives_cycle_errors(self, orchestrator):
        calls = []

        async def run_cycle():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("boom")
            orchestrator.request_shutdown()

        with patch.object(orchestrator, "run_cycle", new=run_cycle), patch.object(
            orchestrator._cursor_refresher, "start", new=AsyncMock()
        ):
            await asyncio.wait_for(orchestrator.start(), timeout=5)

        assert len(calls) == 2
        assert orchestrator.get_system_status()["error_counts"] == {"poll_cycle": 1}

    @pytest.mark.asyncio
    async def test_config_reload_rebuilds_filter(self, orchestrator, config_file, config_data):
        old_engine = orchestrator._filter_engine
        config_data["thresholds"]["price_max"] = 2
        config_data["system"]["sort_key"] = "price"
        config_file.write_text(yaml.safe_dump(config_data))
        mtime = os.path.getmtime(config_file) + 10
        os.utime(config_file, (mtime, mtime))

        orchestrator._check_config_reload()

        assert orchestrator._filter_engine is not old_engine
        assert orchestrator._filter_engine.thresholds.price_max == 2.0
        assert orchestrator._snapshot_differ.sort_key == "price"

    @pytest.mark.asyncio
    async def test_config_reload_replaces_seed(self, orchestrator, config_file, config_data):
        config_data["cursors"]["seed"] = ["", "seeded"]
        config_file.write_text(yaml.safe_dump(config_data))
        mtime = os.path.getmtime(config_file) + 10
        os.utime(config_file, (mtime, mtime))

        orchestrator._check_config_reload()

        assert orchestrator._cursor_store.snapshot() == ("", "seeded")
        status = orchestrator.get_system_status()
        assert status["cursor_generation"] == 1
        assert status["cursors_refreshed_at"] is not None

    @pytest.mark.asyncio
    async def test_signal_handler_requests_shutdown(self, orchestrator):
        orchestrator._signal_handler(15, None)

        assert orchestrator._shutdown_event.is_set()
        assert not orchestrator.get_system_status()["running"]

    @pytest.mark.asyncio
    async def test_shutdown_closes_components(self, orchestrator):
        orchestrator._client = Mock()
        orchestrator._catalogue_fetcher = Mock()

        await orchestrator.shutdown()

        orchestrator._client.close.assert_called_once()
        orchestrator._catalogue_fetcher.close.assert_called_once()

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_run_full_lifecycle(self, config_file):
        orchestrator = ApplicationOrchestrator(
            str(config_file), reporter=ListingReporter(stream=io.StringIO())
        )
        pages = {"": {"offers": [raw_offer("Soul #1", sol(5))]}}

        async def start():
            await orchestrator.run_cycle()

        with patch.object(MarketplaceClient, "fetch_page", serve(pages)), patch.object(
            orchestrator, "start", new=start
        ), patch.object(orchestrator, "_setup_signal_handlers"):
            assert await orchestrator.run() is True

        assert orchestrator.get_system_status()["cycles"] == 1
        assert orchestrator._shutdown_event.is_set()
