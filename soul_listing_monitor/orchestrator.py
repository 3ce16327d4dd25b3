"""
Main application orchestrator for the Soul Listing Monitor.

This module wires the components together, runs the poll loop alongside the
background cursor refresh, and handles startup failures and graceful
shutdown.
"""

import asyncio
import signal
import sys
from datetime import datetime
from typing import Any, Dict, Optional

from .components.catalogue_fetcher import CatalogueFetcher
from .components.cursor_store import CursorRefresher, CursorStore
from .components.filter_engine import FilterEngine
from .components.listing_reporter import ListingReporter
from .components.marketplace_client import MarketplaceClient
from .components.rarity_index import RarityIndex
from .components.snapshot_differ import SnapshotDiffer
from .interfaces import ICatalogueFetcher, IFilterEngine, IReporter, ISnapshotDiffer
from .models.catalogue import CatalogueResult
from .models.config import Configuration
from .models.listing import SnapshotDiff
from .services.config_manager import ConfigurationManager
from .utils.error_handling import (
    ErrorCategory,
    ErrorSeverity,
    RetryConfig,
    get_error_tracker,
    with_error_handling,
)
from .utils.logging import get_logger, setup_logging


class ApplicationOrchestrator:
    """
    Main application orchestrator that coordinates all system components.

    Each poll cycle fetches every shard, filters the offers, diffs the
    result against the previous snapshot and reports the changes. Cycles
    are separated by a fixed delay regardless of how long they took.
    """

    def __init__(
        self,
        config_path: Optional[str] = None,
        reporter: Optional[IReporter] = None,
    ):
        """
        Initialize the application orchestrator.

        Args:
            config_path: Path to configuration file. If None, uses default paths.
            reporter: Output reporter, a stdout reporter if None
        """
        self.logger = get_logger("orchestrator")

        self.config_path = config_path
        self._running = False
        self._shutdown_event = asyncio.Event()

        self.error_tracker = get_error_tracker()

        # Component instances
        self._config_manager: Optional[ConfigurationManager] = None
        self._rarity_index: Optional[RarityIndex] = None
        self._client: Optional[MarketplaceClient] = None
        self._cursor_store: Optional[CursorStore] = None
        self._cursor_refresher: Optional[CursorRefresher] = None
        self._catalogue_fetcher: Optional[ICatalogueFetcher] = None
        self._filter_engine: Optional[IFilterEngine] = None
        self._snapshot_differ: Optional[ISnapshotDiffer] = None
        self._reporter: IReporter = reporter or ListingReporter()

        # System state
        self._config: Optional[Configuration] = None
        self._startup_time: Optional[datetime] = None
        self._last_catalogue: Optional[CatalogueResult] = None
        self._cycle_count = 0
        self._error_counts: Dict[str, int] = {}

    @with_error_handling(
        component="orchestrator",
        category=ErrorCategory.CONFIGURATION,
        severity=ErrorSeverity.CRITICAL,
        fallback_value=False,
        suppress_exceptions=True,
    )
    async def initialize(self) -> bool:
        """
        Load configuration and rarity data and build all components.

        Returns:
            True if initialization successful, False otherwise.
        """
        self._config_manager = ConfigurationManager(self.config_path)
        self._config = self._config_manager.load_config()

        setup_logging(
            log_dir=self._config.system.log_dir,
            log_level=self._config.system.log_level,
        )
        self.logger = get_logger("orchestrator")
        self.logger.info(
            "Configuration loaded and validated",
            extra={"config_path": self._config_manager.config_path},
        )

        self._rarity_index = RarityIndex.load(self._config.rarity_file)
        self.logger.info(
            "Rarity index loaded",
            extra={"entries": len(self._rarity_index), "path": self._config.rarity_file},
        )

        self._initialize_components()

        self._startup_time = datetime.now()
        self.logger.info("System initialization completed successfully")
        return True

    def _initialize_components(self) -> None:
        """Build components from the loaded configuration."""
        config = self._config

        self._client = MarketplaceClient(config.marketplace)
        self._cursor_store = CursorStore(config.cursors.seed)
        self._cursor_refresher = CursorRefresher(
            client=self._client,
            store=self._cursor_store,
            refresh_interval=config.cursors.refresh_interval,
            refresh_jitter=config.cursors.refresh_jitter,
            max_pages=config.cursors.max_pages,
            retry_config=RetryConfig(
                base_delay=config.cursors.backoff_base,
                max_delay=config.cursors.backoff_max,
            ),
        )
        self._catalogue_fetcher = CatalogueFetcher(
            client=self._client,
            cursor_store=self._cursor_store,
            request_timeout=config.marketplace.request_timeout,
            max_workers=config.marketplace.max_concurrent_requests,
        )
        self._filter_engine = FilterEngine(
            config.thresholds, config.trait_filter, config.marketplace
        )
        self._snapshot_differ = SnapshotDiffer(config.system.sort_key)

    async def run_cycle(self) -> SnapshotDiff:
        """
        Run one fetch, filter, diff and report pass.

        Returns:
            SnapshotDiff of this cycle
        """
        self._reporter.report_status("Fetching price data...")

        catalogue = await self._catalogue_fetcher.fetch_catalogue()
        listings = self._filter_engine.filter_offers(catalogue.offers, self._rarity_index)
        diff = self._snapshot_differ.update(listings)

        self._reporter.report_cycle(catalogue, diff)

        self._last_catalogue = catalogue
        self._cycle_count += 1

        self.logger.debug(
            "Poll cycle completed",
            extra={
                "cycle": self._cycle_count,
                "offers": len(catalogue.offers),
                "matches": len(diff.current),
                "added": len(diff.added),
                "removed": len(diff.removed),
            },
        )
        return diff

    async def start(self) -> None:
        """Start the cursor refresher and run the poll loop until shutdown."""
        if self._running:
            self.logger.warning("System is already running")
            return

        self._running = True
        self.logger.info("Starting poll loop...")

        await self._cursor_refresher.start()

        while self._running and not self._shutdown_event.is_set():
            try:
                self._check_config_reload()
                await self.run_cycle()
            except Exception as e:
                self.logger.error(f"Error in poll cycle: {e}", exc_info=True)
                self.error_tracker.record_error(
                    component="orchestrator",
                    category=ErrorCategory.SYSTEM,
                    severity=ErrorSeverity.MEDIUM,
                    message=f"Poll cycle failed: {e}",
                    exception=e,
                    context={"cycle": self._cycle_count},
                )
                self._increment_error_count("poll_cycle")

            await self._wait(self._config.system.poll_interval)

    async def _wait(self, seconds: float) -> None:
        """Sleep between cycles, waking early on shutdown."""
        try:
            await asyncio.wait_for(self._shutdown_event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass

    def _check_config_reload(self) -> None:
        """Apply threshold, trait and sort changes from an edited config file."""
        if not self._config_manager.reload_if_changed():
            return

        new_config = self._config_manager.get_config()

        self._filter_engine = FilterEngine(
            new_config.thresholds, new_config.trait_filter, new_config.marketplace
        )
        self._snapshot_differ.sort_key = new_config.system.sort_key

        if new_config.cursors.seed != self._config.cursors.seed:
            self._cursor_store.replace(new_config.cursors.seed)

        self._config = new_config
        self.logger.info("Configuration reloaded")

    def _increment_error_count(self, error_type: str) -> None:
        """Increment error count for a specific error type."""
        self._error_counts[error_type] = self._error_counts.get(error_type, 0) + 1

        if self._error_counts[error_type] % 10 == 0:
            self.logger.warning(
                f"High error count for {error_type}: {self._error_counts[error_type]}"
            )

    def _setup_signal_handlers(self) -> None:
        """Setup signal handlers for graceful shutdown."""
        if sys.platform != "win32":
            signal.signal(signal.SIGINT, self._signal_handler)
            signal.signal(signal.SIGTERM, self._signal_handler)
        else:
            signal.signal(signal.SIGINT, self._signal_handler)
            signal.signal(signal.SIGBREAK, self._signal_handler)

    def _signal_handler(self, signum: int, frame) -> None:
        """Handle shutdown signals."""
        self.logger.info(
            "Received shutdown signal, initiating graceful shutdown",
            extra={"signal": signum},
        )
        self.request_shutdown()

    def request_shutdown(self) -> None:
        """Stop the poll loop after the current cycle."""
        self._running = False
        self._shutdown_event.set()

    async def shutdown(self) -> None:
        """Gracefully shutdown the system."""
        self.logger.info("Initiating graceful shutdown...")
        self.request_shutdown()

        if self._cursor_refresher:
            await self._cursor_refresher.stop()
        if self._catalogue_fetcher:
            self._catalogue_fetcher.close()
        if self._client:
            self._client.close()

        uptime = datetime.now() - self._startup_time if self._startup_time else None
        self.logger.info(f"System shutdown complete. Uptime: {uptime}")

    def get_system_status(self) -> Dict[str, Any]:
        """Get current system status information."""
        catalogue = self._last_catalogue
        store = self._cursor_store
        return {
            "running": self._running,
            "startup_time": self._startup_time.isoformat() if self._startup_time else None,
            "uptime": str(datetime.now() - self._startup_time) if self._startup_time else None,
            "cycles": self._cycle_count,
            "cursors": len(store) if store else 0,
            "cursor_generation": store.generation if store else 0,
            "cursors_refreshed_at": (
                store.last_refreshed.isoformat() if store and store.last_refreshed else None
            ),
            "last_offer_count": len(catalogue.offers) if catalogue else None,
            "last_price_floor": catalogue.price_floor if catalogue else None,
            "current_matches": (
                len(self._snapshot_differ.previous) if self._snapshot_differ else 0
            ),
            "error_counts": self._error_counts.copy(),
            "config_loaded": self._config is not None,
        }

    async def run(self) -> bool:
        """
        Run the complete application lifecycle.

        Returns:
            False if initialization failed, True after a clean shutdown
        """
        if not await self.initialize():
            self.logger.error("System initialization failed")
            return False

        try:
            self._setup_signal_handlers()
            await self.start()
        except Exception as e:
            self.logger.error(f"Unexpected error in application: {e}", exc_info=True)
        finally:
            await self.shutdown()

        return True
