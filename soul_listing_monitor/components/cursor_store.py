"""
Cursor store and background cursor refresh.

The store holds an immutable tuple of pagination cursors. Each cursor is
the start of one shard of the catalogue. The refresher is the only writer:
it periodically walks the pagination chain from the first page and swaps in
the discovered cursors in a single assignment, so readers always see a
complete list, possibly a stale one.
"""

import asyncio
import logging
import random
import threading
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from ..utils.error_handling import (
    ErrorCategory,
    ErrorSeverity,
    RetryConfig,
    get_error_tracker,
)
from ..interfaces import IPageFetcher

logger = logging.getLogger(__name__)

FIRST_PAGE_CURSOR = ""
DEFAULT_SEED_CURSORS: Tuple[str, ...] = (FIRST_PAGE_CURSOR,)


class CursorStore:
    """Process-wide list of shard cursors with atomic replacement."""

    def __init__(self, seed: Sequence[str] = DEFAULT_SEED_CURSORS):
        self._cursors: Tuple[str, ...] = tuple(seed) or DEFAULT_SEED_CURSORS
        self.last_refreshed: Optional[datetime] = None
        self.generation = 0

    def snapshot(self) -> Tuple[str, ...]:
        """Current cursor list; safe to iterate while a refresh runs."""
        return self._cursors

    def replace(self, cursors: Sequence[str]) -> bool:
        """
        Replace the whole cursor list.

        Args:
            cursors: New cursor list

        Returns:
            True if the list was replaced, False if it was empty
        """
        new_cursors = tuple(cursors)
        if not new_cursors:
            logger.warning("Refusing to replace cursor list with an empty list")
            return False

        self._cursors = new_cursors
        self.last_refreshed = datetime.now()
        self.generation += 1
        logger.info(f"Cursor list replaced with {len(new_cursors)} cursors")
        return True

    def __len__(self) -> int:
        return len(self._cursors)


class CursorRefresher:
    """Periodically rebuilds the cursor list by walking the pagination chain."""

    def __init__(
        self,
        client: IPageFetcher,
        store: CursorStore,
        refresh_interval: float = 60.0,
        refresh_jitter: float = 5.0,
        max_pages: int = 200,
        retry_config: Optional[RetryConfig] = None,
    ):
        """
        Initialize cursor refresher.

        Args:
            client: Marketplace client used to walk pages
            store: Cursor store to update
            refresh_interval: Seconds between successful refreshes
            refresh_jitter: Maximum random seconds added to the interval
            max_pages: Upper bound on pages walked per refresh
            retry_config: Backoff applied after failed refreshes
        """
        self.client = client
        self.store = store
        self.refresh_interval = refresh_interval
        self.refresh_jitter = refresh_jitter
        self.max_pages = max_pages
        self.retry_config = retry_config or RetryConfig(
            max_attempts=1, base_delay=2.0, max_delay=120.0
        )

        self.consecutive_failures = 0
        self.is_running = False
        self._task: Optional[asyncio.Task] = None
        self._stopping = threading.Event()

    def collect_cursors(self) -> List[str]:
        """
        Walk the pagination chain from the first page.

        Returns:
            Continuation cursors in page order, excluding the first page

        Raises:
            requests.exceptions.RequestException: On network or HTTP errors
            ValueError: On malformed responses
        """
        discovered: List[str] = []
        seen = set()
        cursor = FIRST_PAGE_CURSOR

        for _ in range(self.max_pages):
            if self._stopping.is_set():
                logger.info(f"Cursor walk interrupted after {len(discovered)} cursors")
                break

            page = self.client.fetch_page(cursor)

            if not page.get("offers"):
                break

            next_cursor = page.get("next_cursor")
            if not next_cursor or not isinstance(next_cursor, str):
                break

            if next_cursor in seen:
                logger.warning(f"Pagination loop detected at cursor {next_cursor!r}")
                break

            seen.add(next_cursor)
            discovered.append(next_cursor)
            cursor = next_cursor
        else:
            logger.warning(f"Stopped walking cursors after {self.max_pages} pages")

        return discovered

    async def refresh_cursors(self) -> bool:
        """
        Rebuild the cursor list once.

        Returns:
            True if the store was replaced, False if no cursor was found
        """
        discovered = await asyncio.get_running_loop().run_in_executor(
            None, self.collect_cursors
        )

        if not discovered:
            logger.info("Cursor refresh found no continuation cursors, keeping current list")
            return False

        return self.store.replace([FIRST_PAGE_CURSOR, *discovered])

    def next_delay(self, succeeded: bool) -> float:
        """Delay before the next refresh."""
        if succeeded:
            return self.refresh_interval + random.uniform(0, self.refresh_jitter)
        return self.retry_config.compute_delay(self.consecutive_failures - 1)

    async def start(self) -> None:
        """Start the background refresh task."""
        if self.is_running:
            logger.warning("Cursor refresher is already running")
            return

        self.is_running = True
        self._stopping.clear()
        logger.info("Starting cursor refresher")
        self._task = asyncio.create_task(self._refresh_loop())

    async def stop(self) -> None:
        """Stop the background refresh task."""
        if not self.is_running:
            return

        self.is_running = False
        self._stopping.set()
        logger.info("Stopping cursor refresher")

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    async def _refresh_loop(self) -> None:
        while self.is_running:
            succeeded = True
            try:
                await self.refresh_cursors()
                self.consecutive_failures = 0
            except Exception as e:
                succeeded = False
                self.consecutive_failures += 1
                get_error_tracker().record_error(
                    component="cursor.store",
                    category=ErrorCategory.NETWORK,
                    severity=ErrorSeverity.LOW,
                    message=f"Cursor refresh failed: {e}",
                    exception=e,
                    context={"consecutive_failures": self.consecutive_failures},
                )

            delay = self.next_delay(succeeded)
            logger.debug(f"Next cursor refresh in {delay:.1f}s")
            await asyncio.sleep(delay)
