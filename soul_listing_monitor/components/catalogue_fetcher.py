"""
Catalogue fetching for the Soul Listing Monitor.

One request is issued per known cursor, all concurrently, each bounded by
its own timeout. The cycle waits for every shard to resolve or time out
before the aggregated offers are handed on.
"""

import asyncio
import logging
import math
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional, Sequence

import requests

from ..models.catalogue import CatalogueResult
from ..models.offer import PRICE_FLOOR_SENTINEL, Offer
from ..utils.error_handling import ErrorCategory, ErrorSeverity, get_error_tracker
from ..interfaces import ICursorSource, IPageFetcher

logger = logging.getLogger(__name__)


class CatalogueFetcher:
    """Fans out one page request per cursor and aggregates the results."""

    def __init__(
        self,
        client: IPageFetcher,
        cursor_store: ICursorSource,
        request_timeout: float = 100.0,
        max_workers: int = 32,
    ):
        """
        Initialize catalogue fetcher.

        Args:
            client: Marketplace client used for page requests
            cursor_store: Source of shard cursors
            request_timeout: Per-shard timeout in seconds
            max_workers: Minimum size of the request thread pool
        """
        self.client = client
        self.cursor_store = cursor_store
        self.request_timeout = request_timeout
        self.max_workers = max_workers
        self._pool_size = 0
        self._executor: Optional[ThreadPoolExecutor] = None
        self._ensure_capacity(max_workers)

    async def fetch_catalogue(self) -> CatalogueResult:
        """
        Fetch every shard and aggregate offers and price floor.

        Returns:
            CatalogueResult with the concatenated offers of all successful
            shards and the lowest reported floor
        """
        cursors = self.cursor_store.snapshot()
        logger.debug(f"Fetching catalogue across {len(cursors)} shards")
        self._ensure_capacity(len(cursors))

        pages = await asyncio.gather(
            *(self._fetch_shard(cursor) for cursor in cursors)
        )

        return self.aggregate(cursors, pages)

    def _ensure_capacity(self, shard_count: int) -> None:
        """Grow the thread pool so every shard gets a worker at once."""
        size = max(self.max_workers, shard_count)
        if size <= self._pool_size:
            return

        if self._executor is not None:
            logger.info(f"Growing request pool from {self._pool_size} to {size} workers")
            self._executor.shutdown(wait=False)
        self._executor = ThreadPoolExecutor(max_workers=size, thread_name_prefix="shard-fetch")
        self._pool_size = size

    def aggregate(
        self, cursors: Sequence[str], pages: Sequence[Optional[Dict[str, Any]]]
    ) -> CatalogueResult:
        """
        Combine shard pages in cursor order.

        A failed shard (None) contributes nothing. A page without an
        "offers" field ends aggregation.
        """
        result = CatalogueResult(
            price_floor=PRICE_FLOOR_SENTINEL, shards_requested=len(cursors)
        )

        for cursor, page in zip(cursors, pages):
            if page is None:
                result.shards_failed += 1
                continue

            raw_offers = page.get("offers")
            if raw_offers is None:
                logger.info(f"Shard {cursor!r} returned no offers field, ending aggregation")
                break

            result.shards_succeeded += 1
            result.offers.extend(self._parse_offers(cursor, raw_offers))

            floor = page.get("price_floor")
            if (
                isinstance(floor, (int, float))
                and not isinstance(floor, bool)
                and math.isfinite(floor)
            ):
                result.price_floor = min(result.price_floor, int(floor))

        logger.info(
            f"Catalogue fetched: {len(result.offers)} offers from "
            f"{result.shards_succeeded}/{result.shards_requested} shards "
            f"(floor={result.price_floor})"
        )
        return result

    def _parse_offers(self, cursor: str, raw_offers: Any) -> List[Offer]:
        if not isinstance(raw_offers, list):
            logger.warning(f"Shard {cursor!r} offers field is not a list")
            return []

        offers = []
        for raw in raw_offers:
            try:
                offers.append(Offer.from_dict(raw))
            except ValueError as e:
                logger.warning(f"Skipping malformed offer in shard {cursor!r}: {e}")
        return offers

    async def _fetch_shard(self, cursor: str) -> Optional[Dict[str, Any]]:
        """Fetch a single shard; returns None on any failure."""
        loop = asyncio.get_running_loop()
        try:
            return await asyncio.wait_for(
                loop.run_in_executor(self._executor, self.client.fetch_page, cursor),
                timeout=self.request_timeout,
            )

        except asyncio.TimeoutError as e:
            self._record_shard_failure(cursor, f"timed out after {self.request_timeout}s", e)
            return None

        except requests.exceptions.RequestException as e:
            self._record_shard_failure(cursor, f"request failed: {e}", e)
            return None

        except ValueError as e:
            self._record_shard_failure(
                cursor, f"malformed response: {e}", e, category=ErrorCategory.PARSING
            )
            return None

        except Exception as e:
            self._record_shard_failure(
                cursor, f"unexpected error: {e}", e, category=ErrorCategory.SYSTEM
            )
            return None

    def _record_shard_failure(
        self,
        cursor: str,
        reason: str,
        exception: BaseException,
        category: ErrorCategory = ErrorCategory.NETWORK,
    ) -> None:
        logger.warning(f"Shard {cursor!r} {reason}")
        get_error_tracker().record_error(
            component="catalogue.fetcher",
            category=category,
            severity=ErrorSeverity.LOW,
            message=f"Shard fetch {reason}",
            exception=exception,
            context={"cursor": cursor},
        )

    def close(self) -> None:
        """Stop the request thread pool without waiting for stragglers."""
        self._executor.shutdown(wait=False)
