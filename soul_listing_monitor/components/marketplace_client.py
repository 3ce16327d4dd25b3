"""
HTTP client for the marketplace offers endpoint.

Each call fetches one cursor-addressed page of active offers. Errors are
raised to the caller: the catalogue fetcher and the cursor refresher each
decide how a failed page is handled.
"""

import logging
from typing import Any, Dict

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..models.config import MarketplaceConfig

logger = logging.getLogger(__name__)


class MarketplaceClient:
    """Fetches pages of offers for a single collection."""

    def __init__(self, config: MarketplaceConfig):
        """
        Initialize marketplace client.

        Args:
            config: Marketplace endpoint configuration
        """
        self.base_url = config.base_url
        self.collection = config.collection
        self.timeout = config.request_timeout

        self.session = requests.Session()
        # Failed pages are dropped and picked up again on the next cycle
        adapter = HTTPAdapter(
            pool_connections=config.max_concurrent_requests,
            pool_maxsize=config.max_concurrent_requests,
            max_retries=Retry(total=0, raise_on_status=False),
        )
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

        self.session.headers.update(
            {
                "Accept": "application/json",
                "User-Agent": "Soul-Listing-Monitor/1.0",
            }
        )

    def build_params(self, cursor: str) -> Dict[str, str]:
        """Query parameters for a page request."""
        return {"collection": self.collection, "price": "asc", "cursor": cursor}

    def fetch_page(self, cursor: str) -> Dict[str, Any]:
        """
        Fetch one page of offers.

        Args:
            cursor: Continuation cursor, empty string for the first page

        Returns:
            Decoded JSON body

        Raises:
            requests.exceptions.RequestException: On network or HTTP errors
            ValueError: If the body is not a JSON object
        """
        logger.debug(f"Fetching offers page (cursor={cursor!r})")

        response = self.session.get(
            self.base_url,
            params=self.build_params(cursor),
            timeout=self.timeout,
        )
        response.raise_for_status()

        payload = response.json()
        if not isinstance(payload, dict):
            raise ValueError(
                f"Unexpected response type {type(payload).__name__} for cursor {cursor!r}"
            )

        return payload

    def close(self) -> None:
        """Release pooled connections."""
        self.session.close()
