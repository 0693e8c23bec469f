"""Event Feed Client - Imperative Shell.

This module handles HTTP communication with the seismic event feed.
All I/O is contained here; parsing is in the core module.
"""

import logging
from typing import Any

import requests

from src.core.config import DEFAULT_FEED_URL


logger = logging.getLogger(__name__)


# Default timeout for API requests (seconds)
DEFAULT_TIMEOUT = 30


class FeedClient:
    """Client for fetching the latest events from the feed.

    This is part of the imperative shell - it handles HTTP I/O.
    """

    def __init__(
        self,
        feed_url: str = DEFAULT_FEED_URL,
        timeout: int = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize feed client.

        Args:
            feed_url: Feed endpoint returning the most recent events
            timeout: Request timeout in seconds
        """
        self.feed_url = feed_url
        self.timeout = timeout

    def fetch_latest(self) -> Any:
        """Fetch the raw event feed.

        This method performs HTTP I/O. The body is returned as decoded JSON,
        whatever its shape; core.seismic_event knows how to read it.

        Returns:
            Decoded JSON body

        Raises:
            requests.RequestException: If the request fails or the status
                is not successful
            ValueError: If the body is not valid JSON
        """
        logger.debug("Fetching event feed from %s", self.feed_url)

        response = requests.get(
            self.feed_url,
            timeout=self.timeout,
            headers={"Cache-Control": "no-cache"},
        )
        response.raise_for_status()

        return response.json()
