"""Enrichment Client - Imperative Shell.

This module fetches per-location intensity predictions for the current
event from the enrichment service. All I/O is contained here; payload
parsing is in the core module.
"""

import logging
from dataclasses import dataclass
from typing import Any

import requests

from src.core.config import DEFAULT_ENRICHMENT_PATH


logger = logging.getLogger(__name__)


# Default timeout for API requests (seconds)
DEFAULT_TIMEOUT = 30

USER_AGENT = "seismic-sms-alerts/1.0"

# Characters of an error body kept in logs
ERROR_BODY_LIMIT = 200


@dataclass
class EnrichmentQuery:
    """Thresholds sent to the enrichment service.

    Attributes:
        min_magnitude: Minimum event magnitude
        min_intensity: Minimum predicted intensity of listed locations
        top: Maximum number of locations to return
    """
    min_magnitude: float
    min_intensity: int
    top: int


class EnrichmentClient:
    """Client for the intensity prediction service.

    This is part of the imperative shell - it handles HTTP I/O.
    """

    def __init__(
        self,
        base_url: str,
        path: str = DEFAULT_ENRICHMENT_PATH,
        timeout: int = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize enrichment client.

        Args:
            base_url: Service origin, with or without trailing slash
            path: Endpoint path
            timeout: Request timeout in seconds
        """
        self.base_url = base_url
        self.path = path
        self.timeout = timeout

    @property
    def url(self) -> str:
        """Full endpoint URL."""
        return self.base_url.rstrip("/") + "/" + self.path.lstrip("/")

    def _build_params(self, query: EnrichmentQuery) -> dict[str, str]:
        """Build query parameters for the enrichment request."""
        return {
            "min_mag": f"{query.min_magnitude:g}",
            "min_int": str(query.min_intensity),
            "top": str(query.top),
        }

    def fetch_enrichment(self, event_id: str, query: EnrichmentQuery) -> Any:
        """Fetch intensity predictions for the current event.

        This method performs HTTP I/O. The service resolves the current
        event on its side; `event_id` is the feed id the caller is
        processing and is only used for log correlation.

        Args:
            event_id: Feed event id being processed
            query: Thresholds for the response

        Returns:
            Decoded JSON body

        Raises:
            requests.RequestException: If the request fails or the status
                is not successful
            ValueError: If the body is not valid JSON
        """
        params = self._build_params(query)

        logger.info(
            "Fetching enrichment for %s",
            event_id,
            extra={"params": params},
        )

        response = requests.get(
            self.url,
            params=params,
            timeout=self.timeout,
            headers={"User-Agent": USER_AGENT},
        )

        if not response.ok:
            logger.warning(
                "Enrichment service returned %d: %s",
                response.status_code,
                response.text[:ERROR_BODY_LIMIT],
            )
        response.raise_for_status()

        return response.json()
