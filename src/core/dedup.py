"""Deduplication logic - Pure functions.

The service keeps two watermarks in its key-value store:

- the "seen" marker records the newest event observed on the feed, whether
  or not it was alerted on;
- the "alerted" marker records the last event the service is done with.
  An event id stored here is never processed again.

This module holds the marker models, their string serialisation and the
gating decisions. Persistence is handled by the imperative shell
(watermark store).
"""

from dataclasses import dataclass
from datetime import datetime

from src.core.seismic_event import parse_magnitude


LAST_SEEN_EVENT_ID = "last_seen_event_id"
LAST_SEEN_MAG = "last_seen_mag"
LAST_SEEN_AT = "last_seen_at"

LAST_ALERTED_EVENT_ID = "last_alerted_event_id"
LAST_ALERTED_PAYLOAD_ID = "last_alerted_payload_id"
LAST_ALERTED_MAG = "last_alerted_mag"
LAST_ALERTED_AT = "last_alerted_at"


@dataclass(frozen=True)
class SeenMarker:
    """Newest event observed on the feed.

    Attributes:
        event_id: Feed event id
        magnitude: Feed magnitude (None if the stored value is unreadable)
        seen_at: When the event was first observed
    """
    event_id: str
    magnitude: float | None = None
    seen_at: datetime | None = None


@dataclass(frozen=True)
class AlertedMarker:
    """Last event the service finished processing.

    Attributes:
        event_id: Feed event id (the deduplication key)
        payload_id: Enrichment event id, kept for auditing
        magnitude: Effective magnitude used for the alert
        alerted_at: When processing finished
    """
    event_id: str
    payload_id: str = ""
    magnitude: float | None = None
    alerted_at: datetime | None = None


def _format_time(value: datetime | None) -> str:
    return value.isoformat() if value is not None else ""


def _parse_time(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def _format_magnitude(value: float | None) -> str:
    return "" if value is None else f"{value:g}"


def seen_marker_to_items(marker: SeenMarker) -> dict[str, str]:
    """Serialize a seen marker into store keys and string values."""
    return {
        LAST_SEEN_EVENT_ID: marker.event_id,
        LAST_SEEN_MAG: _format_magnitude(marker.magnitude),
        LAST_SEEN_AT: _format_time(marker.seen_at),
    }


def seen_marker_from_items(items: dict[str, str | None]) -> SeenMarker | None:
    """Rebuild a seen marker. Returns None if no event id is stored."""
    event_id = items.get(LAST_SEEN_EVENT_ID)
    if not event_id:
        return None
    return SeenMarker(
        event_id=event_id,
        magnitude=parse_magnitude(items.get(LAST_SEEN_MAG)),
        seen_at=_parse_time(items.get(LAST_SEEN_AT)),
    )


def alerted_marker_to_items(marker: AlertedMarker) -> dict[str, str]:
    """Serialize an alerted marker into store keys and string values.

    The payload id falls back to the event id so audits always have one.
    """
    return {
        LAST_ALERTED_EVENT_ID: marker.event_id,
        LAST_ALERTED_PAYLOAD_ID: marker.payload_id or marker.event_id,
        LAST_ALERTED_MAG: _format_magnitude(marker.magnitude),
        LAST_ALERTED_AT: _format_time(marker.alerted_at),
    }


def alerted_marker_from_items(items: dict[str, str | None]) -> AlertedMarker | None:
    """Rebuild an alerted marker. Returns None if no event id is stored."""
    event_id = items.get(LAST_ALERTED_EVENT_ID)
    if not event_id:
        return None
    return AlertedMarker(
        event_id=event_id,
        payload_id=items.get(LAST_ALERTED_PAYLOAD_ID) or event_id,
        magnitude=parse_magnitude(items.get(LAST_ALERTED_MAG)),
        alerted_at=_parse_time(items.get(LAST_ALERTED_AT)),
    )


def is_new_sighting(event_id: str, seen: SeenMarker | None) -> bool:
    """True if the feed's latest event differs from the stored seen marker.

    Pure function.
    """
    return seen is None or seen.event_id != event_id


def is_already_alerted(event_id: str, alerted: AlertedMarker | None) -> bool:
    """True if the event id has already been fully processed.

    Pure function.
    """
    return alerted is not None and alerted.event_id == event_id


def passes_magnitude_gate(magnitude: float, min_magnitude: float) -> bool:
    """Check the global magnitude threshold (inclusive).

    Pure function.
    """
    return magnitude >= min_magnitude


def should_commit_after_dispatch(ok_count: int) -> bool:
    """Decide whether a dispatch pass consumes the alerted slot.

    Pure function. One delivery is enough; a pass where every send failed
    leaves the event pending so the next tick retries it.
    """
    return ok_count > 0
