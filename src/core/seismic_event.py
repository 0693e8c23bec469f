"""Seismic event models and parsing - Pure functions.

This module turns the raw JSON returned by the event feed into typed
SeismicEvent objects. The feed is loosely shaped: the event list can sit at
the top level or under one of several keys, and magnitudes arrive as numbers,
comma-decimal strings or nested objects.

All functions are pure with no side effects.
"""

import math
import re
from dataclasses import dataclass
from typing import Any


# Keys under which the feed may wrap its event list
EVENT_LIST_KEYS = ("events", "data", "results")

# Leading numeric prefix, e.g. "5.2" in "5.2 Mw"
_NUMBER_PREFIX = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)")


@dataclass(frozen=True)
class SeismicEvent:
    """Immutable event as observed on the feed.

    Attributes:
        id: Stable feed identifier (the deduplication key)
        magnitude: Parsed magnitude
    """
    id: str
    magnitude: float


def parse_magnitude(value: Any) -> float | None:
    """Normalize a magnitude-like value to a float.

    Pure function.

    Accepts plain numbers, strings using either a decimal point or a
    decimal comma ("5,2"), strings with trailing units ("5.2 Mw") and
    nested objects of the form {"value": ...}.

    Args:
        value: Raw magnitude value

    Returns:
        Finite float, or None if the value cannot be interpreted
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, dict):
        return parse_magnitude(value.get("value"))

    if isinstance(value, (int, float)):
        number = float(value)
        return number if math.isfinite(number) else None

    if isinstance(value, str):
        text = value.strip().replace(",", ".", 1)
        match = _NUMBER_PREFIX.match(text)
        if match is None:
            return None
        number = float(match.group(0))
        return number if math.isfinite(number) else None

    return None


def extract_event_list(data: Any) -> list[Any] | None:
    """Find the event list in a feed response body.

    Pure function.

    Args:
        data: Decoded JSON body

    Returns:
        The event list, or None if the body holds no list
    """
    if isinstance(data, list):
        return data

    if isinstance(data, dict):
        for key in EVENT_LIST_KEYS:
            value = data.get(key)
            if value is not None:
                return value if isinstance(value, list) else None

    return None


def extract_magnitude_value(raw_event: dict[str, Any]) -> Any:
    """Pick the raw magnitude field out of a feed event.

    A nested `magnitude` object wins; otherwise the first present of
    `magnitud`, `mag` and `magnitude` is used.
    """
    magnitude = raw_event.get("magnitude")
    if isinstance(magnitude, dict):
        return magnitude.get("value")

    for key in ("magnitud", "mag", "magnitude"):
        if raw_event.get(key) is not None:
            return raw_event[key]

    return None


def parse_event(raw_event: Any) -> SeismicEvent | None:
    """Parse a single feed element into a SeismicEvent.

    Pure function: returns None unless the element has a non-empty id and a
    finite magnitude.

    Args:
        raw_event: One element of the feed's event list

    Returns:
        SeismicEvent or None if the element is not actionable
    """
    if not isinstance(raw_event, dict):
        return None

    raw_id = raw_event.get("id")
    event_id = "" if raw_id is None else str(raw_id).strip()
    if not event_id:
        return None

    magnitude = parse_magnitude(extract_magnitude_value(raw_event))
    if magnitude is None:
        return None

    return SeismicEvent(id=event_id, magnitude=magnitude)


def parse_latest_event(data: Any) -> SeismicEvent | None:
    """Parse the most recent event from a feed response.

    The feed lists newest first, so only the first element is considered.
    """
    events = extract_event_list(data)
    if not events:
        return None
    return parse_event(events[0])
