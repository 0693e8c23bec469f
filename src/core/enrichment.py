"""Enrichment payload parsing - Pure functions.

The enrichment service answers with the event it considers current plus an
ordered list of locations and their predicted intensities. This module maps
that payload onto typed objects.
"""

from dataclasses import dataclass, field
from typing import Any

from src.core.seismic_event import parse_magnitude


# Fields that may carry the enrichment service's own event identifier
PAYLOAD_ID_KEYS = ("id", "event_id", "evento_id", "ID")


@dataclass(frozen=True)
class Location:
    """A location with its predicted intensity.

    Attributes:
        name: Location name as published by the enrichment service
        predicted_intensity: Intensity value (number or text, shown as-is)
    """
    name: str
    predicted_intensity: float | int | str


@dataclass(frozen=True)
class EnrichedEvent:
    """Event as described by the enrichment service.

    Attributes:
        magnitude: Effective magnitude (enrichment value, else feed value)
        payload_id: Enrichment event id, else the feed id
        occurred_at: Date/time text for the message
        reference: Human-readable reference (e.g. "10 km N of Santiago")
        locations: Locations in the order given by the service
    """
    magnitude: float
    payload_id: str
    occurred_at: str = ""
    reference: str = ""
    locations: tuple[Location, ...] = field(default_factory=tuple)


def _first_present(data: dict[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


def parse_location(raw: Any) -> Location | None:
    """Parse one location entry. Returns None for non-object entries."""
    if not isinstance(raw, dict):
        return None

    name = _first_present(raw, ("localidad", "name"))
    intensity = _first_present(raw, ("intensidad_predicha", "predicted_intensity"))

    return Location(
        name="" if name is None else str(name),
        predicted_intensity="" if intensity is None else intensity,
    )


def parse_enrichment(
    payload: Any,
    fallback_id: str,
    fallback_magnitude: float,
) -> EnrichedEvent:
    """Parse an enrichment response.

    Pure function. Values missing from the payload fall back to what the
    feed reported, so the result is always usable for message rendering.

    Args:
        payload: Decoded JSON body of the enrichment response
        fallback_id: Feed event id
        fallback_magnitude: Feed magnitude

    Returns:
        EnrichedEvent
    """
    if not isinstance(payload, dict):
        payload = {}

    event = _first_present(payload, ("evento", "event"))
    if not isinstance(event, dict):
        event = {}

    magnitude = parse_magnitude(_first_present(event, ("magnitud", "magnitude")))
    if magnitude is None:
        magnitude = fallback_magnitude

    raw_id = _first_present(event, PAYLOAD_ID_KEYS)
    payload_id = str(raw_id) if raw_id is not None and str(raw_id) else fallback_id

    raw_locations = _first_present(payload, ("localidades", "locations"))
    if not isinstance(raw_locations, list):
        raw_locations = []

    locations = tuple(
        loc for loc in (parse_location(r) for r in raw_locations)
        if loc is not None
    )

    occurred_at = _first_present(event, ("FechaHora", "occurred_at"))
    reference = _first_present(event, ("Referencia", "reference"))

    return EnrichedEvent(
        magnitude=magnitude,
        payload_id=payload_id,
        occurred_at="" if occurred_at is None else str(occurred_at),
        reference="" if reference is None else str(reference),
        locations=locations,
    )


def location_names(enriched: EnrichedEvent) -> set[str]:
    """Lower-cased location names, blanks dropped."""
    return {
        loc.name.strip().lower()
        for loc in enriched.locations
        if loc.name.strip()
    }
