"""Notification target rules - Pure functions.

Targets are the subscribers of the alert service. Each carries its own
magnitude floor and an optional location rule. This module parses the
registry records and decides which targets receive an alert.
"""

from dataclasses import dataclass
from typing import Any

from src.core.seismic_event import parse_magnitude


@dataclass(frozen=True)
class Target:
    """A notification recipient with its filter rules.

    Attributes:
        phone: Recipient phone number (E.164)
        min_magnitude: Minimum magnitude this target wants to hear about
        location: Location name to match; empty matches every event
        enabled: Disabled targets never receive alerts
        user: Optional display name, only used in logs
    """
    phone: str
    min_magnitude: float = 0.0
    location: str = ""
    enabled: bool = False
    user: str = ""


def parse_target(raw: Any) -> Target | None:
    """Parse a single registry record.

    Pure function. Missing or malformed `min_mag` becomes 0 and a missing
    `enabled` flag means disabled.
    """
    if not isinstance(raw, dict):
        return None

    min_magnitude = parse_magnitude(raw.get("min_mag"))
    location = raw.get("localidad")
    if location is None:
        location = raw.get("location")

    return Target(
        phone=str(raw.get("phone") or "").strip(),
        min_magnitude=0.0 if min_magnitude is None else min_magnitude,
        location=str(location or "").strip(),
        enabled=bool(raw.get("enabled", False)),
        user=str(raw.get("user") or ""),
    )


def parse_targets(data: Any) -> list[Target]:
    """Parse the registry document. Anything but a JSON array yields []."""
    if not isinstance(data, list):
        return []

    targets = []
    for raw in data:
        target = parse_target(raw)
        if target is not None:
            targets.append(target)
    return targets


def matches_magnitude(target: Target, magnitude: float) -> bool:
    """Check the target's magnitude floor (inclusive)."""
    return magnitude >= target.min_magnitude


def matches_location(target: Target, names: set[str]) -> bool:
    """Check the target's location rule.

    An empty location is a wildcard. Otherwise the location must match one
    of the enrichment location names, ignoring case. `names` is expected
    lower-cased (see location_names()).
    """
    if not target.location:
        return True
    return target.location.lower() in names


def matches_target(target: Target, magnitude: float, names: set[str]) -> bool:
    """Evaluate every rule of a target against an event.

    Pure function.

    Args:
        target: Target to evaluate
        magnitude: Effective event magnitude
        names: Lower-cased location names of the enriched event

    Returns:
        True if the target should receive the alert
    """
    return (
        target.enabled
        and matches_magnitude(target, magnitude)
        and matches_location(target, names)
    )


def select_targets(
    targets: list[Target],
    magnitude: float,
    names: set[str],
) -> list[Target]:
    """Select the targets that should be notified, preserving order."""
    return [t for t in targets if matches_target(t, magnitude, names)]


def target_to_dict(target: Target) -> dict[str, Any]:
    """Serialize a target in the registry's record format."""
    return {
        "user": target.user,
        "phone": target.phone,
        "min_mag": target.min_magnitude,
        "localidad": target.location,
        "enabled": target.enabled,
    }
