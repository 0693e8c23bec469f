"""Functional Core - Pure functions with no side effects.

This module contains all business logic as pure functions:
- Feed event parsing and magnitude normalization
- Enrichment payload parsing
- Target rule evaluation
- Message formatting
- Deduplication markers and gating decisions

All functions here are deterministic and have no I/O.
"""

from src.core.seismic_event import SeismicEvent, parse_latest_event, parse_magnitude
from src.core.enrichment import EnrichedEvent, Location, parse_enrichment
from src.core.targets import Target, parse_targets, select_targets
from src.core.formatter import build_alert_message, build_twiml
from src.core.dedup import AlertedMarker, SeenMarker, is_already_alerted

__all__ = [
    # Events
    "SeismicEvent",
    "parse_latest_event",
    "parse_magnitude",
    # Enrichment
    "EnrichedEvent",
    "Location",
    "parse_enrichment",
    # Targets
    "Target",
    "parse_targets",
    "select_targets",
    # Formatter
    "build_alert_message",
    "build_twiml",
    # Dedup
    "AlertedMarker",
    "SeenMarker",
    "is_already_alerted",
]
