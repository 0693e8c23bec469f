"""Unit tests for deduplication markers and decisions.

Pure function tests - no mocks needed.
"""

from datetime import datetime, timezone

import pytest

from src.core.dedup import (
    AlertedMarker,
    SeenMarker,
    LAST_ALERTED_EVENT_ID,
    LAST_ALERTED_PAYLOAD_ID,
    LAST_ALERTED_MAG,
    LAST_ALERTED_AT,
    LAST_SEEN_EVENT_ID,
    LAST_SEEN_MAG,
    LAST_SEEN_AT,
    alerted_marker_from_items,
    alerted_marker_to_items,
    is_already_alerted,
    is_new_sighting,
    passes_magnitude_gate,
    seen_marker_from_items,
    seen_marker_to_items,
    should_commit_after_dispatch,
)


NOW = datetime(2024, 6, 14, 10, 0, 0, tzinfo=timezone.utc)


class TestSeenMarkerItems:
    """Tests for seen marker serialisation."""

    def test_to_items(self):
        """Serialises to the seen keys."""
        items = seen_marker_to_items(SeenMarker("E1", 5.2, NOW))
        assert items == {
            LAST_SEEN_EVENT_ID: "E1",
            LAST_SEEN_MAG: "5.2",
            LAST_SEEN_AT: "2024-06-14T10:00:00+00:00",
        }

    def test_from_items(self):
        """Parses stored strings back."""
        marker = seen_marker_from_items({
            LAST_SEEN_EVENT_ID: "E1",
            LAST_SEEN_MAG: "5.2",
            LAST_SEEN_AT: "2024-06-14T10:00:00+00:00",
        })
        assert marker == SeenMarker("E1", 5.2, NOW)

    def test_missing_id_means_no_marker(self):
        """No stored id means no marker."""
        assert seen_marker_from_items({LAST_SEEN_EVENT_ID: None}) is None
        assert seen_marker_from_items({}) is None

    def test_tolerates_garbage_fields(self):
        """Unreadable magnitude and time become None."""
        marker = seen_marker_from_items({
            LAST_SEEN_EVENT_ID: "E1",
            LAST_SEEN_MAG: "??",
            LAST_SEEN_AT: "yesterday",
        })
        assert marker == SeenMarker("E1", None, None)


class TestAlertedMarkerItems:
    """Tests for alerted marker serialisation."""

    def test_to_items(self):
        """Serialises to the alerted keys."""
        items = alerted_marker_to_items(AlertedMarker("E1", "R-9", 5.0, NOW))
        assert items == {
            LAST_ALERTED_EVENT_ID: "E1",
            LAST_ALERTED_PAYLOAD_ID: "R-9",
            LAST_ALERTED_MAG: "5",
            LAST_ALERTED_AT: "2024-06-14T10:00:00+00:00",
        }

    def test_payload_id_falls_back_to_event_id(self):
        """An empty payload id is stored as the event id."""
        items = alerted_marker_to_items(AlertedMarker("E1", "", 5.0, NOW))
        assert items[LAST_ALERTED_PAYLOAD_ID] == "E1"

    def test_from_items(self):
        """Parses stored strings back."""
        marker = alerted_marker_from_items({
            LAST_ALERTED_EVENT_ID: "E1",
            LAST_ALERTED_PAYLOAD_ID: None,
            LAST_ALERTED_MAG: "4,5",
            LAST_ALERTED_AT: None,
        })
        assert marker == AlertedMarker("E1", "E1", 4.5, None)


class TestDecisions:
    """Tests for the gating decisions."""

    def test_new_sighting_without_marker(self):
        """Everything is new when nothing has been seen."""
        assert is_new_sighting("E1", None)

    def test_new_sighting_compares_ids(self):
        """Same id is not new, a different id is."""
        seen = SeenMarker("E1")
        assert not is_new_sighting("E1", seen)
        assert is_new_sighting("E2", seen)

    def test_already_alerted(self):
        """Only the stored alerted id counts as alerted."""
        alerted = AlertedMarker("E1")
        assert is_already_alerted("E1", alerted)
        assert not is_already_alerted("E2", alerted)
        assert not is_already_alerted("E1", None)

    @pytest.mark.parametrize("magnitude,expected", [
        (3.9, False),
        (4.0, True),
        (6.5, True),
    ])
    def test_magnitude_gate_is_inclusive(self, magnitude, expected):
        """Threshold is inclusive."""
        assert passes_magnitude_gate(magnitude, 4.0) is expected

    @pytest.mark.parametrize("ok_count,expected", [
        (0, False),
        (1, True),
        (3, True),
    ])
    def test_commit_after_dispatch(self, ok_count, expected):
        """A single successful send is enough to commit."""
        assert should_commit_after_dispatch(ok_count) is expected
