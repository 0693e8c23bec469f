"""Orchestrator - Wires Functional Core and Imperative Shell.

This module runs one alert tick: it fetches the latest feed event,
deduplicates it against the persisted watermarks, enriches it, selects
targets and dispatches notifications. Decisions come from the pure core;
all I/O goes through the shell clients.

A tick never raises. Every failure is logged and ends the tick early,
which simply means the next tick tries again.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from src.core.config import CHANNEL_CALL, Config
from src.core.dedup import (
    AlertedMarker,
    SeenMarker,
    is_already_alerted,
    is_new_sighting,
    passes_magnitude_gate,
    should_commit_after_dispatch,
)
from src.core.enrichment import EnrichedEvent, location_names, parse_enrichment
from src.core.formatter import (
    DEFAULT_TEST_MESSAGE,
    build_alert_message,
    build_twiml_url,
)
from src.core.seismic_event import SeismicEvent, extract_event_list, parse_event
from src.core.targets import Target, select_targets

from src.shell.enrichment_client import EnrichmentClient, EnrichmentQuery
from src.shell.feed_client import FeedClient
from src.shell.target_registry import TargetRegistry
from src.shell.twilio_client import DispatchResponse, TwilioClient
from src.shell.watermark_store import (
    FirestoreConfig,
    FirestoreKVStore,
    KeyValueStore,
    WatermarkRepository,
)


logger = logging.getLogger(__name__)


class TickOutcome(str, Enum):
    """How a tick ended."""
    CONFIG_ERROR = "config_error"
    FEED_UNAVAILABLE = "feed_unavailable"
    NO_EVENTS = "no_events"
    INVALID_EVENT = "invalid_event"
    STORE_UNAVAILABLE = "store_unavailable"
    ALREADY_ALERTED = "already_alerted"
    BELOW_THRESHOLD = "below_threshold"
    ENRICHMENT_UNAVAILABLE = "enrichment_unavailable"
    NO_TARGETS = "no_targets"
    NO_MATCHING_TARGETS = "no_matching_targets"
    DISPATCHED = "dispatched"
    DISPATCH_FAILED = "dispatch_failed"


@dataclass
class DispatchResult:
    """Result of notifying a single target.

    Attributes:
        target: The target that was notified
        success: Whether Twilio accepted the message or call
        sid: Twilio SID if successful
        error: Error message if failed
    """
    target: Target
    success: bool
    sid: str | None = None
    error: str | None = None


@dataclass
class TickResult:
    """Result of one alert tick.

    Attributes:
        outcome: Where the tick ended
        event_id: Feed id of the latest event (the deduplication key)
        payload_id: Enrichment event id, if enrichment succeeded
        magnitude: Effective magnitude (enrichment value once available)
        targets_total: Targets loaded from the registry
        targets_selected: Targets matching the event
        dispatched: Successful sends
        failed: Failed sends
        committed: Whether the alerted watermark was written
        errors: Errors that occurred
    """
    outcome: TickOutcome
    event_id: str | None = None
    payload_id: str | None = None
    magnitude: float | None = None
    targets_total: int = 0
    targets_selected: int = 0
    dispatched: list[DispatchResult] = field(default_factory=list)
    failed: list[DispatchResult] = field(default_factory=list)
    committed: bool = False
    errors: list[str] = field(default_factory=list)

    @property
    def ok_count(self) -> int:
        """Number of successful sends."""
        return len(self.dispatched)

    @property
    def success(self) -> bool:
        """Returns True if no errors occurred."""
        return len(self.errors) == 0

    @property
    def summary(self) -> str:
        """Human-readable summary of the tick."""
        return (
            f"Event {self.event_id or '-'}: {self.outcome.value}, "
            f"{self.targets_selected}/{self.targets_total} targets selected, "
            f"{len(self.dispatched)} sent, "
            f"{len(self.failed)} failed"
        )


class AlertOrchestrator:
    """Coordinates seismic event polling and alerting.

    This class wires together:
    - Feed client (fetches the latest event)
    - Enrichment client (fetches per-location intensity predictions)
    - Watermark repository (deduplication state)
    - Target registry (notification subscribers)
    - Twilio client (SMS and voice calls)
    - Core functions (parsing, rules, formatting)

    Ticks are assumed not to overlap; the watermarks are read and written
    without any locking.
    """

    def __init__(
        self,
        config: Config,
        feed_client: FeedClient | None = None,
        enrichment_client: EnrichmentClient | None = None,
        twilio_client: TwilioClient | None = None,
        store: KeyValueStore | None = None,
        watermarks: WatermarkRepository | None = None,
        target_registry: TargetRegistry | None = None,
    ) -> None:
        """Initialize orchestrator with configuration.

        Args:
            config: Application configuration
            feed_client: Feed client (created if not provided)
            enrichment_client: Enrichment client (created if not provided)
            twilio_client: Twilio client (created if not provided)
            store: Key-value store backing watermarks and targets
                (Firestore if not provided)
            watermarks: Watermark repository (created on `store` if not provided)
            target_registry: Target registry (created on `store` if not provided)
        """
        self.config = config
        self.feed_client = feed_client or FeedClient(
            config.feed_url,
            timeout=config.request_timeout,
        )
        self.enrichment_client = enrichment_client or EnrichmentClient(
            config.enrichment_base_url or "",
            path=config.enrichment_path,
            timeout=config.request_timeout,
        )
        self.twilio_client = twilio_client or TwilioClient(
            config.twilio,
            timeout=config.request_timeout,
        )
        self.store = store or FirestoreKVStore(
            FirestoreConfig(
                database=config.firestore_database,
                collection=config.firestore_collection,
            )
        )
        self.watermarks = watermarks or WatermarkRepository(self.store)
        self.target_registry = target_registry or TargetRegistry(self.store)

    def _now(self) -> datetime:
        return datetime.now(timezone.utc)

    def _update_seen(self, event: SeismicEvent, result: TickResult) -> None:
        """Record the event as seen if it differs from the last one.

        Failures here are logged but do not stop the tick.
        """
        try:
            seen = self.watermarks.get_seen_marker()
            if is_new_sighting(event.id, seen):
                self.watermarks.mark_seen(SeenMarker(
                    event_id=event.id,
                    magnitude=event.magnitude,
                    seen_at=self._now(),
                ))
                logger.info(
                    "New event seen: %s M%.1f (previous %s)",
                    event.id,
                    event.magnitude,
                    seen.event_id if seen else None,
                )
            else:
                logger.info("Latest event unchanged: %s M%.1f", event.id, event.magnitude)
        except Exception as e:
            error_msg = f"Failed to update seen marker: {e}"
            logger.error(error_msg)
            result.errors.append(error_msg)

    def _commit_alerted(
        self,
        event: SeismicEvent,
        enriched: EnrichedEvent,
        result: TickResult,
    ) -> None:
        """Mark the event as fully processed."""
        try:
            self.watermarks.commit_alerted(AlertedMarker(
                event_id=event.id,
                payload_id=enriched.payload_id,
                magnitude=enriched.magnitude,
                alerted_at=self._now(),
            ))
            result.committed = True
        except Exception as e:
            error_msg = f"Failed to commit alerted marker for {event.id}: {e}"
            logger.error(error_msg)
            result.errors.append(error_msg)

    def _send(self, target: Target, message: str) -> DispatchResponse:
        """Send the message to one target over the configured channel."""
        if self.config.channel == CHANNEL_CALL:
            if not self.config.public_url:
                return DispatchResponse(
                    success=False,
                    error="public_url not configured for voice calls",
                )
            twiml_url = build_twiml_url(self.config.public_url, message)
            return self.twilio_client.send_call(target.phone, twiml_url)

        return self.twilio_client.send_sms(target.phone, message)

    def _dispatch(self, target: Target, message: str) -> DispatchResult:
        """Notify one target. Never raises."""
        try:
            response = self._send(target, message)
        except Exception as e:
            response = DispatchResponse(success=False, error=str(e))

        if response.success:
            logger.info("Sent %s alert to %s", self.config.channel, target.phone)
        else:
            logger.error(
                "Failed to send %s alert to %s: %s",
                self.config.channel,
                target.phone,
                response.error,
            )

        return DispatchResult(
            target=target,
            success=response.success,
            sid=response.sid,
            error=response.error,
        )

    def run(self) -> TickResult:
        """Run one alert tick.

        This is the main entry point that:
        1. Fetches the latest event from the feed
        2. Validates its id and magnitude
        3. Updates the seen marker when the latest event changes
        4. Skips events already alerted on
        5. Applies the global magnitude threshold
        6. Fetches enrichment data
        7. Resolves the effective magnitude and payload id
        8. Loads targets
        9. Selects matching targets
        10. Commits immediately when nobody matches
        11. Dispatches to every selected target
        12. Commits when at least one dispatch succeeded

        Returns:
            TickResult describing what happened
        """
        config = self.config

        if not config.enrichment_base_url:
            error_msg = "Enrichment base URL not configured"
            logger.error(error_msg)
            return TickResult(outcome=TickOutcome.CONFIG_ERROR, errors=[error_msg])

        logger.info(
            "Alert tick: min magnitude %.1f, min intensity %d, top %d, channel %s",
            config.min_event_magnitude,
            config.min_intensity_to_show,
            config.max_locations,
            config.channel,
        )

        # Step 1: Fetch the feed
        try:
            data = self.feed_client.fetch_latest()
        except Exception as e:
            error_msg = f"Failed to fetch event feed: {e}"
            logger.error(error_msg)
            return TickResult(outcome=TickOutcome.FEED_UNAVAILABLE, errors=[error_msg])

        events = extract_event_list(data)
        if not events:
            logger.info("Feed returned no events")
            return TickResult(outcome=TickOutcome.NO_EVENTS)

        # Step 2: Validate the latest event (pure core function)
        event = parse_event(events[0])
        if event is None:
            logger.warning("Latest feed event has no usable id or magnitude: %r", events[0])
            return TickResult(outcome=TickOutcome.INVALID_EVENT)

        result = TickResult(
            outcome=TickOutcome.INVALID_EVENT,
            event_id=event.id,
            magnitude=event.magnitude,
        )

        # Step 3: Seen marker (observability only)
        self._update_seen(event, result)

        # Step 4: Deduplicate against the alerted marker
        try:
            alerted = self.watermarks.get_alerted_marker()
        except Exception as e:
            error_msg = f"Failed to read alerted marker: {e}"
            logger.error(error_msg)
            result.errors.append(error_msg)
            result.outcome = TickOutcome.STORE_UNAVAILABLE
            return result

        if is_already_alerted(event.id, alerted):
            logger.info("Event %s already alerted, skipping", event.id)
            result.outcome = TickOutcome.ALREADY_ALERTED
            return result

        # Step 5: Global magnitude threshold (does not consume the alerted slot)
        if not passes_magnitude_gate(event.magnitude, config.min_event_magnitude):
            logger.info(
                "Event %s M%.1f below threshold %.1f, not alerting",
                event.id,
                event.magnitude,
                config.min_event_magnitude,
            )
            result.outcome = TickOutcome.BELOW_THRESHOLD
            return result

        logger.info("Event %s M%.1f is an alert candidate", event.id, event.magnitude)

        # Step 6: Enrichment
        try:
            payload = self.enrichment_client.fetch_enrichment(
                event.id,
                EnrichmentQuery(
                    min_magnitude=config.min_event_magnitude,
                    min_intensity=config.min_intensity_to_show,
                    top=config.max_locations,
                ),
            )
        except Exception as e:
            error_msg = f"Failed to fetch enrichment for {event.id}: {e}"
            logger.error(error_msg)
            result.errors.append(error_msg)
            result.outcome = TickOutcome.ENRICHMENT_UNAVAILABLE
            return result

        # Step 7: Effective magnitude and payload id (pure core function)
        enriched = parse_enrichment(payload, event.id, event.magnitude)
        result.payload_id = enriched.payload_id
        result.magnitude = enriched.magnitude

        logger.info(
            "Enrichment OK for %s: payload %s, M%.1f, %d locations",
            event.id,
            enriched.payload_id,
            enriched.magnitude,
            len(enriched.locations),
        )

        # Step 8: Targets
        targets = self.target_registry.load_targets()
        result.targets_total = len(targets)

        if not targets:
            logger.warning("Target registry is empty, event %s stays pending", event.id)
            result.outcome = TickOutcome.NO_TARGETS
            return result

        # Step 9: Target rules (pure core function)
        selected = select_targets(targets, enriched.magnitude, location_names(enriched))
        result.targets_selected = len(selected)

        logger.info("%d of %d targets selected", len(selected), len(targets))

        # Step 10: Nobody matches - the event is done
        if not selected:
            self._commit_alerted(event, enriched, result)
            logger.info("No matching targets for %s, marked as alerted", event.id)
            result.outcome = TickOutcome.NO_MATCHING_TARGETS
            return result

        # Step 11: Dispatch, one target at a time
        message = build_alert_message(
            enriched,
            max_locations=config.max_locations,
            min_intensity=config.min_intensity_to_show,
            location_limit=config.location_limit,
            max_length=config.max_message_length,
        )

        for target in selected:
            dispatch = self._dispatch(target, message)
            if dispatch.success:
                result.dispatched.append(dispatch)
            else:
                result.failed.append(dispatch)

        # Step 12: Commit on partial or full success
        if should_commit_after_dispatch(result.ok_count):
            self._commit_alerted(event, enriched, result)
            logger.info(
                "Alert for %s delivered to %d of %d targets",
                event.id,
                result.ok_count,
                len(selected),
            )
            result.outcome = TickOutcome.DISPATCHED
        else:
            logger.error(
                "Alert for %s reached nobody, event stays pending",
                event.id,
            )
            result.outcome = TickOutcome.DISPATCH_FAILED

        return result

    def send_test_alert(self, to: str = "", message: str = "") -> list[DispatchResult]:
        """Send a manual test SMS.

        Goes to `to` if given, otherwise to every enabled target. Watermarks
        are not touched.

        Args:
            to: Recipient phone number (optional)
            message: Message text (a default text is used when blank)

        Returns:
            One DispatchResult per recipient
        """
        text = message.strip() or DEFAULT_TEST_MESSAGE

        if to.strip():
            recipients = [Target(phone=to.strip(), enabled=True)]
        else:
            recipients = [t for t in self.target_registry.load_targets() if t.enabled]

        if not recipients:
            logger.warning("Test alert has no recipients")

        results = []
        for target in recipients:
            try:
                response = self.twilio_client.send_sms(target.phone, text)
            except Exception as e:
                response = DispatchResponse(success=False, error=str(e))

            if response.success:
                logger.info("Test alert sent to %s", target.phone)
            else:
                logger.error("Test alert to %s failed: %s", target.phone, response.error)

            results.append(DispatchResult(
                target=target,
                success=response.success,
                sid=response.sid,
                error=response.error,
            ))

        return results
