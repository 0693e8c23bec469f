"""Watermark Store - Imperative Shell.

This module persists the service's small key-value state (deduplication
markers, the target registry document, the cached public snapshot) in
Google Cloud Firestore, and exposes typed accessors for the watermarks.

All I/O is contained here; deduplication logic is in the core module.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Protocol

from google.cloud import firestore

from src.core.dedup import (
    AlertedMarker,
    SeenMarker,
    LAST_ALERTED_AT,
    LAST_ALERTED_EVENT_ID,
    LAST_ALERTED_MAG,
    LAST_ALERTED_PAYLOAD_ID,
    LAST_SEEN_AT,
    LAST_SEEN_EVENT_ID,
    LAST_SEEN_MAG,
    alerted_marker_from_items,
    alerted_marker_to_items,
    seen_marker_from_items,
    seen_marker_to_items,
)


logger = logging.getLogger(__name__)


# Default collection holding one document per key
DEFAULT_COLLECTION = "seismic_alerts"


class KeyValueStore(Protocol):
    """String key-value store used for all persisted state."""

    def get(self, key: str) -> str | None:
        ...

    def put(self, key: str, value: str) -> None:
        ...

    def put_many(self, items: dict[str, str]) -> None:
        ...


@dataclass
class FirestoreConfig:
    """Configuration for Firestore client.

    Attributes:
        project_id: GCP project ID (None for default)
        database: Firestore database name (None for default database)
        collection: Firestore collection name
    """
    project_id: str | None = None
    database: str | None = None
    collection: str = DEFAULT_COLLECTION


class FirestoreKVStore:
    """Key-value store backed by a Firestore collection.

    This is part of the imperative shell - it handles database I/O.

    Document structure (document id = key):
    {
        "value": "<string value>",
        "updated_at": <timestamp>
    }

    Errors from Firestore propagate to the caller.
    """

    def __init__(self, config: FirestoreConfig | None = None) -> None:
        """Initialize Firestore store.

        Args:
            config: Firestore configuration
        """
        self.config = config or FirestoreConfig()
        self._client: firestore.Client | None = None

    @property
    def client(self) -> firestore.Client:
        """Lazy initialization of Firestore client."""
        if self._client is None:
            kwargs = {}
            if self.config.project_id:
                kwargs['project'] = self.config.project_id
            if self.config.database:
                kwargs['database'] = self.config.database
            self._client = firestore.Client(**kwargs)
        return self._client

    def _get_doc_ref(self, key: str) -> Any:
        """Get reference to the document holding a key."""
        return self.client.collection(self.config.collection).document(key)

    def get(self, key: str) -> str | None:
        """Read a value. Returns None if the key has never been written."""
        doc = self._get_doc_ref(key).get()

        if not doc.exists:
            return None

        value = (doc.to_dict() or {}).get("value")
        return None if value is None else str(value)

    def put(self, key: str, value: str) -> None:
        """Write a single value."""
        self._get_doc_ref(key).set({
            "value": value,
            "updated_at": datetime.now(timezone.utc),
        })

    def put_many(self, items: dict[str, str]) -> None:
        """Write several values in one atomic batch."""
        if not items:
            return

        now = datetime.now(timezone.utc)
        batch = self.client.batch()
        for key, value in items.items():
            batch.set(self._get_doc_ref(key), {
                "value": value,
                "updated_at": now,
            })
        batch.commit()


class MemoryKVStore:
    """Process-local key-value store for local runs and tests."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def put(self, key: str, value: str) -> None:
        self.data[key] = value

    def put_many(self, items: dict[str, str]) -> None:
        self.data.update(items)


class WatermarkRepository:
    """Typed access to the deduplication watermarks.

    Reads and writes go straight to the underlying store; store errors
    propagate so the orchestrator can decide how to react.
    """

    SEEN_KEYS = (LAST_SEEN_EVENT_ID, LAST_SEEN_MAG, LAST_SEEN_AT)
    ALERTED_KEYS = (
        LAST_ALERTED_EVENT_ID,
        LAST_ALERTED_PAYLOAD_ID,
        LAST_ALERTED_MAG,
        LAST_ALERTED_AT,
    )

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    def _read(self, keys: tuple[str, ...]) -> dict[str, str | None]:
        return {key: self.store.get(key) for key in keys}

    def get_seen_marker(self) -> SeenMarker | None:
        """Read the newest event observed on the feed."""
        return seen_marker_from_items(self._read(self.SEEN_KEYS))

    def mark_seen(self, marker: SeenMarker) -> None:
        """Record a newly observed event."""
        logger.info("Recording seen event %s", marker.event_id)
        self.store.put_many(seen_marker_to_items(marker))

    def get_alerted_marker(self) -> AlertedMarker | None:
        """Read the last fully processed event."""
        return alerted_marker_from_items(self._read(self.ALERTED_KEYS))

    def commit_alerted(self, marker: AlertedMarker) -> None:
        """Mark an event as fully processed. It will not be processed again."""
        logger.info(
            "Committing alerted event %s (payload %s)",
            marker.event_id,
            marker.payload_id or marker.event_id,
        )
        self.store.put_many(alerted_marker_to_items(marker))
