"""Imperative Shell - I/O and side effects.

This module contains all code that interacts with external systems:
- Event feed client (HTTP)
- Enrichment client (HTTP)
- Twilio client (SMS and voice calls)
- Watermark store and target registry (Firestore)
- Configuration loading (environment/files)

Keep this layer thin and simple. All business logic should be in core.
"""

from src.shell.feed_client import FeedClient
from src.shell.enrichment_client import EnrichmentClient
from src.shell.twilio_client import TwilioClient
from src.shell.watermark_store import FirestoreKVStore, WatermarkRepository
from src.shell.target_registry import TargetRegistry
from src.shell.config_loader import load_config, Config

__all__ = [
    "FeedClient",
    "EnrichmentClient",
    "TwilioClient",
    "FirestoreKVStore",
    "WatermarkRepository",
    "TargetRegistry",
    "load_config",
    "Config",
]
