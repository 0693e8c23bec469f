#!/usr/bin/env python3
"""Send a test alert rendered from a synthetic enriched event.

⚠️  WARNING: This script sends REAL SMS or calls through Twilio!

It builds the same message the alert tick would send for a synthetic event
and delivers it to one number or to every enabled target. Watermarks are
never touched, so a real event is still alerted normally afterwards.

Usage:
    # Dry run (preview only, no sends)
    python scripts/send_test_alert.py --dry-run

    # Send to a single number
    python scripts/send_test_alert.py --to +56900000000

    # Send to every enabled target in the registry
    python scripts/send_test_alert.py --all-targets

Environment:
    CONFIG_PATH: Path to config file (otherwise configuration comes from
                 environment variables)
    GCP_PROJECT: GCP project ID for Secret Manager access
"""

import argparse
import logging
import os
import sys

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.core.enrichment import EnrichedEvent, Location
from src.core.formatter import build_alert_message
from src.orchestrator import AlertOrchestrator
from src.shell.config_loader import load_config, load_config_from_env

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)


def create_test_event(
    magnitude: float = 5.5,
    reference: str = "40 km al O de Valparaiso",
) -> EnrichedEvent:
    """Create a synthetic enriched event for testing."""
    return EnrichedEvent(
        magnitude=magnitude,
        payload_id="test-event",
        occurred_at="01-01-2025 12:00",
        reference=f"[TEST] {reference}",
        locations=(
            Location(name="Valparaiso", predicted_intensity=5),
            Location(name="Vina del Mar", predicted_intensity=5),
            Location(name="Santiago", predicted_intensity=4),
        ),
    )


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Send a test seismic alert through Twilio",
    )
    parser.add_argument(
        "--magnitude",
        type=float,
        default=5.5,
        help="Magnitude of the synthetic event (default: 5.5)",
    )
    parser.add_argument(
        "--reference",
        type=str,
        default="40 km al O de Valparaiso",
        help="Reference text of the synthetic event",
    )
    parser.add_argument(
        "--to",
        type=str,
        default="",
        help="Send to this number only",
    )
    parser.add_argument(
        "--all-targets",
        action="store_true",
        help="Send to every enabled target in the registry",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print what would be sent without actually sending",
    )
    args = parser.parse_args()

    config_path = os.environ.get("CONFIG_PATH")
    config = load_config(config_path) if config_path else load_config_from_env()

    event = create_test_event(magnitude=args.magnitude, reference=args.reference)
    message = build_alert_message(
        event,
        max_locations=config.max_locations,
        min_intensity=config.min_intensity_to_show,
        location_limit=config.location_limit,
        max_length=config.max_message_length,
    )

    logger.info("Message (%d chars):", len(message))
    logger.info("  %s", message)

    if not args.to and not args.all_targets:
        logger.error("Choose a recipient: --to <number> or --all-targets")
        return 1

    if args.dry_run:
        logger.info("DRY RUN - Would send to %s", args.to or "all enabled targets")
        return 0

    orchestrator = AlertOrchestrator(config)
    results = orchestrator.send_test_alert(to=args.to, message=message)

    logger.info("=" * 50)
    logger.info("Test Alert Summary:")
    failures = sum(1 for r in results if not r.success)
    logger.info("  Recipients: %d", len(results))
    logger.info("  Successful: %d", len(results) - failures)
    logger.info("  Failed: %d", failures)

    for result in results:
        status = "✓" if result.success else "✗"
        logger.info("  %s %s %s", status, result.target.phone, result.error or "")

    return 0 if results and failures == 0 else 1


if __name__ == "__main__":
    sys.exit(main())
