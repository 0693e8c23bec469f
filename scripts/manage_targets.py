#!/usr/bin/env python3
"""Inspect and edit the notification target registry.

The registry is a JSON array stored in Firestore under `alert_targets_v1`.
The alert tick reads it fresh on every run, so edits take effect on the
next tick.

Usage:
    python scripts/manage_targets.py list
    python scripts/manage_targets.py add +56900000000 --min-mag 5 --location Santiago
    python scripts/manage_targets.py disable +56900000000
    python scripts/manage_targets.py enable +56900000000
    python scripts/manage_targets.py remove +56900000000

Environment:
    CONFIG_PATH: Path to config file (otherwise configuration comes from
                 environment variables)
"""

import argparse
import dataclasses
import logging
import os
import sys

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.core.targets import Target
from src.shell.config_loader import load_config, load_config_from_env
from src.shell.target_registry import TargetRegistry
from src.shell.watermark_store import FirestoreConfig, FirestoreKVStore

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)


def _set_enabled(targets: list[Target], phone: str, enabled: bool) -> list[Target]:
    return [
        dataclasses.replace(t, enabled=enabled) if t.phone == phone else t
        for t in targets
    ]


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Manage alert targets")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("list", help="List all targets")

    add = subparsers.add_parser("add", help="Add or replace a target")
    add.add_argument("phone", help="Phone number (E.164)")
    add.add_argument("--min-mag", type=float, default=0.0, help="Minimum magnitude")
    add.add_argument("--location", default="", help="Location name (empty matches all)")
    add.add_argument("--user", default="", help="Display name")
    add.add_argument("--disabled", action="store_true", help="Add the target disabled")

    for name in ("enable", "disable", "remove"):
        sub = subparsers.add_parser(name, help=f"{name.capitalize()} a target")
        sub.add_argument("phone", help="Phone number (E.164)")

    args = parser.parse_args()

    config_path = os.environ.get("CONFIG_PATH")
    config = load_config(config_path) if config_path else load_config_from_env()

    store = FirestoreKVStore(FirestoreConfig(
        database=config.firestore_database,
        collection=config.firestore_collection,
    ))
    registry = TargetRegistry(store)
    targets = registry.load_targets()

    if args.command == "list":
        if not targets:
            logger.info("No targets configured")
        for t in targets:
            status = "on " if t.enabled else "off"
            logger.info(
                "  [%s] %s  min M%.1f  location=%s  %s",
                status,
                t.phone,
                t.min_magnitude,
                t.location or "*",
                t.user,
            )
        return 0

    known = {t.phone for t in targets}

    if args.command == "add":
        new_target = Target(
            phone=args.phone,
            min_magnitude=args.min_mag,
            location=args.location,
            enabled=not args.disabled,
            user=args.user,
        )
        targets = [t for t in targets if t.phone != args.phone] + [new_target]
    elif args.phone not in known:
        logger.error("Target %s not found", args.phone)
        return 1
    elif args.command == "remove":
        targets = [t for t in targets if t.phone != args.phone]
    else:
        targets = _set_enabled(targets, args.phone, args.command == "enable")

    registry.save_targets(targets)
    return 0


if __name__ == "__main__":
    sys.exit(main())
