"""Target Registry - Imperative Shell.

This module reads the list of notification targets from the key-value
store, where it is kept as a single JSON document.
"""

import json
import logging

from src.core.targets import Target, parse_targets, target_to_dict
from src.shell.watermark_store import KeyValueStore


logger = logging.getLogger(__name__)


DEFAULT_TARGETS_KEY = "alert_targets_v1"


class TargetRegistry:
    """Loads notification targets from the key-value store.

    This is part of the imperative shell - it handles storage I/O.
    """

    def __init__(
        self,
        store: KeyValueStore,
        key: str = DEFAULT_TARGETS_KEY,
    ) -> None:
        """Initialize target registry.

        Args:
            store: Key-value store holding the registry document
            key: Key of the registry document
        """
        self.store = store
        self.key = key

    def load_targets(self) -> list[Target]:
        """Load the current target list.

        This method performs storage I/O. Missing, unreadable or malformed
        registries all yield an empty list.

        Returns:
            Parsed targets, in registry order
        """
        try:
            raw = self.store.get(self.key)
        except Exception as e:
            logger.error("Failed to read target registry %s: %s", self.key, str(e))
            return []

        if not raw:
            return []

        try:
            data = json.loads(raw)
        except ValueError as e:
            logger.error("Target registry %s is not valid JSON: %s", self.key, str(e))
            return []

        if not isinstance(data, list):
            logger.error("Target registry %s is not a JSON array", self.key)
            return []

        return parse_targets(data)

    def save_targets(self, targets: list[Target]) -> None:
        """Replace the registry document.

        This method performs storage I/O. Errors propagate.
        """
        document = json.dumps(
            [target_to_dict(t) for t in targets],
            ensure_ascii=False,
        )
        self.store.put(self.key, document)
        logger.info("Saved %d targets to %s", len(targets), self.key)
