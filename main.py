"""Cloud Function Entry Point - Root Module.

This is the root-level entry point for Google Cloud Functions.
It imports from the src package.
"""

from src.main import (
    seismic_api,
    seismic_monitor,
    seismic_monitor_pubsub,
)

__all__ = [
    "seismic_api",
    "seismic_monitor",
    "seismic_monitor_pubsub",
]
