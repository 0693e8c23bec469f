"""Cloud Function Entry Point.

This module provides the entry points for Google Cloud Functions.
They are thin wrappers that load configuration and invoke the orchestrator.
"""

import logging
import os
import json
from typing import Any

import functions_framework
from flask import Request, Response

from src.api_handler import handle_request
from src.core.config import validate_config
from src.orchestrator import AlertOrchestrator
from src.shell.config_loader import load_config, load_config_from_env


# Configure logging
log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def _get_config():
    """Load configuration from file or environment."""
    config_path = os.environ.get("CONFIG_PATH")

    if config_path:
        return load_config(config_path)
    return load_config_from_env()


@functions_framework.http
def seismic_monitor(request: Request) -> tuple[dict[str, Any], int]:
    """HTTP Cloud Function entry point.

    This function is triggered by Cloud Scheduler or direct HTTP requests.
    It runs one alert tick.

    Args:
        request: Flask request object (not used, but required by framework)

    Returns:
        Tuple of (response dict, HTTP status code)
    """
    logger.info("Starting seismic alert tick")

    try:
        config = _get_config()

        validation = validate_config(config)
        for warning in validation.warnings:
            logger.warning("Config %s: %s", warning.field, warning.message)

        if not validation.valid:
            messages = [f"{e.field}: {e.message}" for e in validation.critical_errors]
            for message in messages:
                logger.error("Config %s", message)
            return {
                "status": "error",
                "message": "Invalid configuration",
                "errors": messages,
            }, 400

        orchestrator = AlertOrchestrator(config)
        result = orchestrator.run()

        response = {
            "status": "success" if result.success else "partial_failure",
            "summary": result.summary,
            "outcome": result.outcome.value,
            "event_id": result.event_id,
            "payload_id": result.payload_id,
            "alerts_sent": len(result.dispatched),
            "alerts_failed": len(result.failed),
            "committed": result.committed,
        }

        if result.errors:
            response["errors"] = result.errors

        logger.info("Completed: %s", result.summary)

        status_code = 200 if result.success else 207  # 207 = Multi-Status
        return response, status_code

    except Exception as e:
        logger.exception("Unexpected error in seismic monitor")
        return {
            "status": "error",
            "message": str(e),
        }, 500


@functions_framework.cloud_event
def seismic_monitor_pubsub(cloud_event: Any) -> None:
    """Pub/Sub Cloud Function entry point.

    Alternative trigger for Cloud Scheduler via Pub/Sub.

    Args:
        cloud_event: CloudEvent from Pub/Sub
    """
    logger.info("Starting seismic alert tick (Pub/Sub trigger)")

    try:
        config = _get_config()

        orchestrator = AlertOrchestrator(config)
        result = orchestrator.run()

        logger.info("Completed: %s", result.summary)

        for error in result.errors:
            logger.error("Error: %s", error)

    except Exception:
        logger.exception("Unexpected error in seismic monitor")
        raise


@functions_framework.http
def seismic_api(request: Request) -> Response:
    """HTTP Cloud Function entry point for the auxiliary endpoints.

    Serves /, /public, /test-alert and /twiml.
    """
    config = _get_config()
    orchestrator = AlertOrchestrator(config)
    return handle_request(request, config, orchestrator)


# For local testing
if __name__ == "__main__":
    print("Running seismic alert tick locally...")

    class MockRequest:
        pass

    response, status = seismic_monitor(MockRequest())
    print(f"\nResponse ({status}):")
    print(json.dumps(response, indent=2))
