"""Web API Handler - Auxiliary HTTP surface.

This module serves the small HTTP surface next to the scheduled alert
tick: a health check, the cached public snapshot, the manual test trigger
and the TwiML script Twilio fetches during voice calls.
Part of the imperative shell - handles HTTP I/O.
"""

import hmac
import logging
import threading
from typing import Callable

from flask import Request, Response

from src.core.config import Config
from src.core.formatter import DEFAULT_TWIML_TEXT, build_twiml
from src.orchestrator import AlertOrchestrator
from src.shell.watermark_store import KeyValueStore

logger = logging.getLogger(__name__)

# Key under which the rendered public snapshot is cached
SNAPSHOT_KEY = "public_snapshot_html"

HEALTH_TEXT = "Seismic alert service running"


def _text_response(text: str, status: int = 200) -> Response:
    """Create a plain-text response."""
    return Response(text, status=status, mimetype="text/plain")


def _run_in_background(func: Callable[[], object]) -> None:
    """Run func on a daemon thread without waiting for it."""
    def target() -> None:
        try:
            func()
        except Exception:
            logger.exception("Background task failed")

    threading.Thread(target=target, daemon=True).start()


def health(request: Request) -> Response:
    """API endpoint: Health check."""
    return _text_response(HEALTH_TEXT)


def public_snapshot(request: Request, store: KeyValueStore) -> Response:
    """API endpoint: Serve the cached public HTML snapshot.

    Returns:
        The cached HTML, or 503 when no snapshot is available
    """
    try:
        html = store.get(SNAPSHOT_KEY)
    except Exception:
        logger.exception("Failed to read public snapshot")
        html = None

    if not html:
        return _text_response("Snapshot not available", status=503)

    return Response(html, status=200, mimetype="text/html")


def trigger_test_alert(
    request: Request,
    config: Config,
    orchestrator: AlertOrchestrator,
    runner: Callable[[Callable[[], object]], None] | None = None,
) -> Response:
    """API endpoint: Manually trigger a test SMS.

    Query params:
        pin: Shared secret (must match the configured PIN)
        to: Recipient phone number (optional, defaults to the configured
            recipient, then to all enabled targets)
        msg: Custom message text (optional)

    Returns:
        404 when the trigger is disabled, 401 on a bad PIN, otherwise an
        immediate acknowledgment; the sends run in the background
    """
    settings = config.manual_alert

    if not settings.enabled:
        return _text_response("Not Found", status=404)

    pin = request.args.get("pin", "")
    if not settings.pin or not hmac.compare_digest(pin.encode(), settings.pin.encode()):
        logger.warning("Test alert rejected: bad PIN")
        return _text_response("Unauthorized", status=401)

    to = request.args.get("to") or settings.default_to
    message = request.args.get("msg", "")

    logger.info("Test alert triggered (to=%s)", to or "all enabled targets")
    (runner or _run_in_background)(lambda: orchestrator.send_test_alert(to, message))

    return _text_response("OK - test alert triggered")


def twiml(request: Request, config: Config) -> Response:
    """API endpoint: TwiML voice script.

    Query params:
        text: Text to read out
    """
    text = request.args.get("text") or DEFAULT_TWIML_TEXT
    xml = build_twiml(text, language=config.voice_language, voice=config.voice)
    return Response(xml, status=200, content_type="text/xml; charset=utf-8")


def handle_request(
    request: Request,
    config: Config,
    orchestrator: AlertOrchestrator,
) -> Response:
    """Route a request to its endpoint."""
    path = request.path.rstrip("/") or "/"

    if path == "/":
        return health(request)
    if path == "/public":
        return public_snapshot(request, orchestrator.store)
    if path == "/test-alert":
        return trigger_test_alert(request, config, orchestrator)
    if path == "/twiml":
        return twiml(request, config)

    return _text_response("Not found", status=404)
