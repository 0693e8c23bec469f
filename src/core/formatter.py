"""Message formatting - Pure functions.

This module renders enriched events into SMS text and voice-call scripts.
All functions are pure with no side effects.
"""

from urllib.parse import urlencode

from twilio.twiml.voice_response import VoiceResponse

from src.core.enrichment import EnrichedEvent, Location


MESSAGE_PREFIX = "Alerta de intensidad sismica."

DEFAULT_TEST_MESSAGE = (
    "Alerta de intensidad sismica. Prueba manual de envio SMS."
)

DEFAULT_TWIML_TEXT = "Alerta sismica."

# Twilio concatenates long SMS up to this many characters
DEFAULT_MAX_LENGTH = 1600

# Hard cap on locations listed in one message, whatever max_locations says
DEFAULT_LOCATION_LIMIT = 6

ELLIPSIS = "..."


def format_number(value: float | int | str) -> str:
    """Format a number without trailing zeros (5.0 -> "5", 5.25 -> "5.25")."""
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, (int, float)):
        return f"{value:g}"
    return str(value)


def format_location(location: Location) -> str:
    """Format one location as "Name (I=x)"."""
    return f"{location.name} (I={format_number(location.predicted_intensity)})"


def truncate_message(text: str, max_length: int) -> str:
    """Cut a message to max_length characters, ending with an ellipsis.

    Pure function. A non-positive max_length disables truncation.
    """
    if max_length <= 0 or len(text) <= max_length:
        return text
    if max_length <= len(ELLIPSIS):
        return text[:max_length]
    return text[:max_length - len(ELLIPSIS)].rstrip() + ELLIPSIS


def build_alert_message(
    enriched: EnrichedEvent,
    max_locations: int,
    min_intensity: int,
    location_limit: int = DEFAULT_LOCATION_LIMIT,
    max_length: int = DEFAULT_MAX_LENGTH,
) -> str:
    """Render the alert text sent to every selected target.

    Pure function.

    Args:
        enriched: Enriched event
        max_locations: Configured number of locations to list
        min_intensity: Intensity threshold, mentioned when nothing is listed
        location_limit: Upper bound on listed locations
        max_length: Message length cap

    Returns:
        Message text
    """
    count = max(0, min(max_locations, location_limit))
    listed = [
        format_location(loc)
        for loc in enriched.locations[:count]
        if loc.name
    ]

    header = (
        f"{MESSAGE_PREFIX} Magnitud {format_number(enriched.magnitude)}. "
        f"Fecha y hora: {enriched.occurred_at}. "
        f"Referencia: {enriched.reference}."
    )

    if listed:
        body = f"Localidades con intensidad estimada: {', '.join(listed)}."
    else:
        body = (
            "No hay localidades con intensidad estimada sobre el umbral "
            f"{min_intensity}."
        )

    return truncate_message(f"{header} {body}", max_length)


def build_twiml(
    text: str,
    language: str = "es-CL",
    voice: str = "alice",
) -> str:
    """Build the TwiML document read out during a voice call.

    Pure function. The TwiML builder escapes the text.
    """
    response = VoiceResponse()
    response.say(text or DEFAULT_TWIML_TEXT, language=language, voice=voice)
    return str(response)


def build_twiml_url(public_url: str, text: str) -> str:
    """Build the URL Twilio fetches to get the call script."""
    base = public_url.rstrip("/")
    return f"{base}/twiml?{urlencode({'text': text})}"
