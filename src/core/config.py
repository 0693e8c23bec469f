"""Configuration models - Pure data structures.

These are domain models for configuration. The actual loading
(I/O) is handled by the shell layer.
"""

from dataclasses import dataclass, field


DEFAULT_FEED_URL = "https://api.xor.cl/sismo/recent"
DEFAULT_ENRICHMENT_PATH = "/alerta/v1"

CHANNEL_SMS = "sms"
CHANNEL_CALL = "call"
CHANNELS = (CHANNEL_SMS, CHANNEL_CALL)


@dataclass(frozen=True)
class TwilioCredentials:
    """Twilio account credentials.

    Attributes:
        account_sid: Twilio Account SID
        auth_token: Twilio Auth Token
        from_number: Sender phone number (E.164)
    """
    account_sid: str
    auth_token: str
    from_number: str

    @property
    def complete(self) -> bool:
        """True if every field is set."""
        return bool(self.account_sid and self.auth_token and self.from_number)


@dataclass
class ManualAlertConfig:
    """Manual test trigger configuration.

    Attributes:
        enabled: Whether /test-alert is exposed at all
        pin: Shared secret required on every request
        default_to: Recipient used when the request names none
    """
    enabled: bool = False
    pin: str = ""
    default_to: str = ""


@dataclass
class Config:
    """Application configuration.

    This is a pure data structure - no I/O or side effects.

    Attributes:
        feed_url: Event feed endpoint
        enrichment_base_url: Enrichment service origin (required for alerts)
        enrichment_path: Path of the enrichment endpoint
        min_event_magnitude: Global magnitude threshold for alerting
        min_intensity_to_show: Intensity threshold passed to enrichment
        max_locations: Number of locations requested and listed
        location_limit: Hard cap on locations listed in a message
        channel: Notification channel ("sms" or "call")
        max_message_length: Message length cap
        twilio: Twilio credentials (None if not configured)
        public_url: Public URL of this service, used for call scripts
        voice_language: Language for the call script
        voice: Twilio voice for the call script
        manual_alert: Manual test trigger settings
        firestore_database: Firestore database name (None for default)
        firestore_collection: Firestore collection for the key-value store
        request_timeout: Timeout for outbound HTTP requests (seconds)
    """
    feed_url: str = DEFAULT_FEED_URL
    enrichment_base_url: str | None = None
    enrichment_path: str = DEFAULT_ENRICHMENT_PATH
    min_event_magnitude: float = 4.0
    min_intensity_to_show: int = 3
    max_locations: int = 10
    location_limit: int = 6
    channel: str = CHANNEL_SMS
    max_message_length: int = 1600
    twilio: TwilioCredentials | None = None
    public_url: str | None = None
    voice_language: str = "es-CL"
    voice: str = "alice"
    manual_alert: ManualAlertConfig = field(default_factory=ManualAlertConfig)
    firestore_database: str | None = None
    firestore_collection: str = "seismic_alerts"
    request_timeout: int = 30


@dataclass
class ValidationError:
    """A configuration validation error.

    Attributes:
        field: The field that has an error
        message: Human-readable error description
        severity: 'error' or 'warning'
    """
    field: str
    message: str
    severity: str = "error"


@dataclass
class ValidationResult:
    """Result of validating configuration.

    Attributes:
        valid: True if no errors (warnings are OK)
        errors: List of validation errors/warnings
    """
    valid: bool
    errors: list[ValidationError] = field(default_factory=list)

    @property
    def warnings(self) -> list[ValidationError]:
        """Get only warnings."""
        return [e for e in self.errors if e.severity == "warning"]

    @property
    def critical_errors(self) -> list[ValidationError]:
        """Get only critical errors."""
        return [e for e in self.errors if e.severity == "error"]


def _is_unresolved(value: str | None) -> bool:
    """True for empty values and placeholders that were never resolved."""
    return not value or value.startswith("${")


def validate_config(config: Config) -> ValidationResult:
    """Validate configuration for errors and warnings.

    Pure function.

    Args:
        config: Configuration to validate

    Returns:
        ValidationResult with any errors/warnings found
    """
    errors: list[ValidationError] = []

    if _is_unresolved(config.feed_url):
        errors.append(ValidationError(
            field="feed_url",
            message="Event feed URL is not set",
        ))

    if _is_unresolved(config.enrichment_base_url):
        errors.append(ValidationError(
            field="enrichment_base_url",
            message="Enrichment base URL is not set",
        ))

    if config.channel not in CHANNELS:
        errors.append(ValidationError(
            field="channel",
            message=f"Unknown channel '{config.channel}', expected one of {', '.join(CHANNELS)}",
        ))

    if config.max_locations < 0:
        errors.append(ValidationError(
            field="max_locations",
            message=f"max_locations must not be negative, got {config.max_locations}",
        ))

    if config.max_message_length < 0:
        errors.append(ValidationError(
            field="max_message_length",
            message=f"max_message_length must not be negative, got {config.max_message_length}",
        ))

    # Missing credentials only fail individual sends, so this is a warning
    if config.twilio is None or not config.twilio.complete:
        errors.append(ValidationError(
            field="twilio",
            message="Twilio credentials incomplete (account_sid/auth_token/from_number)",
            severity="warning",
        ))

    if config.channel == CHANNEL_CALL and _is_unresolved(config.public_url):
        errors.append(ValidationError(
            field="public_url",
            message="Voice calls need public_url to serve the call script",
            severity="warning",
        ))

    if config.manual_alert.enabled and not config.manual_alert.pin:
        errors.append(ValidationError(
            field="manual_alert.pin",
            message="Test alert is enabled without a PIN; every request will be rejected",
            severity="warning",
        ))

    has_critical = any(e.severity == "error" for e in errors)

    return ValidationResult(
        valid=not has_critical,
        errors=errors,
    )
