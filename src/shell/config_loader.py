"""Configuration Loader - Imperative Shell.

This module handles loading configuration from YAML files and
environment variables. All I/O is contained here.

Models (Config, TwilioCredentials) are defined in src/core/config.py
to avoid information leakage between layers.
"""

import logging
import os
from pathlib import Path
from typing import Any, Optional

import yaml

from src.core.config import (
    Config,
    DEFAULT_ENRICHMENT_PATH,
    DEFAULT_FEED_URL,
    ManualAlertConfig,
    TwilioCredentials,
)
from src.shell.secret_manager_client import SecretManagerClient, SecretManagerConfig


logger = logging.getLogger(__name__)


# Environment variable -> config key, for load_config_from_env()
ENV_KEYS = {
    "FEED_URL": "feed_url",
    "ENRICHMENT_BASE_URL": "enrichment_base_url",
    "ENRICHMENT_PATH": "enrichment_path",
    "MIN_EVENT_MAGNITUDE": "min_event_magnitude",
    "MIN_INTENSITY_TO_SHOW": "min_intensity_to_show",
    "ALERT_TOP_LOCATIONS": "max_locations",
    "ALERT_LOCATION_LIMIT": "location_limit",
    "ALERT_CHANNEL": "channel",
    "MAX_MESSAGE_LENGTH": "max_message_length",
    "PUBLIC_URL": "public_url",
    "VOICE_LANGUAGE": "voice_language",
    "VOICE": "voice",
    "FIRESTORE_DATABASE": "firestore_database",
    "FIRESTORE_COLLECTION": "firestore_collection",
    "REQUEST_TIMEOUT": "request_timeout",
}

TWILIO_ENV_KEYS = {
    "TWILIO_ACCOUNT_SID": "account_sid",
    "TWILIO_AUTH_TOKEN": "auth_token",
    "TWILIO_FROM_NUMBER": "from_number",
}

MANUAL_ALERT_ENV_KEYS = {
    "ENABLE_TEST_ALERT": "enabled",
    "TEST_ALERT_PIN": "pin",
    "TEST_ALERT_TO": "default_to",
}


def _get_secret_manager_client() -> Optional[SecretManagerClient]:
    """Get a Secret Manager client.

    Returns None if no GCP project is configured (e.g., local development).
    """
    project_id = os.environ.get("GCP_PROJECT") or os.environ.get("GOOGLE_CLOUD_PROJECT")
    if project_id:
        return SecretManagerClient(SecretManagerConfig(project_id=project_id))
    return None


def _resolve_value(value: Any, secret_client: Optional[SecretManagerClient] = None) -> Any:
    """Resolve a value that may contain secret or env var placeholders.

    Delegates to SecretManagerClient.resolve() when a client is available.

    Args:
        value: Value to resolve (may contain ${...} placeholders)
        secret_client: Client for resolving secrets

    Returns:
        Resolved value
    """
    if not isinstance(value, str):
        return value

    if secret_client:
        return secret_client.resolve(value)

    # No secret client - only handle env vars
    if value.startswith("${") and value.endswith("}"):
        var_spec = value[2:-1]
        if not var_spec.startswith("secret:"):
            env_value = os.environ.get(var_spec)
            if env_value:
                return env_value
            logger.warning("Environment variable %s not set", var_spec)

    return value


def _parse_bool(value: Any) -> bool:
    """Parse flags written as booleans, numbers or strings ("1", "true")."""
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def _parse_twilio(
    data: dict[str, Any] | None,
    secret_client: Optional[SecretManagerClient] = None,
) -> TwilioCredentials | None:
    """Parse Twilio credentials. Returns None if the section is absent."""
    if not data:
        return None

    return TwilioCredentials(
        account_sid=str(_resolve_value(data.get("account_sid", ""), secret_client) or ""),
        auth_token=str(_resolve_value(data.get("auth_token", ""), secret_client) or ""),
        from_number=str(_resolve_value(data.get("from_number", ""), secret_client) or ""),
    )


def _parse_manual_alert(
    data: dict[str, Any] | None,
    secret_client: Optional[SecretManagerClient] = None,
) -> ManualAlertConfig:
    """Parse the manual test trigger section."""
    if not data:
        return ManualAlertConfig()

    return ManualAlertConfig(
        enabled=_parse_bool(data.get("enabled", False)),
        pin=str(_resolve_value(data.get("pin", ""), secret_client) or ""),
        default_to=str(_resolve_value(data.get("default_to", ""), secret_client) or ""),
    )


def load_config_from_dict(data: dict[str, Any]) -> Config:
    """Load configuration from a dictionary.

    This is a pure-ish function (only placeholder expansion has side effects).

    Args:
        data: Configuration dictionary

    Returns:
        Parsed Config object
    """
    secret_client = _get_secret_manager_client()

    def resolved(key: str, default: Any = None) -> Any:
        return _resolve_value(data.get(key, default), secret_client)

    return Config(
        feed_url=resolved("feed_url", DEFAULT_FEED_URL),
        enrichment_base_url=resolved("enrichment_base_url"),
        enrichment_path=data.get("enrichment_path", DEFAULT_ENRICHMENT_PATH),
        min_event_magnitude=float(data.get("min_event_magnitude", 4.0)),
        min_intensity_to_show=int(data.get("min_intensity_to_show", 3)),
        max_locations=int(data.get("max_locations", 10)),
        location_limit=int(data.get("location_limit", 6)),
        channel=str(data.get("channel", "sms")).strip().lower(),
        max_message_length=int(data.get("max_message_length", 1600)),
        twilio=_parse_twilio(data.get("twilio"), secret_client),
        public_url=resolved("public_url"),
        voice_language=data.get("voice_language", "es-CL"),
        voice=data.get("voice", "alice"),
        manual_alert=_parse_manual_alert(data.get("manual_alert"), secret_client),
        firestore_database=data.get("firestore_database"),
        firestore_collection=data.get("firestore_collection", "seismic_alerts"),
        request_timeout=int(data.get("request_timeout", 30)),
    )


def load_config(config_path: str | Path | None = None) -> Config:
    """Load configuration from a YAML file.

    This method performs file I/O.

    Args:
        config_path: Path to YAML config file.
                    If None, uses CONFIG_PATH env var or default.

    Returns:
        Parsed Config object

    Raises:
        yaml.YAMLError: If config file is invalid YAML
    """
    if config_path is None:
        config_path = os.environ.get("CONFIG_PATH", "config/config.yaml")

    path = Path(config_path)

    logger.info("Loading configuration from %s", path)

    if not path.exists():
        logger.warning("Config file not found: %s, using defaults", path)
        return Config()

    with open(path, "r") as f:
        data = yaml.safe_load(f)

    if data is None:
        logger.warning("Config file is empty, using defaults")
        return Config()

    config = load_config_from_dict(data)

    logger.info(
        "Loaded config: channel=%s, min magnitude %.1f",
        config.channel,
        config.min_event_magnitude,
    )

    return config


def load_config_from_env() -> Config:
    """Load configuration from environment variables.

    Used for deployments without a YAML file. Variables map onto the same
    keys as the YAML file (see ENV_KEYS), Twilio credentials come from
    TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN and TWILIO_FROM_NUMBER, and the
    manual test trigger from ENABLE_TEST_ALERT, TEST_ALERT_PIN and
    TEST_ALERT_TO. Values may be ${secret:name} placeholders.

    Returns:
        Config object from environment
    """
    data: dict[str, Any] = {}

    for env_name, key in ENV_KEYS.items():
        value = os.environ.get(env_name)
        if value:
            data[key] = value

    twilio = {
        key: os.environ[env_name]
        for env_name, key in TWILIO_ENV_KEYS.items()
        if os.environ.get(env_name)
    }
    if twilio:
        data["twilio"] = twilio

    manual_alert = {
        key: os.environ[env_name]
        for env_name, key in MANUAL_ALERT_ENV_KEYS.items()
        if os.environ.get(env_name)
    }
    if manual_alert:
        data["manual_alert"] = manual_alert

    return load_config_from_dict(data)
