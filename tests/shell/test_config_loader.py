"""Tests for configuration loading.

Secret Manager is disabled; placeholders resolve from the environment.
"""

import os
import tempfile
from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from src.core.config import Config, DEFAULT_FEED_URL, TwilioCredentials
from src.shell.config_loader import (
    _parse_bool,
    _resolve_value,
    load_config,
    load_config_from_dict,
    load_config_from_env,
)


@pytest.fixture(autouse=True)
def no_secret_manager():
    """Never talk to Secret Manager from tests."""
    with patch("src.shell.config_loader._get_secret_manager_client", return_value=None):
        yield


class TestResolveValue:
    """Tests for _resolve_value()."""

    def test_plain_value_unchanged(self):
        assert _resolve_value("https://x.test") == "https://x.test"
        assert _resolve_value(42) == 42

    def test_env_placeholder(self):
        """${VAR} resolves from the environment."""
        with patch.dict(os.environ, {"ENRICH_HOST": "https://enrich.test"}):
            assert _resolve_value("${ENRICH_HOST}") == "https://enrich.test"

    def test_unset_env_placeholder_kept(self):
        """Unresolved placeholders are left as-is."""
        with patch.dict(os.environ, {}, clear=True):
            assert _resolve_value("${MISSING_VAR}") == "${MISSING_VAR}"

    def test_secret_placeholder_without_client(self):
        """Secret placeholders stay unresolved without a client."""
        assert _resolve_value("${secret:twilio-token}") == "${secret:twilio-token}"

    def test_delegates_to_secret_client(self):
        """A secret client resolves the value when available."""
        client = Mock()
        client.resolve.return_value = "resolved"

        assert _resolve_value("${secret:token}", client) == "resolved"
        client.resolve.assert_called_once_with("${secret:token}")


class TestParseBool:
    """Tests for _parse_bool()."""

    @pytest.mark.parametrize("value", [True, 1, "1", "true", "TRUE", " yes ", "on"])
    def test_truthy(self, value):
        assert _parse_bool(value) is True

    @pytest.mark.parametrize("value", [False, 0, "", "0", "false", "no", None])
    def test_falsy(self, value):
        assert _parse_bool(value) is False


class TestLoadConfigFromDict:
    """Tests for load_config_from_dict()."""

    def test_defaults(self):
        """An empty dict gives the default configuration."""
        config = load_config_from_dict({})

        assert config.feed_url == DEFAULT_FEED_URL
        assert config.enrichment_base_url is None
        assert config.min_event_magnitude == 4.0
        assert config.min_intensity_to_show == 3
        assert config.max_locations == 10
        assert config.channel == "sms"
        assert config.twilio is None
        assert config.manual_alert.enabled is False

    def test_full_config(self):
        """All sections are parsed."""
        config = load_config_from_dict({
            "feed_url": "https://feed.test/recent",
            "enrichment_base_url": "https://enrich.test",
            "enrichment_path": "/v2",
            "min_event_magnitude": "5.5",
            "min_intensity_to_show": 4,
            "max_locations": 3,
            "channel": " CALL ",
            "public_url": "https://alerts.test",
            "twilio": {
                "account_sid": "AC1",
                "auth_token": "tok",
                "from_number": "+1555",
            },
            "manual_alert": {"enabled": "true", "pin": "1234", "default_to": "+5690"},
            "firestore_database": "alerts",
        })

        assert config.feed_url == "https://feed.test/recent"
        assert config.enrichment_base_url == "https://enrich.test"
        assert config.enrichment_path == "/v2"
        assert config.min_event_magnitude == 5.5
        assert config.min_intensity_to_show == 4
        assert config.max_locations == 3
        assert config.channel == "call"
        assert config.public_url == "https://alerts.test"
        assert config.twilio == TwilioCredentials("AC1", "tok", "+1555")
        assert config.manual_alert.enabled is True
        assert config.manual_alert.pin == "1234"
        assert config.manual_alert.default_to == "+5690"
        assert config.firestore_database == "alerts"

    def test_resolves_env_placeholders(self):
        """Twilio secrets may come from ${VAR} placeholders."""
        with patch.dict(os.environ, {"TWILIO_TOKEN_VAR": "secret-token"}):
            config = load_config_from_dict({
                "twilio": {"account_sid": "AC1", "auth_token": "${TWILIO_TOKEN_VAR}"},
            })

        assert config.twilio.auth_token == "secret-token"
        assert config.twilio.from_number == ""


class TestLoadConfig:
    """Tests for load_config() from YAML."""

    def test_loads_yaml(self):
        yaml_text = (
            "enrichment_base_url: https://enrich.test\n"
            "min_event_magnitude: 4.5\n"
            "channel: sms\n"
            "twilio:\n"
            "  account_sid: AC1\n"
            "  auth_token: tok\n"
            "  from_number: '+1555'\n"
        )
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.yaml"
            path.write_text(yaml_text)

            config = load_config(path)

        assert config.enrichment_base_url == "https://enrich.test"
        assert config.min_event_magnitude == 4.5
        assert config.twilio.from_number == "+1555"

    def test_missing_file_uses_defaults(self):
        with tempfile.TemporaryDirectory() as tmp:
            config = load_config(Path(tmp) / "missing.yaml")

        assert config == Config()

    def test_empty_file_uses_defaults(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "empty.yaml"
            path.write_text("")

            assert load_config(path) == Config()


class TestLoadConfigFromEnv:
    """Tests for load_config_from_env()."""

    def test_reads_environment(self):
        env = {
            "ENRICHMENT_BASE_URL": "https://enrich.test",
            "MIN_EVENT_MAGNITUDE": "5",
            "ALERT_TOP_LOCATIONS": "4",
            "ALERT_CHANNEL": "call",
            "PUBLIC_URL": "https://alerts.test",
            "TWILIO_ACCOUNT_SID": "AC1",
            "TWILIO_AUTH_TOKEN": "tok",
            "TWILIO_FROM_NUMBER": "+1555",
            "ENABLE_TEST_ALERT": "1",
            "TEST_ALERT_PIN": "9999",
        }
        with patch.dict(os.environ, env, clear=True):
            config = load_config_from_env()

        assert config.enrichment_base_url == "https://enrich.test"
        assert config.min_event_magnitude == 5.0
        assert config.max_locations == 4
        assert config.channel == "call"
        assert config.public_url == "https://alerts.test"
        assert config.twilio.complete
        assert config.manual_alert.enabled is True
        assert config.manual_alert.pin == "9999"

    def test_empty_environment(self):
        """Without variables the defaults apply."""
        with patch.dict(os.environ, {}, clear=True):
            config = load_config_from_env()

        assert config.feed_url == DEFAULT_FEED_URL
        assert config.twilio is None
        assert config.manual_alert.enabled is False
