"""Tests for the auxiliary HTTP endpoints."""

from unittest.mock import Mock

import pytest
from flask import Request
from werkzeug.test import EnvironBuilder

from src.api_handler import (
    HEALTH_TEXT,
    SNAPSHOT_KEY,
    handle_request,
    trigger_test_alert,
    twiml,
)
from src.core.config import Config, ManualAlertConfig
from src.shell.watermark_store import MemoryKVStore


def make_request(path: str = "/", query: dict | None = None) -> Request:
    """Build a Flask request for the given path and query string."""
    builder = EnvironBuilder(path=path, query_string=query or {})
    return Request(builder.get_environ())


def run_now(func):
    """Synchronous stand-in for the background runner."""
    func()


@pytest.fixture
def orchestrator():
    mock = Mock()
    mock.store = MemoryKVStore()
    return mock


@pytest.fixture
def enabled_config():
    return Config(manual_alert=ManualAlertConfig(enabled=True, pin="1234", default_to="+5690"))


class TestRouting:
    """Tests for handle_request()."""

    def test_health(self, orchestrator):
        response = handle_request(make_request("/"), Config(), orchestrator)

        assert response.status_code == 200
        assert response.get_data(as_text=True) == HEALTH_TEXT

    def test_unknown_path(self, orchestrator):
        response = handle_request(make_request("/nope"), Config(), orchestrator)

        assert response.status_code == 404

    def test_trailing_slash(self, orchestrator):
        response = handle_request(make_request("/twiml/"), Config(), orchestrator)

        assert response.status_code == 200

    def test_public_without_snapshot(self, orchestrator):
        """No cached snapshot means 503."""
        response = handle_request(make_request("/public"), Config(), orchestrator)

        assert response.status_code == 503

    def test_public_serves_snapshot(self, orchestrator):
        orchestrator.store.put(SNAPSHOT_KEY, "<html>ok</html>")

        response = handle_request(make_request("/public"), Config(), orchestrator)

        assert response.status_code == 200
        assert response.mimetype == "text/html"
        assert response.get_data(as_text=True) == "<html>ok</html>"

    def test_public_store_error(self, orchestrator):
        """Store errors are reported as an unavailable snapshot."""
        orchestrator.store = Mock()
        orchestrator.store.get.side_effect = RuntimeError("down")

        response = handle_request(make_request("/public"), Config(), orchestrator)

        assert response.status_code == 503


class TestTriggerTestAlert:
    """Tests for trigger_test_alert()."""

    def test_disabled_returns_404(self, orchestrator):
        request = make_request("/test-alert", {"pin": "1234"})

        response = trigger_test_alert(request, Config(), orchestrator, runner=run_now)

        assert response.status_code == 404
        orchestrator.send_test_alert.assert_not_called()

    def test_bad_pin_returns_401(self, orchestrator, enabled_config):
        request = make_request("/test-alert", {"pin": "0000"})

        response = trigger_test_alert(request, enabled_config, orchestrator, runner=run_now)

        assert response.status_code == 401
        orchestrator.send_test_alert.assert_not_called()

    def test_missing_pin_returns_401(self, orchestrator, enabled_config):
        request = make_request("/test-alert")

        response = trigger_test_alert(request, enabled_config, orchestrator, runner=run_now)

        assert response.status_code == 401

    def test_unset_pin_rejects_everything(self, orchestrator):
        """An enabled trigger with no PIN configured accepts nothing."""
        config = Config(manual_alert=ManualAlertConfig(enabled=True, pin=""))
        request = make_request("/test-alert", {"pin": ""})

        response = trigger_test_alert(request, config, orchestrator, runner=run_now)

        assert response.status_code == 401

    def test_valid_pin_uses_default_recipient(self, orchestrator, enabled_config):
        request = make_request("/test-alert", {"pin": "1234"})

        response = trigger_test_alert(request, enabled_config, orchestrator, runner=run_now)

        assert response.status_code == 200
        assert response.get_data(as_text=True).startswith("OK")
        orchestrator.send_test_alert.assert_called_once_with("+5690", "")

    def test_explicit_recipient_and_message(self, orchestrator, enabled_config):
        request = make_request("/test-alert", {"pin": "1234", "to": "+5691", "msg": "hola"})

        trigger_test_alert(request, enabled_config, orchestrator, runner=run_now)

        orchestrator.send_test_alert.assert_called_once_with("+5691", "hola")


class TestTwiml:
    """Tests for twiml()."""

    def test_reads_text(self):
        response = twiml(make_request("/twiml", {"text": "Sismo fuerte"}), Config())
        body = response.get_data(as_text=True)

        assert response.status_code == 200
        assert response.content_type.startswith("text/xml")
        assert "Sismo fuerte" in body
        assert "es-CL" in body

    def test_default_text(self):
        body = twiml(make_request("/twiml"), Config()).get_data(as_text=True)

        assert "Alerta sismica." in body
