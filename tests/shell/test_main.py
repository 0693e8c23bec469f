"""Tests for the Cloud Function entry points.

Configuration and the orchestrator are patched; no I/O happens.
"""

from unittest.mock import Mock, patch

import pytest
from flask import Request
from werkzeug.test import EnvironBuilder

from src import main
from src.core.config import Config
from src.orchestrator import DispatchResult, TickOutcome, TickResult
from src.core.targets import Target


VALID_CONFIG = Config(enrichment_base_url="https://enrich.test")


def make_request(path="/"):
    return Request(EnvironBuilder(path=path).get_environ())


@pytest.fixture
def orchestrator_class():
    with patch("src.main.AlertOrchestrator") as mock_class:
        yield mock_class


class TestSeismicMonitor:
    """Tests for the HTTP tick entry point."""

    def test_successful_tick(self, orchestrator_class):
        orchestrator_class.return_value.run.return_value = TickResult(
            outcome=TickOutcome.DISPATCHED,
            event_id="E1",
            payload_id="R-1",
            dispatched=[DispatchResult(target=Target(phone="+1"), success=True, sid="SM1")],
            committed=True,
        )

        with patch("src.main._get_config", return_value=VALID_CONFIG):
            body, status = main.seismic_monitor(make_request())

        assert status == 200
        assert body["status"] == "success"
        assert body["outcome"] == "dispatched"
        assert body["event_id"] == "E1"
        assert body["alerts_sent"] == 1
        assert body["committed"] is True

    def test_tick_with_errors_is_multi_status(self, orchestrator_class):
        orchestrator_class.return_value.run.return_value = TickResult(
            outcome=TickOutcome.FEED_UNAVAILABLE,
            errors=["Failed to fetch event feed: timeout"],
        )

        with patch("src.main._get_config", return_value=VALID_CONFIG):
            body, status = main.seismic_monitor(make_request())

        assert status == 207
        assert body["status"] == "partial_failure"
        assert body["errors"] == ["Failed to fetch event feed: timeout"]

    def test_invalid_config(self, orchestrator_class):
        with patch("src.main._get_config", return_value=Config()):
            body, status = main.seismic_monitor(make_request())

        assert status == 400
        assert any("enrichment_base_url" in e for e in body["errors"])
        orchestrator_class.assert_not_called()

    def test_unexpected_error(self, orchestrator_class):
        with patch("src.main._get_config", side_effect=RuntimeError("boom")):
            body, status = main.seismic_monitor(make_request())

        assert status == 500
        assert body["message"] == "boom"


class TestSeismicMonitorPubsub:
    """Tests for the Pub/Sub tick entry point."""

    def test_runs_tick(self, orchestrator_class):
        orchestrator_class.return_value.run.return_value = TickResult(
            outcome=TickOutcome.ALREADY_ALERTED,
        )

        with patch("src.main._get_config", return_value=VALID_CONFIG):
            main.seismic_monitor_pubsub(Mock())

        orchestrator_class.return_value.run.assert_called_once()

    def test_reraises_unexpected_errors(self, orchestrator_class):
        with patch("src.main._get_config", side_effect=RuntimeError("boom")):
            with pytest.raises(RuntimeError):
                main.seismic_monitor_pubsub(Mock())


class TestGetConfig:
    """Tests for configuration source selection."""

    def test_uses_file_when_config_path_set(self):
        with patch.dict("os.environ", {"CONFIG_PATH": "/tmp/config.yaml"}), \
                patch("src.main.load_config", return_value=VALID_CONFIG) as load_file, \
                patch("src.main.load_config_from_env") as load_env:
            assert main._get_config() is VALID_CONFIG

        load_file.assert_called_once_with("/tmp/config.yaml")
        load_env.assert_not_called()

    def test_uses_environment_otherwise(self):
        with patch.dict("os.environ", {}, clear=True), \
                patch("src.main.load_config_from_env", return_value=VALID_CONFIG) as load_env:
            assert main._get_config() is VALID_CONFIG

        load_env.assert_called_once()
