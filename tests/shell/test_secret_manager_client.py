"""Tests for the Secret Manager client.

The Google client is mocked.
"""

import os
from unittest.mock import MagicMock, patch

import pytest

from src.shell.secret_manager_client import SecretManagerClient, SecretManagerConfig


@pytest.fixture
def mock_service():
    with patch(
        "src.shell.secret_manager_client.secretmanager.SecretManagerServiceClient"
    ) as mock_class:
        mock_client = MagicMock()
        mock_class.return_value = mock_client
        yield mock_client


class TestGetSecret:
    """Tests for SecretManagerClient.get_secret()."""

    def test_fetches_latest_version(self, mock_service):
        mock_service.access_secret_version.return_value.payload.data = b"s3cret"

        client = SecretManagerClient(SecretManagerConfig(project_id="proj"))

        assert client.get_secret("twilio-token") == "s3cret"
        mock_service.access_secret_version.assert_called_once_with(
            request={"name": "projects/proj/secrets/twilio-token/versions/latest"}
        )

    def test_no_project(self, mock_service):
        assert SecretManagerClient().get_secret("twilio-token") is None
        mock_service.access_secret_version.assert_not_called()

    def test_api_error_returns_none(self, mock_service):
        mock_service.access_secret_version.side_effect = RuntimeError("denied")

        client = SecretManagerClient(SecretManagerConfig(project_id="proj"))

        assert client.get_secret("twilio-token") is None


class TestResolve:
    """Tests for SecretManagerClient.resolve()."""

    def test_plain_value(self, mock_service):
        assert SecretManagerClient().resolve("+15550000000") == "+15550000000"

    def test_secret_placeholder(self, mock_service):
        mock_service.access_secret_version.return_value.payload.data = b"1234"

        client = SecretManagerClient(SecretManagerConfig(project_id="proj"))

        assert client.resolve("${secret:test-alert-pin}") == "1234"

    def test_unresolved_secret_kept(self, mock_service):
        mock_service.access_secret_version.side_effect = RuntimeError("not found")

        client = SecretManagerClient(SecretManagerConfig(project_id="proj"))

        assert client.resolve("${secret:missing}") == "${secret:missing}"

    def test_env_placeholder(self, mock_service):
        with patch.dict(os.environ, {"TWILIO_SID": "AC1"}):
            assert SecretManagerClient().resolve("${TWILIO_SID}") == "AC1"
