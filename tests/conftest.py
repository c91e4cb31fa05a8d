"""Pytest configuration and fixtures."""

import json
from unittest.mock import MagicMock

import httpx
import pytest

from cloudant_tools.client.config import CloudantConfig
from cloudant_tools.client.response import DetailedResponse

CLOUDANT_ENV_VARS = (
    "CLOUDANT_URL",
    "CLOUDANT_SERVICE_URL",
    "CLOUDANT_AUTH_TYPE",
    "CLOUDANT_USERNAME",
    "CLOUDANT_PASSWORD",
    "CLOUDANT_APIKEY",
    "CLOUDANT_BEARER_TOKEN",
    "CLOUDANT_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Isolate tests from the caller's environment and .env file."""
    for name in CLOUDANT_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def config():
    """Create a test config for HTTP transport."""
    return CloudantConfig(
        url="http://localhost:5984",
        timeout=30.0,
        max_retries=0,
    )


@pytest.fixture
def json_response():
    """Factory for JSON httpx responses."""

    def make_response(body, status_code: int = 200, headers: dict | None = None):
        return httpx.Response(
            status_code,
            content=json.dumps(body).encode(),
            headers={"content-type": "application/json", **(headers or {})},
        )

    return make_response


@pytest.fixture
def mock_transport():
    """Create a generic mock transport for testing CloudantV1."""
    transport = MagicMock()
    transport.last_request_id = "test-request-id"
    transport.send.return_value = DetailedResponse(result={"ok": True}, status=200)
    return transport
