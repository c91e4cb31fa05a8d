"""Tests for Cloudant client configuration and exceptions."""

import pytest

from cloudant_tools.client.common import get_sdk_headers
from cloudant_tools.client.config import CloudantConfig
from cloudant_tools.client.exceptions import (
    CloudantAPIError,
    CloudantAuthError,
    CloudantError,
    CloudantNotFoundError,
    CloudantValidationError,
    InvalidArgumentValueError,
    raise_for_status,
)
from cloudant_tools.request import Violation, ViolationKind


class TestCloudantConfig:
    """Tests for CloudantConfig."""

    def test_default_values(self):
        """Test default configuration values."""
        config = CloudantConfig()
        assert config.url == "http://localhost:5984"
        assert config.timeout == 150.0
        assert config.max_retries == 2
        assert config.log_level == "INFO"
        assert config.enable_gzip_compression is False

    def test_url_validation(self):
        """Test URL must start with http."""
        with pytest.raises(ValueError, match="URL must start with http"):
            CloudantConfig(url="invalid-url")

    def test_url_strips_trailing_slash(self):
        """Test trailing slash is stripped from URL."""
        config = CloudantConfig(url="http://localhost:5984/")
        assert config.url == "http://localhost:5984"

    def test_url_from_environment(self, monkeypatch):
        """Test CLOUDANT_URL is read from the environment."""
        monkeypatch.setenv("CLOUDANT_URL", "https://example.cloudant.com")
        assert CloudantConfig().url == "https://example.cloudant.com"

    def test_invalid_auth_type(self):
        """Test unknown auth types are rejected."""
        with pytest.raises(ValueError):
            CloudantConfig(auth_type="kerberos")

    def test_auth_type_normalised(self):
        """Test auth type is lowercased."""
        assert CloudantConfig(auth_type="COUCHDB_SESSION").auth_type == "couchdb_session"

    def test_log_level_normalised(self):
        """Test log level is uppercased."""
        assert CloudantConfig(log_level="debug").log_level == "DEBUG"

    @pytest.mark.parametrize("kwargs,expected", [
        ({}, "noauth"),
        ({"apikey": "key"}, "iam"),
        ({"username": "u", "password": "p"}, "basic"),
        ({"bearer_token": "t"}, "bearertoken"),
        ({"apikey": "key", "username": "u", "password": "p"}, "iam"),
        ({"auth_type": "couchdb_session", "username": "u", "password": "p"}, "couchdb_session"),
    ])
    def test_resolved_auth_type(self, kwargs, expected):
        """Test authentication auto-selection."""
        assert CloudantConfig(**kwargs).resolved_auth_type == expected

    @pytest.mark.parametrize("kwargs", [
        {"auth_type": "basic"},
        {"auth_type": "couchdb_session", "username": "u"},
        {"auth_type": "iam"},
        {"auth_type": "bearertoken"},
    ])
    def test_validate_config_missing_credentials(self, kwargs):
        """Test missing credentials are reported."""
        with pytest.raises(ValueError, match="requires"):
            CloudantConfig(**kwargs).validate_config()

    def test_validate_config_noauth(self):
        """Test no credentials are needed without authentication."""
        CloudantConfig().validate_config()


class TestExceptions:
    """Tests for exception hierarchy."""

    def test_cloudant_error_base(self):
        """Test base CloudantError."""
        error = CloudantError("Test error")
        assert str(error) == "Test error"
        assert error.request_id is None

    def test_cloudant_error_with_request_id(self):
        """Test CloudantError with request ID."""
        error = CloudantError("Test error", request_id="req-123")
        assert "req-123" in str(error)

    def test_raise_for_status_auth(self):
        """Test 401/403 raises CloudantAuthError."""
        with pytest.raises(CloudantAuthError):
            raise_for_status(401, "Unauthorized")
        with pytest.raises(CloudantAuthError):
            raise_for_status(403, "Forbidden")

    def test_raise_for_status_not_found(self):
        """Test 404 raises CloudantNotFoundError."""
        with pytest.raises(CloudantNotFoundError) as exc_info:
            raise_for_status(404, "Not found")
        assert exc_info.value.status_code == 404

    def test_raise_for_status_server_error(self):
        """Test 5xx raises CloudantAPIError."""
        with pytest.raises(CloudantAPIError) as exc_info:
            raise_for_status(500, "Server error")
        assert exc_info.value.status_code == 500

    def test_raise_for_status_success(self):
        """Test 2xx and 3xx do not raise."""
        raise_for_status(200, "OK")
        raise_for_status(304, "Not Modified")

    def test_api_error_errors_and_trace(self):
        """Test structured error details come from the result."""
        result = {"errors": [{"code": "conflict", "message": "conflict"}], "trace": "abc"}
        error = CloudantAPIError("conflict", 409, result=result)
        assert error.errors == result["errors"]
        assert error.trace == "abc"
        assert str(error) == "HTTP 409: conflict"

    def test_api_error_without_result(self):
        """Test error details default to empty."""
        error = CloudantAPIError("boom", 500)
        assert error.errors == []
        assert error.trace is None

    def test_validation_error_message(self):
        """Test violations are joined into one message."""
        error = CloudantValidationError(
            [
                Violation(ViolationKind.MISSING, "selector"),
                Violation(ViolationKind.UNRECOGNIZED, "bogus"),
            ],
            "postFind",
        )
        assert str(error) == (
            "postFind: Missing required parameter: selector; "
            "Parameter 'bogus' is not recognized for this operation"
        )
        assert isinstance(error, ValueError)
        assert isinstance(error, CloudantError)

    def test_invalid_argument_value_error(self):
        """Test argument value errors carry their code."""
        error = InvalidArgumentValueError("Document ID _x starts with the invalid _ character.")
        assert error.code == "ERR_INVALID_ARG_VALUE"
        assert error.violations == []
        assert isinstance(error, CloudantValidationError)


class TestSdkHeaders:
    """Tests for SDK identification headers."""

    def test_analytics_header(self):
        """Test the analytics header names the operation."""
        headers = get_sdk_headers("getDocument")
        assert headers["X-IBMCloud-SDK-Analytics"] == (
            "service_name=cloudant;service_version=v1;operation_id=getDocument"
        )

    def test_user_agent(self):
        """Test the user agent names the SDK and Python."""
        user_agent = get_sdk_headers("getDocument")["User-Agent"]
        assert user_agent.startswith("cloudant-tools/")
        assert "lang=Python" in user_agent
