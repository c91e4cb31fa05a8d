"""Custom exceptions for the Cloudant client."""

from typing import Any

from ..request import MalformedOperationError, Violation


class CloudantError(Exception):
    """Base exception for all Cloudant client errors."""

    def __init__(self, message: str, request_id: str | None = None):
        self.message = message
        self.request_id = request_id
        super().__init__(message)

    def __str__(self) -> str:
        if self.request_id:
            return f"{self.message} (request_id: {self.request_id})"
        return self.message


class CloudantConnectionError(CloudantError):
    """Cannot reach the server."""
    pass


class CloudantAPIError(CloudantError):
    """Server error (5xx) or other API error."""

    def __init__(
        self,
        message: str,
        status_code: int,
        request_id: str | None = None,
        result: Any = None,
    ):
        super().__init__(message, request_id)
        self.status_code = status_code
        self.result = result

    @property
    def errors(self) -> list[dict]:
        """Structured errors from the response body, if any."""
        if isinstance(self.result, dict):
            return self.result.get("errors") or []
        return []

    @property
    def trace(self) -> str | None:
        """Server trace identifier, if any."""
        if isinstance(self.result, dict):
            return self.result.get("trace")
        return None

    def __str__(self) -> str:
        base = f"HTTP {self.status_code}: {self.message}"
        if self.request_id:
            return f"{base} (request_id: {self.request_id})"
        return base


class CloudantAuthError(CloudantAPIError):
    """Authentication failed (401/403)."""
    pass


class CloudantNotFoundError(CloudantAPIError):
    """Resource not found (404)."""
    pass


class CloudantValidationError(CloudantError, ValueError):
    """Operation parameters were rejected before any request was sent."""

    def __init__(self, violations: list[Violation], operation_id: str | None = None):
        self.violations = list(violations)
        self.operation_id = operation_id
        message = "; ".join(str(v) for v in self.violations)
        if operation_id:
            message = f"{operation_id}: {message}"
        super().__init__(message)


class InvalidArgumentValueError(CloudantValidationError):
    """A path argument has a value the server would misinterpret."""

    code = "ERR_INVALID_ARG_VALUE"

    def __init__(self, message: str, operation_id: str | None = None):
        self.violations = []
        self.operation_id = operation_id
        CloudantError.__init__(self, message)


def raise_for_status(
    status_code: int,
    message: str,
    request_id: str | None = None,
    result: Any = None,
) -> None:
    """Raise appropriate exception based on HTTP status code."""
    if status_code == 401 or status_code == 403:
        raise CloudantAuthError(message, status_code, request_id, result)
    elif status_code == 404:
        raise CloudantNotFoundError(message, status_code, request_id, result)
    elif status_code >= 400:
        raise CloudantAPIError(message, status_code, request_id, result)


__all__ = [
    "CloudantAPIError",
    "CloudantAuthError",
    "CloudantConnectionError",
    "CloudantError",
    "CloudantNotFoundError",
    "CloudantValidationError",
    "InvalidArgumentValueError",
    "MalformedOperationError",
    "raise_for_status",
]
