"""HTTP transport with authentication and retry/backoff.

This module sends RequestDescriptors to a Cloudant or CouchDB server. It
encodes request bodies, decodes JSON responses, normalises error bodies
and retries transient failures.
"""

import gzip
import json
import logging
from collections.abc import Mapping
from typing import Any

import httpx

from ..request import RequestDescriptor
from .auth import create_auth
from .config import CloudantConfig
from .exceptions import CloudantConnectionError, raise_for_status
from .response import DetailedResponse
from .retry import get_retry_decorator, is_retryable_api_error, is_retryable_connection_error

logger = logging.getLogger("cloudant-tools")

REQUEST_ID_HEADERS = ("x-request-id", "x-couch-request-id")


def _is_retryable_http(exception: BaseException) -> bool:
    """Check if exception is retryable for HTTP transport.

    Retryable conditions:
    - Raw httpx connection/timeout errors
    - Wrapped CloudantConnectionError
    - CloudantAPIError with 429 or 5xx status
    """
    if isinstance(exception, (httpx.ConnectError, httpx.TimeoutException)):
        return True
    if is_retryable_connection_error(exception):
        return True
    if is_retryable_api_error(exception):
        return True
    return False


def _is_one_shot(body: Any) -> bool:
    """A body that can only be read once (file object or iterator)."""
    if body is None or isinstance(body, (bytes, bytearray, str, dict, list)):
        return False
    return hasattr(body, "read") or hasattr(body, "__next__")


def _query_params(query: Mapping[str, Any]) -> dict[str, Any] | None:
    """Query values for httpx; list values are sent comma-delimited."""
    params = {}
    for name, value in query.items():
        if isinstance(value, (list, tuple)):
            value = ",".join(str(item) for item in value)
        params[name] = value
    return params or None


def _request_id(headers: Mapping[str, str]) -> str | None:
    for name in REQUEST_ID_HEADERS:
        if headers.get(name):
            return headers[name]
    return None


def augment_error_response(data: Any, headers: Mapping[str, str]) -> Any:
    """Normalise a JSON error body.

    CouchDB reports errors as ``{"error": ..., "reason": ...}``. When the
    body has no ``errors`` list one is derived from that pair, and when a
    request ID header is present it is recorded as ``trace``. Bodies that
    already carry a ``trace`` are returned untouched.
    """
    if not isinstance(data, dict) or "trace" in data:
        return data
    if "errors" not in data and data.get("error"):
        message = data["error"]
        if data.get("reason"):
            message += f": {data['reason']}"
        data["errors"] = [{"code": data["error"], "message": message}]
    if "errors" in data:
        trace = _request_id(headers)
        if trace:
            data["trace"] = trace
    return data


def _error_message(data: Any, response: httpx.Response) -> str:
    if isinstance(data, dict):
        errors = data.get("errors")
        if errors and isinstance(errors, list) and isinstance(errors[0], dict):
            return errors[0].get("message") or str(errors[0])
        return data.get("error") or data.get("message") or str(data)
    if isinstance(data, str) and data:
        return data
    return f"HTTP {response.status_code}"


def _is_json(response: httpx.Response) -> bool:
    return response.headers.get("content-type", "").startswith("application/json")


class HTTPTransport:
    """HTTP transport with authentication and retry/backoff.

    Implements the CloudantTransport protocol. Handles basic, IAM, session
    and bearer token authentication and automatic retry with exponential
    backoff for transient failures.

    Usage:
        transport = HTTPTransport(config)
        response = transport.send(request)
        transport.close()

    Or as context manager:
        with HTTPTransport(config) as transport:
            response = transport.send(request)
    """

    def __init__(self, config: CloudantConfig | None = None, http_transport: httpx.BaseTransport | None = None):
        """Initialize HTTP transport.

        Args:
            config: Cloudant configuration. If None, loads from environment.
            http_transport: Optional httpx transport (e.g. httpx.MockTransport
                for testing).
        """
        self.config = config or CloudantConfig()
        self._http_transport = http_transport
        self._client: httpx.Client | None = None
        self._last_request_id: str | None = None
        self._send_with_retry = get_retry_decorator(
            _is_retryable_http, self.config.max_retries
        )(self._send_once)

    @property
    def client(self) -> httpx.Client:
        """Lazy-initialize HTTP client with the configured authentication."""
        if self._client is None:
            self._client = httpx.Client(
                base_url=self.config.url,
                timeout=self.config.timeout,
                auth=create_auth(self.config),
                verify=not self.config.disable_ssl_verification,
                transport=self._http_transport,
            )
        return self._client

    @property
    def last_request_id(self) -> str | None:
        """Get request ID of the last response."""
        return self._last_request_id

    def __enter__(self) -> "HTTPTransport":
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit - close client."""
        self.close()

    def close(self) -> None:
        """Close HTTP client and release resources."""
        if self._client:
            self._client.close()
            self._client = None

    def send(self, request: RequestDescriptor) -> DetailedResponse:
        """Execute a request, retrying transient failures.

        Requests whose body is a file object or iterator are sent once,
        since the body cannot be replayed.
        """
        logger.debug(f"{request.method} {request.path} ({request.operation_id})")
        if _is_one_shot(request.body):
            return self._send_once(request)
        return self._send_with_retry(request)

    def _build_http_request(self, request: RequestDescriptor) -> httpx.Request:
        """Encode a RequestDescriptor as an httpx request."""
        headers = {name: str(value) for name, value in request.headers.items()}
        content: Any = None
        body = request.body

        if body is None:
            pass
        elif isinstance(body, (bytes, bytearray, str)) or _is_one_shot(body):
            content = body
        else:
            content = json.dumps(body, separators=(",", ":")).encode("utf-8")
            if self.config.enable_gzip_compression:
                content = gzip.compress(content)
                headers["Content-Encoding"] = "gzip"

        return self.client.build_request(
            request.method,
            request.path,
            params=_query_params(request.query),
            headers=headers,
            content=content,
        )

    def _send_once(self, request: RequestDescriptor) -> DetailedResponse:
        """Send a request without retrying."""
        http_request = self._build_http_request(request)
        try:
            response = self.client.send(http_request, stream=request.stream)
        except httpx.ConnectError as e:
            raise CloudantConnectionError(f"Cannot connect to {self.config.url}: {e}")
        except httpx.TimeoutException as e:
            raise CloudantConnectionError(f"Request timeout to {self.config.url}: {e}")
        return self._handle_response(request, response)

    def _handle_response(self, request: RequestDescriptor, response: httpx.Response) -> DetailedResponse:
        """Handle response and raise exceptions for errors.

        Raises:
            CloudantAuthError: For 401/403 responses
            CloudantNotFoundError: For 404 responses
            CloudantAPIError: For other 4xx/5xx responses
        """
        self._last_request_id = _request_id(response.headers)

        if response.status_code >= 400:
            if request.stream:
                # Error bodies of streaming requests are read like any other
                response.read()
                response.close()
            data: Any = response.text
            if response.content and _is_json(response):
                try:
                    data = response.json()
                except ValueError:
                    pass
            data = augment_error_response(data, response.headers)
            raise_for_status(
                response.status_code,
                _error_message(data, response),
                self._last_request_id,
                data,
            )

        if request.stream:
            result: Any = response
        elif request.method == "HEAD" or not response.content:
            result = None
        elif _is_json(response):
            result = response.json()
        elif response.headers.get("content-type", "").startswith("text/"):
            result = response.text
        else:
            result = response.content

        return DetailedResponse(
            result=result,
            status=response.status_code,
            status_text=response.reason_phrase,
            headers=response.headers,
        )
