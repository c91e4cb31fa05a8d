"""Transport protocol for Cloudant API communication.

This module defines the interface that all transports must implement.
CloudantV1 builds RequestDescriptors and hands them to a transport; the
transport owns authentication, network I/O, retries and decoding.
"""

from typing import Protocol, runtime_checkable

from ..request import RequestDescriptor
from .response import DetailedResponse


@runtime_checkable
class CloudantTransport(Protocol):
    """Protocol defining the transport interface.

    Transports are responsible for:
    - Sending a RequestDescriptor to the server
    - Handling authentication, retries and backoff
    - Decoding JSON responses (or returning streams untouched)
    - Raising appropriate exceptions for errors
    """

    @property
    def last_request_id(self) -> str | None:
        """Get the request ID of the last response (for debugging).

        Returns:
            The x-request-id or x-couch-request-id of the most recent
            response, or None if no request has been made.
        """
        ...

    def send(self, request: RequestDescriptor) -> DetailedResponse:
        """Execute a request.

        Args:
            request: Fully resolved request

        Returns:
            Response envelope

        Raises:
            CloudantConnectionError: If unable to connect
            CloudantAuthError: If authentication fails (401/403)
            CloudantNotFoundError: If resource not found (404)
            CloudantAPIError: For other HTTP errors
        """
        ...

    def close(self) -> None:
        """Clean up resources (connection pools, clients, etc.).

        Should be called when the transport is no longer needed.
        Safe to call multiple times.
        """
        ...
