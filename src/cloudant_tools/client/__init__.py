"""Cloudant API client.

This package provides the client library for communicating with Cloudant
and CouchDB servers over HTTP.

Authentication is selected from configuration:

IAM:
    CLOUDANT_APIKEY exchanged for bearer tokens at IBM Cloud IAM.

Basic / CouchDB session:
    CLOUDANT_USERNAME and CLOUDANT_PASSWORD, sent on every request or
    exchanged for an AuthSession cookie (CLOUDANT_AUTH_TYPE=couchdb_session).

Usage:
    from cloudant_tools.client import CloudantV1, CloudantConfig

    # Auto-detect authentication from environment
    service = CloudantV1()
    response = service.get_server_information()

    # Explicit configuration
    config = CloudantConfig(
        url="http://localhost:5984",
        auth_type="couchdb_session",
        username="admin",
        password="secret",
    )
    service = CloudantV1(config)
"""

from .api import CloudantV1
from .auth import CouchdbSessionAuth, IAMAuth, create_auth
from .config import CloudantConfig
from .exceptions import (
    CloudantAPIError,
    CloudantAuthError,
    CloudantConnectionError,
    CloudantError,
    CloudantNotFoundError,
    CloudantValidationError,
    InvalidArgumentValueError,
)
from .factory import create_transport
from .http import HTTPTransport
from .response import DetailedResponse
from .transport import CloudantTransport

__all__ = [
    # Main API
    "CloudantV1",
    "CloudantConfig",
    "DetailedResponse",
    # Transport protocol and factory
    "CloudantTransport",
    "HTTPTransport",
    "create_transport",
    # Authentication
    "CouchdbSessionAuth",
    "IAMAuth",
    "create_auth",
    # Exceptions
    "CloudantAPIError",
    "CloudantAuthError",
    "CloudantConnectionError",
    "CloudantError",
    "CloudantNotFoundError",
    "CloudantValidationError",
    "InvalidArgumentValueError",
]
