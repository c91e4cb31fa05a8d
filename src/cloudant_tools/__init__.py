"""Cloudant Tools - Client library and CLI for Cloudant and CouchDB."""

try:
    from importlib.metadata import version
    __version__ = version("cloudant-tools")
except Exception:
    __version__ = "0.1.0"  # Fallback for development

from cloudant_tools.changes import ChangesFollower
from cloudant_tools.client import CloudantV1
from cloudant_tools.client.config import CloudantConfig
from cloudant_tools.client.exceptions import (
    CloudantAPIError,
    CloudantAuthError,
    CloudantConnectionError,
    CloudantError,
    CloudantNotFoundError,
    CloudantValidationError,
    InvalidArgumentValueError,
)
from cloudant_tools.client.response import DetailedResponse
from cloudant_tools.pagination import Pager, PagerType, Pagination
from cloudant_tools.request import MalformedOperationError

__all__ = [
    "ChangesFollower",
    "CloudantAPIError",
    "CloudantAuthError",
    "CloudantConfig",
    "CloudantConnectionError",
    "CloudantError",
    "CloudantNotFoundError",
    "CloudantV1",
    "CloudantValidationError",
    "DetailedResponse",
    "InvalidArgumentValueError",
    "MalformedOperationError",
    "Pager",
    "PagerType",
    "Pagination",
    "__version__",
]
