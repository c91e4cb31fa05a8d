"""Request construction and parameter validation.

Pure functions shared by every operation: validate a parameter bag, then
build the request it describes. Nothing here performs I/O.
"""

from .builder import (
    MalformedOperationError,
    OperationDescriptor,
    ParamLocation,
    ParamMapping,
    RequestDescriptor,
    build_request,
    check_descriptor,
    merge_headers,
    path_placeholders,
    resolve_path,
    wire_name,
)
from .validation import RESERVED_PARAMS, Violation, ViolationKind, validate_params

__all__ = [
    "MalformedOperationError",
    "OperationDescriptor",
    "ParamLocation",
    "ParamMapping",
    "RESERVED_PARAMS",
    "RequestDescriptor",
    "Violation",
    "ViolationKind",
    "build_request",
    "check_descriptor",
    "merge_headers",
    "path_placeholders",
    "resolve_path",
    "validate_params",
    "wire_name",
]
