"""Declarative request construction.

An OperationDescriptor states where each logical parameter goes on the
wire. build_request() turns an already-validated parameter bag into an
immutable RequestDescriptor without performing any I/O.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from functools import lru_cache
from types import MappingProxyType
from typing import Any
from urllib.parse import quote

_PLACEHOLDER = re.compile(r"\{([^{}]+)\}")
_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])([A-Z])")

HTTP_METHODS = frozenset({"GET", "POST", "PUT", "DELETE", "HEAD"})


class MalformedOperationError(RuntimeError):
    """An operation descriptor is internally inconsistent.

    Raised when a path placeholder cannot be filled. This is a defect in
    the operation catalog, not in caller input.
    """


class ParamLocation(str, Enum):
    """Where a logical parameter is placed in the HTTP request."""

    PATH = "path"
    QUERY = "query"
    HEADER = "header"
    BODY = "body"


def wire_name(logical: str) -> str:
    """Convert a camelCase logical name to its snake_case wire name.

    Names that are already snake_case are returned unchanged.

    >>> wire_name("attEncodingInfo")
    'att_encoding_info'
    """
    return _CAMEL_BOUNDARY.sub(r"_\1", logical).lower()


def path_placeholders(template: str) -> tuple[str, ...]:
    """Placeholder names in a path template, in order."""
    return tuple(_PLACEHOLDER.findall(template))


@dataclass(frozen=True)
class ParamMapping:
    """Wire placement of one logical parameter."""

    logical: str
    wire: str
    location: ParamLocation


@dataclass(frozen=True)
class OperationDescriptor:
    """Static description of one REST endpoint."""

    operation_id: str
    method: str
    path_template: str
    required_params: tuple[str, ...] = ()
    valid_params: tuple[str, ...] = ()
    param_map: tuple[ParamMapping, ...] = ()
    body_param: str | None = None
    default_headers: tuple[tuple[str, str | None], ...] = ()
    response_is_stream: bool = False

    @property
    def placeholders(self) -> tuple[str, ...]:
        """Placeholder names in the path template, in order."""
        return path_placeholders(self.path_template)

    def mappings(self, location: ParamLocation) -> tuple[ParamMapping, ...]:
        """Parameter mappings destined for one location."""
        return tuple(m for m in self.param_map if m.location is location)


@dataclass(frozen=True)
class RequestDescriptor:
    """Fully resolved HTTP request, ready to hand to a transport."""

    method: str
    path: str
    query: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    headers: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    body: Any = None
    stream: bool = False
    operation_id: str = ""
    path_params: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))


@lru_cache(maxsize=None)
def _path_bindings(descriptor: OperationDescriptor) -> dict[str, str]:
    """Map each path placeholder to the logical name that fills it."""
    bindings: dict[str, str] = {}
    explicit = {m.wire: m.logical for m in descriptor.mappings(ParamLocation.PATH)}
    for placeholder in descriptor.placeholders:
        if placeholder in explicit:
            bindings[placeholder] = explicit[placeholder]
            continue
        for logical in descriptor.valid_params:
            if wire_name(logical) == placeholder:
                bindings[placeholder] = logical
                break
    return bindings


def resolve_path(descriptor: OperationDescriptor, bag: Mapping[str, Any]) -> tuple[str, dict[str, Any]]:
    """Substitute path placeholders with URL-encoded parameter values.

    Every character outside the unreserved set is percent-encoded, so a
    slash inside a document ID never acts as a path separator.

    Returns:
        Tuple of (resolved path, raw values keyed by placeholder)

    Raises:
        MalformedOperationError: If a placeholder has no bag entry
    """
    bindings = _path_bindings(descriptor)
    values: dict[str, Any] = {}

    def substitute(match: re.Match) -> str:
        placeholder = match.group(1)
        logical = bindings.get(placeholder)
        if logical is None:
            raise MalformedOperationError(
                f"{descriptor.operation_id}: path placeholder '{{{placeholder}}}' "
                "has no corresponding parameter"
            )
        value = bag.get(logical)
        if value is None:
            raise MalformedOperationError(
                f"{descriptor.operation_id}: no value for path placeholder "
                f"'{{{placeholder}}}' (parameter '{logical}')"
            )
        values[placeholder] = value
        return quote(str(value), safe="")

    return _PLACEHOLDER.sub(substitute, descriptor.path_template), values


def merge_headers(*layers: Mapping[str, Any] | None) -> dict[str, Any]:
    """Merge header maps, later layers winning.

    Header names compare case-insensitively; the winning layer's spelling
    is kept. Entries whose value is None are skipped, so a None never
    removes or replaces an earlier value.

    Raises:
        TypeError: If a layer is not a mapping
    """
    merged: dict[str, Any] = {}
    for layer in layers:
        if layer is None:
            continue
        if not isinstance(layer, Mapping):
            raise TypeError(f"Header layers must be mappings, not {type(layer).__name__}")
        for name, value in layer.items():
            if value is None:
                continue
            for existing in [k for k in merged if k.lower() == name.lower()]:
                del merged[existing]
            merged[name] = value
    return merged


def _defined(bag: Mapping[str, Any], mappings: tuple[ParamMapping, ...]) -> dict[str, Any]:
    return {m.wire: bag[m.logical] for m in mappings if bag.get(m.logical) is not None}


def build_request(
    bag: Mapping[str, Any] | None,
    descriptor: OperationDescriptor,
    base_headers: Mapping[str, Any] | None = None,
) -> RequestDescriptor:
    """Build a request from a validated parameter bag.

    Args:
        bag: Parameters that already passed validation for this descriptor
        descriptor: The operation to build a request for
        base_headers: Headers layered beneath the descriptor defaults

    Returns:
        An immutable RequestDescriptor

    Raises:
        MalformedOperationError: If the descriptor's path cannot be resolved
    """
    bag = bag or {}
    path, path_params = resolve_path(descriptor, bag)

    headers = merge_headers(
        base_headers,
        dict(descriptor.default_headers),
        _defined(bag, descriptor.mappings(ParamLocation.HEADER)),
        bag.get("headers"),
    )

    body_fields = descriptor.mappings(ParamLocation.BODY)
    if descriptor.body_param is not None:
        # Passed through untouched: may be a dict, bytes or a readable stream
        body = bag.get(descriptor.body_param)
    elif body_fields:
        body = _defined(bag, body_fields)
    else:
        body = None

    return RequestDescriptor(
        method=descriptor.method,
        path=path,
        query=MappingProxyType(_defined(bag, descriptor.mappings(ParamLocation.QUERY))),
        headers=MappingProxyType(headers),
        body=body,
        stream=descriptor.response_is_stream,
        operation_id=descriptor.operation_id,
        path_params=MappingProxyType(path_params),
    )


def check_descriptor(descriptor: OperationDescriptor) -> list[str]:
    """Report authoring mistakes in a descriptor.

    Returns:
        Problem descriptions; empty when the descriptor is consistent.
    """
    problems = []
    valid = set(descriptor.valid_params)
    if descriptor.method not in HTTP_METHODS:
        problems.append(f"unsupported method {descriptor.method}")
    for name in descriptor.required_params:
        if name not in valid:
            problems.append(f"required parameter '{name}' is not a valid parameter")
    for mapping in descriptor.param_map:
        if mapping.logical not in valid:
            problems.append(f"mapped parameter '{mapping.logical}' is not a valid parameter")
    if descriptor.body_param is not None and descriptor.body_param not in valid:
        problems.append(f"body parameter '{descriptor.body_param}' is not a valid parameter")
    bindings = _path_bindings(descriptor)
    for placeholder in descriptor.placeholders:
        if placeholder not in bindings:
            problems.append(f"placeholder '{{{placeholder}}}' has no parameter")
        elif bindings[placeholder] not in descriptor.required_params:
            problems.append(f"path parameter '{bindings[placeholder]}' is not required")
    return problems
