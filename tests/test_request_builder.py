"""Tests for request construction."""

import io

import pytest

from cloudant_tools.request import (
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
    validate_params,
    wire_name,
)


def make_descriptor(**overrides) -> OperationDescriptor:
    """Descriptor shaped like a document read with camelCase logical names."""
    fields = dict(
        operation_id="getDocument",
        method="GET",
        path_template="/{db}/{doc_id}",
        required_params=("db", "docId"),
        valid_params=("db", "docId", "ifMatch", "attEncodingInfo", "rev", "keys"),
        param_map=(
            ParamMapping("ifMatch", "If-Match", ParamLocation.HEADER),
            ParamMapping("attEncodingInfo", "att_encoding_info", ParamLocation.QUERY),
            ParamMapping("rev", "rev", ParamLocation.QUERY),
            ParamMapping("keys", "keys", ParamLocation.QUERY),
        ),
        default_headers=(("Accept", "application/json"), ("Content-Type", None)),
    )
    fields.update(overrides)
    return OperationDescriptor(**fields)


class TestWireName:
    """Tests for the logical to wire name convention."""

    @pytest.mark.parametrize("logical,wire", [
        ("docId", "doc_id"),
        ("attEncodingInfo", "att_encoding_info"),
        ("db", "db"),
        ("doc_id", "doc_id"),
        ("startKeyDocId", "start_key_doc_id"),
    ])
    def test_wire_name(self, logical, wire):
        """Test camelCase converts and snake_case is unchanged."""
        assert wire_name(logical) == wire

    def test_path_placeholders(self):
        """Test placeholders are listed in template order."""
        assert path_placeholders("/{db}/_design/{ddoc}/_view/{view}") == ("db", "ddoc", "view")
        assert path_placeholders("/_all_dbs") == ()


class TestPathResolution:
    """Tests for path placeholder substitution."""

    def test_slash_in_id_is_encoded(self):
        """Test a slash inside an ID is not a path separator."""
        request = build_request({"db": "orders", "docId": "a/b"}, make_descriptor())
        assert request.path == "/orders/a%2Fb"

    def test_reserved_characters_encoded(self):
        """Test every reserved character is percent-encoded."""
        path, _ = resolve_path(make_descriptor(), {"db": "my db", "docId": "a?b#c&d+e"})
        assert path == "/my%20db/a%3Fb%23c%26d%2Be"

    def test_unicode_encoded(self):
        """Test non-ASCII values are UTF-8 percent-encoded."""
        path, _ = resolve_path(make_descriptor(), {"db": "db", "docId": "é"})
        assert path == "/db/%C3%A9"

    def test_non_string_values(self):
        """Test values use their string form."""
        path, values = resolve_path(make_descriptor(), {"db": "db", "docId": 42})
        assert path == "/db/42"
        assert values == {"db": "db", "doc_id": 42}

    def test_explicit_path_mapping(self):
        """Test an explicit PATH mapping is preferred over the convention."""
        descriptor = make_descriptor(
            required_params=("db", "id"),
            valid_params=("db", "id"),
            param_map=(ParamMapping("id", "doc_id", ParamLocation.PATH),),
        )
        request = build_request({"db": "orders", "id": "x"}, descriptor)
        assert request.path == "/orders/x"

    def test_unbound_placeholder_is_fatal(self):
        """Test a placeholder with no parameter raises MalformedOperationError."""
        descriptor = make_descriptor(path_template="/{db}/{missing}")
        with pytest.raises(MalformedOperationError, match="missing"):
            build_request({"db": "orders", "docId": "x"}, descriptor)

    def test_placeholder_without_value_is_fatal(self):
        """Test a bound placeholder without a bag value raises."""
        with pytest.raises(MalformedOperationError, match="doc_id"):
            build_request({"db": "orders"}, make_descriptor())

    def test_malformed_error_is_not_validation_error(self):
        """Test malformed descriptors surface as RuntimeError."""
        assert issubclass(MalformedOperationError, RuntimeError)
        assert not issubclass(MalformedOperationError, ValueError)


class TestQueryAssembly:
    """Tests for query map construction."""

    def test_defined_values_use_wire_names(self):
        """Test query keys use wire names."""
        request = build_request(
            {"db": "d", "docId": "x", "attEncodingInfo": True, "rev": "1-a"},
            make_descriptor(),
        )
        assert dict(request.query) == {"att_encoding_info": True, "rev": "1-a"}

    def test_none_values_omitted(self):
        """Test keys bound to None never reach the query."""
        request = build_request(
            {"db": "d", "docId": "x", "attEncodingInfo": None, "rev": None},
            make_descriptor(),
        )
        assert dict(request.query) == {}

    def test_falsy_values_kept(self):
        """Test False, 0 and empty string are sent."""
        request = build_request(
            {"db": "d", "docId": "x", "attEncodingInfo": False, "rev": ""},
            make_descriptor(),
        )
        assert dict(request.query) == {"att_encoding_info": False, "rev": ""}

    def test_array_values_passed_through(self):
        """Test list values are neither flattened nor stringified."""
        keys = ["a", "b"]
        request = build_request({"db": "d", "docId": "x", "keys": keys}, make_descriptor())
        assert request.query["keys"] is keys

    def test_optional_params_only_differ_by_presence(self):
        """Test all-defined and all-None bags differ only in present keys."""
        base = {"db": "d", "docId": "x"}
        optional = {"ifMatch": "1-a", "attEncodingInfo": True, "rev": "2-b", "keys": ["k"]}
        full = build_request({**base, **optional}, make_descriptor())
        empty = build_request({**base, **dict.fromkeys(optional)}, make_descriptor())

        assert set(full.query) - set(empty.query) == {"att_encoding_info", "rev", "keys"}
        assert set(empty.query) == set()
        assert set(full.headers) - set(empty.headers) == {"If-Match"}
        assert None not in full.query.values()
        assert None not in empty.headers.values()


class TestHeaderAssembly:
    """Tests for header merging."""

    def test_precedence(self):
        """Test caller headers win and computed headers are retained."""
        request = build_request(
            {"db": "d", "docId": "x", "ifMatch": "abc", "headers": {"Accept": "text/plain"}},
            make_descriptor(),
        )
        assert request.headers["Accept"] == "text/plain"
        assert request.headers["If-Match"] == "abc"

    def test_undefined_default_header_omitted(self):
        """Test a default header with value None is absent."""
        request = build_request({"db": "d", "docId": "x"}, make_descriptor())
        assert dict(request.headers) == {"Accept": "application/json"}

    def test_case_insensitive_override(self):
        """Test an override replaces a header spelled differently."""
        request = build_request(
            {"db": "d", "docId": "x", "headers": {"accept": "text/plain"}},
            make_descriptor(),
        )
        assert dict(request.headers) == {"accept": "text/plain"}

    def test_base_headers_beneath_defaults(self):
        """Test base headers are overridden by descriptor defaults."""
        request = build_request(
            {"db": "d", "docId": "x"},
            make_descriptor(),
            base_headers={"Accept": "*/*", "User-Agent": "test"},
        )
        assert request.headers["Accept"] == "application/json"
        assert request.headers["User-Agent"] == "test"

    def test_header_param_overrides_default(self):
        """Test a header parameter beats a descriptor default."""
        descriptor = make_descriptor(
            valid_params=("db", "docId", "accept"),
            param_map=(ParamMapping("accept", "Accept", ParamLocation.HEADER),),
        )
        request = build_request({"db": "d", "docId": "x", "accept": "image/png"}, descriptor)
        assert request.headers["Accept"] == "image/png"

    def test_merge_headers_skips_none(self):
        """Test None never removes an earlier value."""
        merged = merge_headers({"A": "1"}, None, {"a": None, "B": "2"}, {"b": "3"})
        assert merged == {"A": "1", "b": "3"}

    def test_merge_headers_rejects_non_mapping(self):
        """Test a list of pairs is not accepted as a header layer."""
        with pytest.raises(TypeError, match="Header layers must be mappings, not list"):
            merge_headers({"A": "1"}, [("B", "2")])


class TestBodyAssembly:
    """Tests for request bodies."""

    def test_body_fields(self):
        """Test body is built from BODY mappings without None values."""
        descriptor = make_descriptor(
            operation_id="postFind",
            method="POST",
            path_template="/{db}/_find",
            required_params=("db", "selector"),
            valid_params=("db", "selector", "limit", "useIndex"),
            param_map=(
                ParamMapping("selector", "selector", ParamLocation.BODY),
                ParamMapping("limit", "limit", ParamLocation.BODY),
                ParamMapping("useIndex", "use_index", ParamLocation.BODY),
            ),
        )
        request = build_request(
            {"db": "d", "selector": {"type": "order"}, "limit": 0, "useIndex": None},
            descriptor,
        )
        assert request.body == {"selector": {"type": "order"}, "limit": 0}

    def test_no_body(self):
        """Test operations without body fields have no body."""
        assert build_request({"db": "d", "docId": "x"}, make_descriptor()).body is None

    @pytest.mark.parametrize("payload", [
        {"_id": "x", "nested": {"a": [1, 2]}},
        b"\x00\x01binary",
    ])
    def test_body_param_passed_through(self, payload):
        """Test the whole-body parameter is used as-is."""
        descriptor = make_descriptor(
            method="PUT",
            valid_params=("db", "docId", "document"),
            param_map=(),
            body_param="document",
        )
        request = build_request({"db": "d", "docId": "x", "document": payload}, descriptor)
        assert request.body is payload

    def test_stream_body_not_read(self):
        """Test a stream body is neither read nor copied."""
        stream = io.BytesIO(b"data")
        descriptor = make_descriptor(
            method="PUT",
            valid_params=("db", "docId", "attachment"),
            param_map=(),
            body_param="attachment",
        )
        request = build_request({"db": "d", "docId": "x", "attachment": stream}, descriptor)
        assert request.body is stream
        assert stream.tell() == 0


class TestRequestDescriptor:
    """Tests for the built request object."""

    def test_stream_flag_copied(self):
        """Test the stream flag follows the descriptor."""
        bag = {"db": "d", "docId": "x"}
        assert build_request(bag, make_descriptor()).stream is False
        assert build_request(bag, make_descriptor(response_is_stream=True)).stream is True

    def test_idempotent(self):
        """Test building twice gives equal requests."""
        bag = {"db": "d", "docId": "a/b", "rev": "1-a", "ifMatch": "x", "headers": {"X-A": "1"}}
        assert build_request(bag, make_descriptor()) == build_request(bag, make_descriptor())

    def test_immutable(self):
        """Test request maps cannot be modified."""
        request = build_request({"db": "d", "docId": "x", "rev": "1"}, make_descriptor())
        assert isinstance(request, RequestDescriptor)
        with pytest.raises(TypeError):
            request.query["rev"] = "2"
        with pytest.raises(TypeError):
            request.headers["Accept"] = "text/plain"
        with pytest.raises(AttributeError):
            request.path = "/other"

    def test_records_operation_and_path_params(self):
        """Test the operation ID and raw path values are kept."""
        request = build_request({"db": "d", "docId": "a/b"}, make_descriptor())
        assert request.operation_id == "getDocument"
        assert dict(request.path_params) == {"db": "d", "doc_id": "a/b"}

    def test_bag_not_modified(self):
        """Test building does not change the caller's bag."""
        headers = {"Accept": "text/plain"}
        bag = {"db": "d", "docId": "x", "headers": headers}
        build_request(bag, make_descriptor())
        assert bag == {"db": "d", "docId": "x", "headers": {"Accept": "text/plain"}}

    def test_validate_then_build(self):
        """Test a bag that passes validation always builds."""
        descriptor = make_descriptor()
        bag = {"db": "orders", "docId": "a/b"}
        assert validate_params(bag, descriptor.required_params, descriptor.valid_params) is None
        assert build_request(bag, descriptor).path == "/orders/a%2Fb"


class TestCheckDescriptor:
    """Tests for descriptor consistency checks."""

    def test_consistent_descriptor(self):
        """Test a well-formed descriptor has no problems."""
        assert check_descriptor(make_descriptor()) == []

    def test_required_not_valid(self):
        """Test required params must be valid params."""
        problems = check_descriptor(make_descriptor(required_params=("db", "docId", "extra")))
        assert any("extra" in p for p in problems)

    def test_mapped_not_valid(self):
        """Test mapped params must be valid params."""
        descriptor = make_descriptor(
            param_map=(ParamMapping("ghost", "ghost", ParamLocation.QUERY),)
        )
        assert any("ghost" in p for p in check_descriptor(descriptor))

    def test_unbound_placeholder(self):
        """Test placeholders must have a parameter."""
        descriptor = make_descriptor(path_template="/{db}/{other}")
        assert any("{other}" in p for p in check_descriptor(descriptor))

    def test_optional_path_param(self):
        """Test path parameters must be required."""
        descriptor = make_descriptor(required_params=("db",))
        assert any("docId" in p for p in check_descriptor(descriptor))

    def test_bad_method(self):
        """Test only supported HTTP methods are accepted."""
        assert check_descriptor(make_descriptor(method="PATCH")) == ["unsupported method PATCH"]
