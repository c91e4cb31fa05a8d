"""High-level API for Cloudant operations.

Every public method of CloudantV1 corresponds to one REST endpoint. A
call validates its keyword arguments against the operation's descriptor,
builds the request and hands it to the transport. Invalid arguments are
rejected before anything is sent.
"""

import logging
from collections.abc import Mapping
from typing import Any

from .. import operations as ops
from ..request import OperationDescriptor, RequestDescriptor, build_request, validate_params
from .common import get_sdk_headers
from .config import CloudantConfig
from .exceptions import CloudantValidationError, InvalidArgumentValueError
from .factory import create_transport
from .response import DetailedResponse
from .transport import CloudantTransport

logger = logging.getLogger("cloudant-tools")

DOCUMENT_OPERATIONS = frozenset({
    "deleteDocument",
    "getDocument",
    "headDocument",
    "putDocument",
    "deleteAttachment",
    "getAttachment",
    "headAttachment",
    "putAttachment",
})

ATTACHMENT_OPERATIONS = frozenset({
    "deleteAttachment",
    "getAttachment",
    "headAttachment",
    "putAttachment",
})

# (path segment, name used in the error message, operations the rule applies to)
ARGUMENT_RULES = (
    ("doc_id", "Document ID", DOCUMENT_OPERATIONS),
    ("attachment_name", "Attachment name", ATTACHMENT_OPERATIONS),
)


def check_argument_values(request: RequestDescriptor) -> None:
    """Reject path values the server would route elsewhere.

    A document ID or attachment name starting with ``_`` would address a
    reserved endpoint (``_design``, ``_all_docs``...) instead of a document.

    Raises:
        InvalidArgumentValueError: If a rule is violated
    """
    for segment, label, operation_ids in ARGUMENT_RULES:
        if request.operation_id not in operation_ids:
            continue
        value = request.path_params.get(segment)
        if isinstance(value, str) and value.startswith("_"):
            raise InvalidArgumentValueError(
                f"{label} {value} starts with the invalid _ character.",
                request.operation_id,
            )


class CloudantV1:
    """Client for the Cloudant / CouchDB v1 HTTP API.

    Usage:
        # Auto-configure from environment
        service = CloudantV1()
        response = service.get_document(db="orders", doc_id="order-1")
        print(response.result)

        # Explicit configuration
        config = CloudantConfig(url="https://host.example", apikey="...")
        service = CloudantV1(config)

        # Inject custom transport (for testing)
        service = CloudantV1(transport=mock_transport)
    """

    DEFAULT_SERVICE_NAME = "cloudant"

    def __init__(
        self,
        config: CloudantConfig | None = None,
        transport: CloudantTransport | None = None,
    ):
        """Initialize the client.

        Args:
            config: Configuration (loads from environment if None)
            transport: Optional pre-configured transport (for testing/advanced use).
                If provided, config is still stored but not used to create transport.
        """
        self.config = config or CloudantConfig()
        self._client = transport or create_transport(self.config)

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
        return False

    @property
    def last_request_id(self) -> str | None:
        """Get request ID of the last API call."""
        return self._client.last_request_id

    def close(self) -> None:
        """Close the client and release resources."""
        self._client.close()

    def prepare(self, descriptor: OperationDescriptor, params: dict[str, Any]) -> RequestDescriptor:
        """Validate parameters and build the request for an operation.

        Args:
            descriptor: Operation to call
            params: Caller-supplied parameters

        Returns:
            The request that would be sent

        Raises:
            CloudantValidationError: If parameters are missing or unrecognized,
                or ``headers`` is not a mapping
            InvalidArgumentValueError: If a document ID or attachment name
                starts with ``_``
        """
        violations = validate_params(params, descriptor.required_params, descriptor.valid_params)
        if violations:
            raise CloudantValidationError(violations, descriptor.operation_id)
        headers = (params or {}).get("headers")
        if headers is not None and not isinstance(headers, Mapping):
            raise InvalidArgumentValueError(
                f"headers must be a mapping of header names to values, not {type(headers).__name__}.",
                descriptor.operation_id,
            )
        request = build_request(
            params,
            descriptor,
            base_headers=get_sdk_headers(descriptor.operation_id, self.DEFAULT_SERVICE_NAME),
        )
        check_argument_values(request)
        return request

    def _invoke(self, descriptor: OperationDescriptor, params: dict[str, Any]) -> DetailedResponse:
        request = self.prepare(descriptor, params)
        return self._client.send(request)

    # Server

    def get_server_information(self, **params) -> DetailedResponse:
        """Retrieve server instance information."""
        return self._invoke(ops.GET_SERVER_INFORMATION, params)

    def get_membership_information(self, **params) -> DetailedResponse:
        """Retrieve cluster membership information."""
        return self._invoke(ops.GET_MEMBERSHIP_INFORMATION, params)

    def get_uuids(self, **params) -> DetailedResponse:
        """Retrieve one or more UUIDs."""
        return self._invoke(ops.GET_UUIDS, params)

    def get_capacity_throughput_information(self, **params) -> DetailedResponse:
        """Retrieve provisioned throughput capacity information."""
        return self._invoke(ops.GET_CAPACITY_THROUGHPUT_INFORMATION, params)

    def put_capacity_throughput_configuration(self, **params) -> DetailedResponse:
        """Update the target provisioned throughput capacity."""
        return self._invoke(ops.PUT_CAPACITY_THROUGHPUT_CONFIGURATION, params)

    def get_current_throughput_information(self, **params) -> DetailedResponse:
        """Retrieve the current provisioned throughput capacity consumption."""
        return self._invoke(ops.GET_CURRENT_THROUGHPUT_INFORMATION, params)

    def get_active_tasks(self, **params) -> DetailedResponse:
        """Retrieve list of running tasks."""
        return self._invoke(ops.GET_ACTIVE_TASKS, params)

    def get_up_information(self, **params) -> DetailedResponse:
        """Retrieve information about whether the server is up."""
        return self._invoke(ops.GET_UP_INFORMATION, params)

    def head_up_information(self, **params) -> DetailedResponse:
        """Retrieve HTTP headers about whether the server is up."""
        return self._invoke(ops.HEAD_UP_INFORMATION, params)

    def get_activity_tracker_events(self, **params) -> DetailedResponse:
        """Get Activity Tracker events configuration."""
        return self._invoke(ops.GET_ACTIVITY_TRACKER_EVENTS, params)

    def post_activity_tracker_events(self, **params) -> DetailedResponse:
        """Modify Activity Tracker events configuration."""
        return self._invoke(ops.POST_ACTIVITY_TRACKER_EVENTS, params)

    # Changes

    def get_db_updates(self, **params) -> DetailedResponse:
        """Retrieve change events for all databases."""
        return self._invoke(ops.GET_DB_UPDATES, params)

    def post_changes(self, **params) -> DetailedResponse:
        """Query the database document changes feed."""
        return self._invoke(ops.POST_CHANGES, params)

    def post_changes_as_stream(self, **params) -> DetailedResponse:
        """Query the database document changes feed as stream."""
        return self._invoke(ops.POST_CHANGES_AS_STREAM, params)

    # Databases

    def head_database(self, **params) -> DetailedResponse:
        """Retrieve the HTTP headers for a database."""
        return self._invoke(ops.HEAD_DATABASE, params)

    def get_all_dbs(self, **params) -> DetailedResponse:
        """Query a list of all database names in the instance."""
        return self._invoke(ops.GET_ALL_DBS, params)

    def post_dbs_info(self, **params) -> DetailedResponse:
        """Query information about multiple databases."""
        return self._invoke(ops.POST_DBS_INFO, params)

    def delete_database(self, **params) -> DetailedResponse:
        """Delete a database."""
        return self._invoke(ops.DELETE_DATABASE, params)

    def get_database_information(self, **params) -> DetailedResponse:
        """Retrieve information about a database."""
        return self._invoke(ops.GET_DATABASE_INFORMATION, params)

    def put_database(self, **params) -> DetailedResponse:
        """Create a database."""
        return self._invoke(ops.PUT_DATABASE, params)

    # Documents

    def head_document(self, **params) -> DetailedResponse:
        """Retrieve the HTTP headers for the document."""
        return self._invoke(ops.HEAD_DOCUMENT, params)

    def post_document(self, **params) -> DetailedResponse:
        """Create or modify a document in a database."""
        return self._invoke(ops.POST_DOCUMENT, params)

    def post_all_docs(self, **params) -> DetailedResponse:
        """Query a list of all documents in a database."""
        return self._invoke(ops.POST_ALL_DOCS, params)

    def post_all_docs_as_stream(self, **params) -> DetailedResponse:
        """Query a list of all documents in a database as stream."""
        return self._invoke(ops.POST_ALL_DOCS_AS_STREAM, params)

    def post_all_docs_queries(self, **params) -> DetailedResponse:
        """Multi-query the list of all documents in a database."""
        return self._invoke(ops.POST_ALL_DOCS_QUERIES, params)

    def post_all_docs_queries_as_stream(self, **params) -> DetailedResponse:
        """Multi-query the list of all documents in a database as stream."""
        return self._invoke(ops.POST_ALL_DOCS_QUERIES_AS_STREAM, params)

    def post_bulk_docs(self, **params) -> DetailedResponse:
        """Bulk modify multiple documents in a database."""
        return self._invoke(ops.POST_BULK_DOCS, params)

    def post_bulk_get(self, **params) -> DetailedResponse:
        """Bulk query revision information for multiple documents."""
        return self._invoke(ops.POST_BULK_GET, params)

    def post_bulk_get_as_mixed(self, **params) -> DetailedResponse:
        """Bulk query revision information for multiple documents as mixed."""
        return self._invoke(ops.POST_BULK_GET_AS_MIXED, params)

    def post_bulk_get_as_related(self, **params) -> DetailedResponse:
        """Bulk query revision information for multiple documents as related."""
        return self._invoke(ops.POST_BULK_GET_AS_RELATED, params)

    def post_bulk_get_as_stream(self, **params) -> DetailedResponse:
        """Bulk query revision information for multiple documents as stream."""
        return self._invoke(ops.POST_BULK_GET_AS_STREAM, params)

    def delete_document(self, **params) -> DetailedResponse:
        """Delete a document."""
        return self._invoke(ops.DELETE_DOCUMENT, params)

    def get_document(self, **params) -> DetailedResponse:
        """Retrieve a document.

        Args:
            db: Database name (required)
            doc_id: Document ID (required)
            if_none_match: Sent as If-None-Match; a matching ETag yields 304
            rev, revs, revs_info, conflicts, ...: Query options
            headers: Extra request headers

        Returns:
            Response whose result is the document body
        """
        return self._invoke(ops.GET_DOCUMENT, params)

    def get_document_as_mixed(self, **params) -> DetailedResponse:
        """Retrieve a document as mixed."""
        return self._invoke(ops.GET_DOCUMENT_AS_MIXED, params)

    def get_document_as_related(self, **params) -> DetailedResponse:
        """Retrieve a document as related."""
        return self._invoke(ops.GET_DOCUMENT_AS_RELATED, params)

    def get_document_as_stream(self, **params) -> DetailedResponse:
        """Retrieve a document as stream."""
        return self._invoke(ops.GET_DOCUMENT_AS_STREAM, params)

    def put_document(self, **params) -> DetailedResponse:
        """Create or modify a document."""
        return self._invoke(ops.PUT_DOCUMENT, params)

    # Design documents

    def head_design_document(self, **params) -> DetailedResponse:
        """Retrieve the HTTP headers for a design document."""
        return self._invoke(ops.HEAD_DESIGN_DOCUMENT, params)

    def delete_design_document(self, **params) -> DetailedResponse:
        """Delete a design document."""
        return self._invoke(ops.DELETE_DESIGN_DOCUMENT, params)

    def get_design_document(self, **params) -> DetailedResponse:
        """Retrieve a design document."""
        return self._invoke(ops.GET_DESIGN_DOCUMENT, params)

    def put_design_document(self, **params) -> DetailedResponse:
        """Create or modify a design document."""
        return self._invoke(ops.PUT_DESIGN_DOCUMENT, params)

    def get_design_document_information(self, **params) -> DetailedResponse:
        """Retrieve information about a design document."""
        return self._invoke(ops.GET_DESIGN_DOCUMENT_INFORMATION, params)

    def post_design_docs(self, **params) -> DetailedResponse:
        """Query a list of all design documents in a database."""
        return self._invoke(ops.POST_DESIGN_DOCS, params)

    def post_design_docs_queries(self, **params) -> DetailedResponse:
        """Multi-query the list of all design documents."""
        return self._invoke(ops.POST_DESIGN_DOCS_QUERIES, params)

    # Views

    def post_view(self, **params) -> DetailedResponse:
        """Query a MapReduce view."""
        return self._invoke(ops.POST_VIEW, params)

    def post_view_as_stream(self, **params) -> DetailedResponse:
        """Query a MapReduce view as stream."""
        return self._invoke(ops.POST_VIEW_AS_STREAM, params)

    def post_view_queries(self, **params) -> DetailedResponse:
        """Multi-query a MapReduce view."""
        return self._invoke(ops.POST_VIEW_QUERIES, params)

    def post_view_queries_as_stream(self, **params) -> DetailedResponse:
        """Multi-query a MapReduce view as stream."""
        return self._invoke(ops.POST_VIEW_QUERIES_AS_STREAM, params)

    # Partitioned databases

    def get_partition_information(self, **params) -> DetailedResponse:
        """Retrieve information about a database partition."""
        return self._invoke(ops.GET_PARTITION_INFORMATION, params)

    def post_partition_all_docs(self, **params) -> DetailedResponse:
        """Query a list of all documents in a database partition."""
        return self._invoke(ops.POST_PARTITION_ALL_DOCS, params)

    def post_partition_all_docs_as_stream(self, **params) -> DetailedResponse:
        """Query a list of all documents in a database partition as stream."""
        return self._invoke(ops.POST_PARTITION_ALL_DOCS_AS_STREAM, params)

    def post_partition_search(self, **params) -> DetailedResponse:
        """Query a database partition search index."""
        return self._invoke(ops.POST_PARTITION_SEARCH, params)

    def post_partition_search_as_stream(self, **params) -> DetailedResponse:
        """Query a database partition search index as stream."""
        return self._invoke(ops.POST_PARTITION_SEARCH_AS_STREAM, params)

    def post_partition_view(self, **params) -> DetailedResponse:
        """Query a database partition MapReduce view function."""
        return self._invoke(ops.POST_PARTITION_VIEW, params)

    def post_partition_view_as_stream(self, **params) -> DetailedResponse:
        """Query a database partition MapReduce view function as stream."""
        return self._invoke(ops.POST_PARTITION_VIEW_AS_STREAM, params)

    def post_partition_explain(self, **params) -> DetailedResponse:
        """Retrieve information about which partition index is used for a query."""
        return self._invoke(ops.POST_PARTITION_EXPLAIN, params)

    def post_partition_find(self, **params) -> DetailedResponse:
        """Query a database partition index by using selector syntax."""
        return self._invoke(ops.POST_PARTITION_FIND, params)

    def post_partition_find_as_stream(self, **params) -> DetailedResponse:
        """Query a database partition index by using selector syntax as stream."""
        return self._invoke(ops.POST_PARTITION_FIND_AS_STREAM, params)

    # Query

    def post_explain(self, **params) -> DetailedResponse:
        """Retrieve information about which index is used for a query."""
        return self._invoke(ops.POST_EXPLAIN, params)

    def post_find(self, **params) -> DetailedResponse:
        """Query an index by using selector syntax.

        ``db`` and ``selector`` are required. Use Pagination with
        PagerType.POST_FIND to walk every page of results.
        """
        return self._invoke(ops.POST_FIND, params)

    def post_find_as_stream(self, **params) -> DetailedResponse:
        """Query an index by using selector syntax as stream."""
        return self._invoke(ops.POST_FIND_AS_STREAM, params)

    def get_indexes_information(self, **params) -> DetailedResponse:
        """Retrieve information about all indexes."""
        return self._invoke(ops.GET_INDEXES_INFORMATION, params)

    def post_index(self, **params) -> DetailedResponse:
        """Create a new index on a database."""
        return self._invoke(ops.POST_INDEX, params)

    def delete_index(self, **params) -> DetailedResponse:
        """Delete an index."""
        return self._invoke(ops.DELETE_INDEX, params)

    # Search

    def post_search_analyze(self, **params) -> DetailedResponse:
        """Query tokenization of sample text."""
        return self._invoke(ops.POST_SEARCH_ANALYZE, params)

    def post_search(self, **params) -> DetailedResponse:
        """Query a search index."""
        return self._invoke(ops.POST_SEARCH, params)

    def post_search_as_stream(self, **params) -> DetailedResponse:
        """Query a search index as stream."""
        return self._invoke(ops.POST_SEARCH_AS_STREAM, params)

    def get_search_info(self, **params) -> DetailedResponse:
        """Retrieve information about a search index."""
        return self._invoke(ops.GET_SEARCH_INFO, params)

    # Geospatial

    def get_geo(self, **params) -> DetailedResponse:
        """Query a geospatial index."""
        return self._invoke(ops.GET_GEO, params)

    def get_geo_as_stream(self, **params) -> DetailedResponse:
        """Query a geospatial index as stream."""
        return self._invoke(ops.GET_GEO_AS_STREAM, params)

    def post_geo_cleanup(self, **params) -> DetailedResponse:
        """Cleanup old geospatial indexes."""
        return self._invoke(ops.POST_GEO_CLEANUP, params)

    def get_geo_index_information(self, **params) -> DetailedResponse:
        """Retrieve information about a geospatial index."""
        return self._invoke(ops.GET_GEO_INDEX_INFORMATION, params)

    # Replication

    def head_replication_document(self, **params) -> DetailedResponse:
        """Retrieve the HTTP headers for a replication document."""
        return self._invoke(ops.HEAD_REPLICATION_DOCUMENT, params)

    def head_scheduler_document(self, **params) -> DetailedResponse:
        """Retrieve HTTP headers for a replication scheduler document."""
        return self._invoke(ops.HEAD_SCHEDULER_DOCUMENT, params)

    def head_scheduler_job(self, **params) -> DetailedResponse:
        """Retrieve the HTTP headers for a replication scheduler job."""
        return self._invoke(ops.HEAD_SCHEDULER_JOB, params)

    def delete_replication_document(self, **params) -> DetailedResponse:
        """Cancel a persistent replication."""
        return self._invoke(ops.DELETE_REPLICATION_DOCUMENT, params)

    def get_replication_document(self, **params) -> DetailedResponse:
        """Retrieve the configuration for a persistent replication."""
        return self._invoke(ops.GET_REPLICATION_DOCUMENT, params)

    def put_replication_document(self, **params) -> DetailedResponse:
        """Create or modify a persistent replication."""
        return self._invoke(ops.PUT_REPLICATION_DOCUMENT, params)

    def get_scheduler_docs(self, **params) -> DetailedResponse:
        """Retrieve replication scheduler documents."""
        return self._invoke(ops.GET_SCHEDULER_DOCS, params)

    def get_scheduler_document(self, **params) -> DetailedResponse:
        """Retrieve a replication scheduler document."""
        return self._invoke(ops.GET_SCHEDULER_DOCUMENT, params)

    def get_scheduler_jobs(self, **params) -> DetailedResponse:
        """Retrieve replication scheduler jobs."""
        return self._invoke(ops.GET_SCHEDULER_JOBS, params)

    def get_scheduler_job(self, **params) -> DetailedResponse:
        """Retrieve a replication scheduler job."""
        return self._invoke(ops.GET_SCHEDULER_JOB, params)

    # Authentication and authorization

    def get_session_information(self, **params) -> DetailedResponse:
        """Retrieve current session cookie information."""
        return self._invoke(ops.GET_SESSION_INFORMATION, params)

    def get_security(self, **params) -> DetailedResponse:
        """Retrieve database permissions information."""
        return self._invoke(ops.GET_SECURITY, params)

    def put_security(self, **params) -> DetailedResponse:
        """Modify database permissions."""
        return self._invoke(ops.PUT_SECURITY, params)

    def post_api_keys(self, **params) -> DetailedResponse:
        """Generate API keys."""
        return self._invoke(ops.POST_API_KEYS, params)

    def put_cloudant_security_configuration(self, **params) -> DetailedResponse:
        """Modify only Cloudant related database permissions."""
        return self._invoke(ops.PUT_CLOUDANT_SECURITY_CONFIGURATION, params)

    # CORS

    def get_cors_information(self, **params) -> DetailedResponse:
        """Retrieve CORS configuration information."""
        return self._invoke(ops.GET_CORS_INFORMATION, params)

    def put_cors_configuration(self, **params) -> DetailedResponse:
        """Modify CORS configuration."""
        return self._invoke(ops.PUT_CORS_CONFIGURATION, params)

    # Attachments

    def head_attachment(self, **params) -> DetailedResponse:
        """Retrieve the HTTP headers for an attachment."""
        return self._invoke(ops.HEAD_ATTACHMENT, params)

    def delete_attachment(self, **params) -> DetailedResponse:
        """Delete an attachment."""
        return self._invoke(ops.DELETE_ATTACHMENT, params)

    def get_attachment(self, **params) -> DetailedResponse:
        """Retrieve an attachment."""
        return self._invoke(ops.GET_ATTACHMENT, params)

    def put_attachment(self, **params) -> DetailedResponse:
        """Create or modify an attachment.

        ``attachment`` is sent as-is and may be bytes or a binary file
        object; ``content_type`` is required.
        """
        return self._invoke(ops.PUT_ATTACHMENT, params)

    # Local documents

    def head_local_document(self, **params) -> DetailedResponse:
        """Retrieve HTTP headers for a local document."""
        return self._invoke(ops.HEAD_LOCAL_DOCUMENT, params)

    def delete_local_document(self, **params) -> DetailedResponse:
        """Delete a local document."""
        return self._invoke(ops.DELETE_LOCAL_DOCUMENT, params)

    def get_local_document(self, **params) -> DetailedResponse:
        """Retrieve a local document."""
        return self._invoke(ops.GET_LOCAL_DOCUMENT, params)

    def put_local_document(self, **params) -> DetailedResponse:
        """Create or modify a local document."""
        return self._invoke(ops.PUT_LOCAL_DOCUMENT, params)

    # Revisions

    def post_revs_diff(self, **params) -> DetailedResponse:
        """Query the document revisions and possible ancestors missing from the database."""
        return self._invoke(ops.POST_REVS_DIFF, params)

    def post_missing_revs(self, **params) -> DetailedResponse:
        """Query document revisions that are missing from the database."""
        return self._invoke(ops.POST_MISSING_REVS, params)

    # Shards

    def get_shards_information(self, **params) -> DetailedResponse:
        """Retrieve shard information."""
        return self._invoke(ops.GET_SHARDS_INFORMATION, params)

    def get_document_shards_info(self, **params) -> DetailedResponse:
        """Retrieve shard information for a specific document."""
        return self._invoke(ops.GET_DOCUMENT_SHARDS_INFO, params)
