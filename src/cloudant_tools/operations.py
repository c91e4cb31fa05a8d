"""Operation catalog for the Cloudant / CouchDB v1 HTTP API.

One immutable OperationDescriptor per endpoint. Logical parameter names
are snake_case and match the wire names used by the service, except for
headers (e.g. ``if_match`` -> ``If-Match``) and whole-body parameters
(e.g. ``document``).

Descriptors are registered in OPERATIONS, keyed by the snake_case method
name exposed on CloudantV1 (``get_document`` for ``getDocument``).
"""

from dataclasses import replace
from types import MappingProxyType

from .request import (
    OperationDescriptor,
    ParamLocation,
    ParamMapping,
    path_placeholders,
    wire_name,
)

JSON = "application/json"

_CATALOG: dict[str, OperationDescriptor] = {}


def _unique(names):
    seen = []
    for name in names:
        if name is not None and name not in seen:
            seen.append(name)
    return tuple(seen)


def _mapping(entry, location: ParamLocation) -> ParamMapping:
    # A bare name maps to its snake_case wire form; a pair names the wire explicitly
    if isinstance(entry, tuple):
        logical, wire = entry
    else:
        logical, wire = entry, wire_name(entry)
    return ParamMapping(logical, wire, location)


def _register(descriptor: OperationDescriptor) -> OperationDescriptor:
    _CATALOG[wire_name(descriptor.operation_id)] = descriptor
    return descriptor


def _op(
    operation_id: str,
    method: str,
    path: str,
    *,
    required: tuple[str, ...] = (),
    query: tuple = (),
    headers: tuple = (),
    body: tuple = (),
    body_param: str | None = None,
    accept: str | None = JSON,
    content_type: str | None = None,
    stream: bool = False,
) -> OperationDescriptor:
    """Declare and register an operation.

    Path placeholders are always required and are named after the
    logical parameter that fills them.
    """
    path_params = path_placeholders(path)
    param_map = (
        tuple(ParamMapping(name, name, ParamLocation.PATH) for name in path_params)
        + tuple(_mapping(entry, ParamLocation.QUERY) for entry in query)
        + tuple(_mapping(entry, ParamLocation.HEADER) for entry in headers)
        + tuple(_mapping(entry, ParamLocation.BODY) for entry in body)
    )
    return _register(OperationDescriptor(
        operation_id=operation_id,
        method=method,
        path_template=path,
        required_params=_unique(path_params + required),
        valid_params=_unique(
            path_params + required
            + tuple(m.logical for m in param_map)
            + (body_param,)
        ),
        param_map=param_map,
        body_param=body_param,
        default_headers=(("Accept", accept), ("Content-Type", content_type)),
        response_is_stream=stream,
    ))


def _variant(base: OperationDescriptor, suffix: str, accept: str = JSON) -> OperationDescriptor:
    """Register a streaming variant of an operation (AsStream, AsMixed, ...)."""
    headers = dict(base.default_headers)
    headers["Accept"] = accept
    return _register(replace(
        base,
        operation_id=base.operation_id + suffix,
        default_headers=tuple(headers.items()),
        response_is_stream=True,
    ))


IF_MATCH = ("if_match", "If-Match")
IF_NONE_MATCH = ("if_none_match", "If-None-Match")
ACCEPT = ("accept", "Accept")
CONTENT_TYPE = ("content_type", "Content-Type")

DOC_READ_QUERY = (
    "attachments", "att_encoding_info", "conflicts", "deleted_conflicts",
    "latest", "local_seq", "meta", "rev", "revs", "revs_info",
)
ALL_DOCS_BODY = (
    "att_encoding_info", "attachments", "conflicts", "descending",
    "include_docs", "inclusive_end", "limit", "skip", "update_seq",
    "end_key", "key", "keys", "start_key",
)
VIEW_BODY = ALL_DOCS_BODY + (
    "end_key_doc_id", "group", "group_level", "reduce", "stable",
    "start_key_doc_id", "update",
)
FIND_BODY = (
    "selector", "bookmark", "conflicts", "execution_stats", "fields",
    "limit", "skip", "sort", "stable", "update", "use_index",
)
SEARCH_BODY = (
    "query", "bookmark", "highlight_fields", "highlight_number",
    "highlight_post_tag", "highlight_pre_tag", "highlight_size",
    "include_docs", "include_fields", "limit", "sort", "stale",
)
SEARCH_FACET_BODY = (
    "counts", "drilldown", "group_field", "group_limit", "group_sort", "ranges",
)
QUERIES_BODY = ("queries",)
CHANGES_QUERY = (
    "att_encoding_info", "attachments", "conflicts", "descending", "feed",
    "filter", "heartbeat", "include_docs", "limit", "seq_interval", "since",
    "style", "timeout", "view",
)
BULK_GET_QUERY = ("attachments", "att_encoding_info", "latest", "revs")


# Server

GET_SERVER_INFORMATION = _op("getServerInformation", "GET", "/")
GET_MEMBERSHIP_INFORMATION = _op("getMembershipInformation", "GET", "/_membership")
GET_UUIDS = _op("getUuids", "GET", "/_uuids", query=("count",))
GET_CAPACITY_THROUGHPUT_INFORMATION = _op(
    "getCapacityThroughputInformation", "GET", "/_api/v2/user/capacity/throughput")
PUT_CAPACITY_THROUGHPUT_CONFIGURATION = _op(
    "putCapacityThroughputConfiguration", "PUT", "/_api/v2/user/capacity/throughput",
    required=("blocks",), body=("blocks",), content_type=JSON)
GET_CURRENT_THROUGHPUT_INFORMATION = _op(
    "getCurrentThroughputInformation", "GET", "/_api/v2/user/current/throughput")
GET_ACTIVE_TASKS = _op("getActiveTasks", "GET", "/_active_tasks")
GET_UP_INFORMATION = _op("getUpInformation", "GET", "/_up")
HEAD_UP_INFORMATION = _op("headUpInformation", "HEAD", "/_up", accept=None)
GET_ACTIVITY_TRACKER_EVENTS = _op(
    "getActivityTrackerEvents", "GET", "/_api/v2/user/activity_tracker/events")
POST_ACTIVITY_TRACKER_EVENTS = _op(
    "postActivityTrackerEvents", "POST", "/_api/v2/user/activity_tracker/events",
    required=("types",), body=("types",), content_type=JSON)

# Changes

GET_DB_UPDATES = _op(
    "getDbUpdates", "GET", "/_db_updates",
    query=("descending", "feed", "heartbeat", "limit", "timeout", "since"))
POST_CHANGES = _op(
    "postChanges", "POST", "/{db}/_changes",
    query=CHANGES_QUERY, headers=(("last_event_id", "Last-Event-ID"),),
    body=("doc_ids", "fields", "selector"), content_type=JSON)
POST_CHANGES_AS_STREAM = _variant(POST_CHANGES, "AsStream")

# Databases

HEAD_DATABASE = _op("headDatabase", "HEAD", "/{db}", accept=None)
GET_ALL_DBS = _op(
    "getAllDbs", "GET", "/_all_dbs",
    query=("descending", "end_key", "limit", "skip", "start_key"))
POST_DBS_INFO = _op(
    "postDbsInfo", "POST", "/_dbs_info",
    required=("keys",), body=("keys",), content_type=JSON)
DELETE_DATABASE = _op("deleteDatabase", "DELETE", "/{db}")
GET_DATABASE_INFORMATION = _op("getDatabaseInformation", "GET", "/{db}")
PUT_DATABASE = _op("putDatabase", "PUT", "/{db}", query=("partitioned", "q"))

# Documents

HEAD_DOCUMENT = _op(
    "headDocument", "HEAD", "/{db}/{doc_id}",
    headers=(IF_NONE_MATCH,), query=("latest", "rev"), accept=None)
POST_DOCUMENT = _op(
    "postDocument", "POST", "/{db}",
    required=("document",), body_param="document",
    headers=(CONTENT_TYPE,), query=("batch",), content_type=JSON)
POST_ALL_DOCS = _op(
    "postAllDocs", "POST", "/{db}/_all_docs", body=ALL_DOCS_BODY, content_type=JSON)
POST_ALL_DOCS_AS_STREAM = _variant(POST_ALL_DOCS, "AsStream")
POST_ALL_DOCS_QUERIES = _op(
    "postAllDocsQueries", "POST", "/{db}/_all_docs/queries",
    required=QUERIES_BODY, body=QUERIES_BODY, content_type=JSON)
POST_ALL_DOCS_QUERIES_AS_STREAM = _variant(POST_ALL_DOCS_QUERIES, "AsStream")
POST_BULK_DOCS = _op(
    "postBulkDocs", "POST", "/{db}/_bulk_docs",
    required=("bulk_docs",), body_param="bulk_docs", content_type=JSON)
POST_BULK_GET = _op(
    "postBulkGet", "POST", "/{db}/_bulk_get",
    required=("docs",), body=("docs",), query=BULK_GET_QUERY, content_type=JSON)
POST_BULK_GET_AS_MIXED = _variant(POST_BULK_GET, "AsMixed", "multipart/mixed")
POST_BULK_GET_AS_RELATED = _variant(POST_BULK_GET, "AsRelated", "multipart/related")
POST_BULK_GET_AS_STREAM = _variant(POST_BULK_GET, "AsStream")
DELETE_DOCUMENT = _op(
    "deleteDocument", "DELETE", "/{db}/{doc_id}",
    headers=(IF_MATCH,), query=("batch", "rev"))
GET_DOCUMENT = _op(
    "getDocument", "GET", "/{db}/{doc_id}",
    headers=(IF_NONE_MATCH,), query=DOC_READ_QUERY)
GET_DOCUMENT_AS_MIXED = _variant(GET_DOCUMENT, "AsMixed", "multipart/mixed")
GET_DOCUMENT_AS_RELATED = _variant(GET_DOCUMENT, "AsRelated", "multipart/related")
GET_DOCUMENT_AS_STREAM = _variant(GET_DOCUMENT, "AsStream")
PUT_DOCUMENT = _op(
    "putDocument", "PUT", "/{db}/{doc_id}",
    required=("document",), body_param="document",
    headers=(CONTENT_TYPE, IF_MATCH), query=("batch", "new_edits", "rev"),
    content_type=JSON)

# Design documents

HEAD_DESIGN_DOCUMENT = _op(
    "headDesignDocument", "HEAD", "/{db}/_design/{ddoc}",
    headers=(IF_NONE_MATCH,), accept=None)
DELETE_DESIGN_DOCUMENT = _op(
    "deleteDesignDocument", "DELETE", "/{db}/_design/{ddoc}",
    headers=(IF_MATCH,), query=("batch", "rev"))
GET_DESIGN_DOCUMENT = _op(
    "getDesignDocument", "GET", "/{db}/_design/{ddoc}",
    headers=(IF_NONE_MATCH,), query=DOC_READ_QUERY)
PUT_DESIGN_DOCUMENT = _op(
    "putDesignDocument", "PUT", "/{db}/_design/{ddoc}",
    required=("design_document",), body_param="design_document",
    headers=(IF_MATCH,), query=("batch", "new_edits", "rev"), content_type=JSON)
GET_DESIGN_DOCUMENT_INFORMATION = _op(
    "getDesignDocumentInformation", "GET", "/{db}/_design/{ddoc}/_info")
POST_DESIGN_DOCS = _op(
    "postDesignDocs", "POST", "/{db}/_design_docs",
    headers=(ACCEPT,), body=ALL_DOCS_BODY, content_type=JSON)
POST_DESIGN_DOCS_QUERIES = _op(
    "postDesignDocsQueries", "POST", "/{db}/_design_docs/queries",
    required=QUERIES_BODY, headers=(ACCEPT,), body=QUERIES_BODY, content_type=JSON)

# Views

POST_VIEW = _op(
    "postView", "POST", "/{db}/_design/{ddoc}/_view/{view}",
    body=VIEW_BODY, content_type=JSON)
POST_VIEW_AS_STREAM = _variant(POST_VIEW, "AsStream")
POST_VIEW_QUERIES = _op(
    "postViewQueries", "POST", "/{db}/_design/{ddoc}/_view/{view}/queries",
    required=QUERIES_BODY, body=QUERIES_BODY, content_type=JSON)
POST_VIEW_QUERIES_AS_STREAM = _variant(POST_VIEW_QUERIES, "AsStream")

# Partitioned databases

GET_PARTITION_INFORMATION = _op(
    "getPartitionInformation", "GET", "/{db}/_partition/{partition_key}")
POST_PARTITION_ALL_DOCS = _op(
    "postPartitionAllDocs", "POST", "/{db}/_partition/{partition_key}/_all_docs",
    body=ALL_DOCS_BODY, content_type=JSON)
POST_PARTITION_ALL_DOCS_AS_STREAM = _variant(POST_PARTITION_ALL_DOCS, "AsStream")
POST_PARTITION_SEARCH = _op(
    "postPartitionSearch", "POST",
    "/{db}/_partition/{partition_key}/_design/{ddoc}/_search/{index}",
    required=("query",), body=SEARCH_BODY, content_type=JSON)
POST_PARTITION_SEARCH_AS_STREAM = _variant(POST_PARTITION_SEARCH, "AsStream")
POST_PARTITION_VIEW = _op(
    "postPartitionView", "POST",
    "/{db}/_partition/{partition_key}/_design/{ddoc}/_view/{view}",
    body=VIEW_BODY, content_type=JSON)
POST_PARTITION_VIEW_AS_STREAM = _variant(POST_PARTITION_VIEW, "AsStream")
POST_PARTITION_EXPLAIN = _op(
    "postPartitionExplain", "POST", "/{db}/_partition/{partition_key}/_explain",
    required=("selector",), body=FIND_BODY, content_type=JSON)
POST_PARTITION_FIND = _op(
    "postPartitionFind", "POST", "/{db}/_partition/{partition_key}/_find",
    required=("selector",), body=FIND_BODY, content_type=JSON)
POST_PARTITION_FIND_AS_STREAM = _variant(POST_PARTITION_FIND, "AsStream")

# Query

POST_EXPLAIN = _op(
    "postExplain", "POST", "/{db}/_explain",
    required=("selector",), body=FIND_BODY + ("r",), content_type=JSON)
POST_FIND = _op(
    "postFind", "POST", "/{db}/_find",
    required=("selector",), body=FIND_BODY + ("r",), content_type=JSON)
POST_FIND_AS_STREAM = _variant(POST_FIND, "AsStream")
GET_INDEXES_INFORMATION = _op("getIndexesInformation", "GET", "/{db}/_index")
POST_INDEX = _op(
    "postIndex", "POST", "/{db}/_index",
    required=("index",),
    body=("index", "ddoc", ("def_", "def"), "name", "partitioned", "type"),
    content_type=JSON)
DELETE_INDEX = _op("deleteIndex", "DELETE", "/{db}/_index/_design/{ddoc}/{type}/{index}")

# Search

POST_SEARCH_ANALYZE = _op(
    "postSearchAnalyze", "POST", "/_search_analyze",
    required=("analyzer", "text"), body=("analyzer", "text"), content_type=JSON)
POST_SEARCH = _op(
    "postSearch", "POST", "/{db}/_design/{ddoc}/_search/{index}",
    required=("query",), body=SEARCH_BODY + SEARCH_FACET_BODY, content_type=JSON)
POST_SEARCH_AS_STREAM = _variant(POST_SEARCH, "AsStream")
GET_SEARCH_INFO = _op("getSearchInfo", "GET", "/{db}/_design/{ddoc}/_search_info/{index}")

# Geospatial

GET_GEO = _op(
    "getGeo", "GET", "/{db}/_design/{ddoc}/_geo/{index}",
    query=(
        "bbox", "bookmark", "format", "g", "include_docs", "lat", "limit",
        "lon", "nearest", "radius", "rangex", "rangey", "relation", "skip",
        "stale",
    ))
GET_GEO_AS_STREAM = _variant(GET_GEO, "AsStream")
POST_GEO_CLEANUP = _op("postGeoCleanup", "POST", "/{db}/_geo_cleanup")
GET_GEO_INDEX_INFORMATION = _op(
    "getGeoIndexInformation", "GET", "/{db}/_design/{ddoc}/_geo_info/{index}")

# Replication

HEAD_REPLICATION_DOCUMENT = _op(
    "headReplicationDocument", "HEAD", "/_replicator/{doc_id}",
    headers=(IF_NONE_MATCH,), accept=None)
HEAD_SCHEDULER_DOCUMENT = _op(
    "headSchedulerDocument", "HEAD", "/_scheduler/docs/_replicator/{doc_id}", accept=None)
HEAD_SCHEDULER_JOB = _op("headSchedulerJob", "HEAD", "/_scheduler/jobs/{job_id}", accept=None)
DELETE_REPLICATION_DOCUMENT = _op(
    "deleteReplicationDocument", "DELETE", "/_replicator/{doc_id}",
    headers=(IF_MATCH,), query=("batch", "rev"))
GET_REPLICATION_DOCUMENT = _op(
    "getReplicationDocument", "GET", "/_replicator/{doc_id}",
    headers=(IF_NONE_MATCH,), query=DOC_READ_QUERY)
PUT_REPLICATION_DOCUMENT = _op(
    "putReplicationDocument", "PUT", "/_replicator/{doc_id}",
    required=("replication_document",), body_param="replication_document",
    headers=(IF_MATCH,), query=("batch", "new_edits", "rev"), content_type=JSON)
GET_SCHEDULER_DOCS = _op(
    "getSchedulerDocs", "GET", "/_scheduler/docs", query=("limit", "skip", "states"))
GET_SCHEDULER_DOCUMENT = _op(
    "getSchedulerDocument", "GET", "/_scheduler/docs/_replicator/{doc_id}")
GET_SCHEDULER_JOBS = _op("getSchedulerJobs", "GET", "/_scheduler/jobs", query=("limit", "skip"))
GET_SCHEDULER_JOB = _op("getSchedulerJob", "GET", "/_scheduler/jobs/{job_id}")

# Authentication and authorization

GET_SESSION_INFORMATION = _op("getSessionInformation", "GET", "/_session")
GET_SECURITY = _op("getSecurity", "GET", "/{db}/_security")
PUT_SECURITY = _op(
    "putSecurity", "PUT", "/{db}/_security",
    body=("admins", "members", "cloudant", "couchdb_auth_only"), content_type=JSON)
POST_API_KEYS = _op("postApiKeys", "POST", "/_api/v2/api_keys")
PUT_CLOUDANT_SECURITY_CONFIGURATION = _op(
    "putCloudantSecurityConfiguration", "PUT", "/_api/v2/db/{db}/_security",
    required=("cloudant",), body=("cloudant", "admins", "members", "couchdb_auth_only"),
    content_type=JSON)

# CORS

GET_CORS_INFORMATION = _op("getCorsInformation", "GET", "/_api/v2/user/config/cors")
PUT_CORS_CONFIGURATION = _op(
    "putCorsConfiguration", "PUT", "/_api/v2/user/config/cors",
    required=("origins",), body=("origins", "allow_credentials", "enable_cors"),
    content_type=JSON)

# Attachments

HEAD_ATTACHMENT = _op(
    "headAttachment", "HEAD", "/{db}/{doc_id}/{attachment_name}",
    headers=(IF_MATCH, IF_NONE_MATCH), query=("rev",), accept=None)
DELETE_ATTACHMENT = _op(
    "deleteAttachment", "DELETE", "/{db}/{doc_id}/{attachment_name}",
    headers=(IF_MATCH,), query=("rev", "batch"))
GET_ATTACHMENT = _op(
    "getAttachment", "GET", "/{db}/{doc_id}/{attachment_name}",
    headers=(ACCEPT, IF_MATCH, IF_NONE_MATCH, ("range", "Range")), query=("rev",),
    accept="*/*", stream=True)
PUT_ATTACHMENT = _op(
    "putAttachment", "PUT", "/{db}/{doc_id}/{attachment_name}",
    required=("attachment", "content_type"), body_param="attachment",
    headers=(CONTENT_TYPE, IF_MATCH), query=("rev",))

# Local (non-replicating) documents

HEAD_LOCAL_DOCUMENT = _op(
    "headLocalDocument", "HEAD", "/{db}/_local/{doc_id}",
    headers=(IF_NONE_MATCH,), accept=None)
DELETE_LOCAL_DOCUMENT = _op(
    "deleteLocalDocument", "DELETE", "/{db}/_local/{doc_id}", query=("batch",))
GET_LOCAL_DOCUMENT = _op(
    "getLocalDocument", "GET", "/{db}/_local/{doc_id}",
    headers=(ACCEPT, IF_NONE_MATCH), query=("attachments", "att_encoding_info", "local_seq"))
PUT_LOCAL_DOCUMENT = _op(
    "putLocalDocument", "PUT", "/{db}/_local/{doc_id}",
    required=("document",), body_param="document",
    headers=(CONTENT_TYPE,), query=("batch",), content_type=JSON)

# Revisions

POST_REVS_DIFF = _op(
    "postRevsDiff", "POST", "/{db}/_revs_diff",
    required=("document_revisions",), body_param="document_revisions", content_type=JSON)
POST_MISSING_REVS = _op(
    "postMissingRevs", "POST", "/{db}/_missing_revs",
    required=("document_revisions",), body_param="document_revisions", content_type=JSON)

# Shards

GET_SHARDS_INFORMATION = _op("getShardsInformation", "GET", "/{db}/_shards")
GET_DOCUMENT_SHARDS_INFO = _op("getDocumentShardsInfo", "GET", "/{db}/_shards/{doc_id}")


OPERATIONS = MappingProxyType(_CATALOG)
