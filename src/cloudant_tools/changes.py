"""Following the changes feed of a database.

``ChangesFollower`` fetches batches from ``_changes`` and yields the change
items one at a time. It runs in one of two modes:

One-off (``start_one_off``):
    Starts from the beginning (or ``since``) and stops once the server
    reports no pending changes.

Listen (``start``):
    Starts from "now" (or ``since``) and long-polls for new changes until
    stopped.

Transient errors (connection problems, 429, 5xx) are retried with
randomized exponential backoff for as long as the error tolerance allows.
Terminal errors (400, 401, 403, 404) are always raised.

Usage:
    from cloudant_tools import CloudantV1, ChangesFollower

    follower = ChangesFollower(CloudantV1(), db="orders", include_docs=True)
    for change in follower.start_one_off():
        print(change["id"], change["seq"])
"""

import logging
import threading
from collections.abc import Iterator
from enum import Enum
from typing import Any

from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_delay,
    stop_any,
    stop_never,
    wait_random_exponential,
)

from .client.exceptions import CloudantAPIError, CloudantConnectionError

logger = logging.getLogger("cloudant-tools")

# Client read timeouts below one minute would cut long-poll requests short
MIN_CLIENT_TIMEOUT = 60.0
# Sent as the _changes timeout (milliseconds), 3s under the client timeout
LONGPOLL_TIMEOUT = int(MIN_CLIENT_TIMEOUT * 1000) - 3000
BATCH_SIZE = 10_000
# Target size of an include_docs batch
BATCH_BYTES = 5 * 1024 * 1024
# Allowance for the change envelope around each document
CHANGE_OVERHEAD_BYTES = 500
# First backoff window (seconds); doubles per retry up to the long-poll timeout
BASE_DELAY = 0.1

TERMINAL_STATUS_CODES = frozenset({400, 401, 403, 404})

# postChanges params that are carried into every request
CHANGES_PARAMS = (
    "db",
    "att_encoding_info",
    "attachments",
    "conflicts",
    "doc_ids",
    "fields",
    "filter",
    "include_docs",
    "limit",
    "selector",
    "seq_interval",
    "since",
    "style",
    "view",
)

# Set by the follower itself
FOLLOWER_PARAMS = ("descending", "feed", "heartbeat", "last_event_id", "timeout")


class Mode(str, Enum):
    """How the feed is consumed."""

    FINITE = "normal"
    LISTEN = "longpoll"


def validate_changes_params(params: dict[str, Any]) -> None:
    """Reject params the follower cannot honour.

    Raises:
        ValueError: If ``db`` is missing, a follower-managed param is given,
            or ``filter`` is anything other than ``_selector``
    """
    if not params.get("db"):
        raise ValueError("The param db is required for PostChangesParams.")
    invalid = [f"'{name}'" for name in FOLLOWER_PARAMS if params.get(name) is not None]
    filter_ = params.get("filter")
    if filter_ is not None and filter_ != "_selector":
        invalid.append(f"'filter={filter_}'")
    if len(invalid) == 1:
        raise ValueError(f"The param {invalid[0]} is invalid when using ChangesFollower.")
    if invalid:
        raise ValueError(f"The params {', '.join(invalid)} are invalid when using ChangesFollower.")


def clone_changes_params(
    params: dict[str, Any],
    mode: Mode | None = None,
    since: str | None = None,
    limit: int | None = None,
) -> dict[str, Any]:
    """Copy the carried params, applying a new since, limit and feed mode.

    Params bound to None are dropped. Follower-managed params are never
    copied from the input.
    """
    cloned = {name: params[name] for name in CHANGES_PARAMS if params.get(name) is not None}
    if since:
        cloned["since"] = since
    if limit:
        cloned["limit"] = limit
    if mode is Mode.FINITE:
        cloned["feed"] = Mode.FINITE.value
    elif mode is Mode.LISTEN:
        cloned["feed"] = Mode.LISTEN.value
        cloned["timeout"] = LONGPOLL_TIMEOUT
    return cloned


def is_transient_error(exception: BaseException) -> bool:
    """Whether a failed changes request should be retried."""
    if isinstance(exception, CloudantAPIError):
        return exception.status_code not in TERMINAL_STATUS_CODES
    return isinstance(exception, CloudantConnectionError)


class ChangesResultIterator:
    """Iterator yielding one ``_changes`` result per request.

    Not intended for direct use; see ``ChangesFollower``.
    """

    def __init__(
        self,
        client: Any,
        params: dict[str, Any],
        mode: Mode,
        error_tolerance: float | None = None,
    ):
        self._client = client
        self._params = dict(params)
        self._mode = mode
        self._error_tolerance = error_tolerance
        self._stop_event = threading.Event()
        self._done = False
        self._configured = False
        self._count_down = params.get("limit")
        if self._count_down is not None:
            logger.debug(f"Applying changes limit {self._count_down}")
        if params.get("since") is not None:
            self._since = params["since"]
        else:
            self._since = "now" if mode is Mode.LISTEN else "0"

        if error_tolerance is None:
            logger.debug("Maximum error suppression.")
        elif error_tolerance == 0:
            logger.debug("Not suppressing errors.")
        else:
            logger.debug(f"Suppress errors for {error_tolerance}s.")

    @property
    def stopped(self) -> bool:
        """Whether stop() was called."""
        return self._stop_event.is_set()

    def stop(self) -> None:
        """Stop iterating.

        A request already in flight is allowed to finish; its result is
        discarded.
        """
        logger.debug("Stopping changes iterator.")
        self._stop_event.set()

    def __iter__(self) -> Iterator[dict[str, Any]]:
        return self

    def __next__(self) -> dict[str, Any]:
        if self._done or self.stopped:
            raise StopIteration
        if not self._configured:
            self._configure()

        limit = None
        if self._count_down is not None and self._count_down < self._params["limit"]:
            limit = self._count_down
        params = clone_changes_params(self._params, self._mode, self._since, limit)

        result = self._fetch(params)
        if result is None or self.stopped:
            raise StopIteration

        self._since = result.get("last_seq", self._since)
        if self._mode is Mode.FINITE and result.get("pending") == 0:
            logger.debug("No more changes pending.")
            self._done = True
        if self._count_down is not None:
            self._count_down -= len(result.get("results") or [])
            if self._count_down <= 0:
                logger.debug("Changes limit reached.")
                self._done = True
        return result

    def _configure(self) -> None:
        """Choose the batch size; include_docs batches aim for about 5 MiB."""
        self._configured = True
        self._params["limit"] = BATCH_SIZE
        if not self._params.get("include_docs"):
            return
        info = self._client.get_database_information(db=self._params["db"]).result or {}
        doc_count = info.get("doc_count") or 0
        external = (info.get("sizes") or {}).get("external") or 0
        if doc_count > 0 and external > 0:
            average = external / doc_count + CHANGE_OVERHEAD_BYTES
            self._params["limit"] = int(BATCH_BYTES // average) or 1
            logger.debug(f"Using changes batch size {self._params['limit']}")

    def _fetch(self, params: dict[str, Any]) -> dict[str, Any] | None:
        if self._error_tolerance is None:
            tolerance = stop_never
        else:
            tolerance = stop_after_delay(self._error_tolerance)

        retrying = Retrying(
            stop=stop_any(tolerance, lambda retry_state: self.stopped),
            wait=wait_random_exponential(multiplier=BASE_DELAY, max=LONGPOLL_TIMEOUT / 1000),
            retry=retry_if_exception(is_transient_error),
            sleep=self._stop_event.wait,
            before_sleep=before_sleep_log(logger, logging.DEBUG),
            retry_error_callback=self._give_up,
        )
        return retrying(self._post_changes, params)

    def _post_changes(self, params: dict[str, Any]) -> dict[str, Any]:
        return self._client.post_changes(**params).result

    def _give_up(self, retry_state) -> None:
        if self.stopped:
            return None
        logger.warning(f"Changes request failed after {retry_state.attempt_number} attempts")
        raise retry_state.outcome.exception()


class ChangesFollower:
    """Helper for consuming the changes feed of one database.

    Example:
        follower = ChangesFollower(service, error_tolerance=30, db="orders")
        for change in follower.start():
            if change["id"] == "stop-marker":
                follower.stop()

    The same change may be seen more than once. ``limit`` truncates the
    feed at that many changes in either mode.
    """

    def __init__(self, client: Any, error_tolerance: float | None = None, **params):
        """Initialize the follower.

        Args:
            client: CloudantV1 instance used for requests
            error_tolerance: Seconds since the last successful response
                during which transient errors are retried. None retries
                forever and 0 raises on the first error.
            **params: postChanges params

        Raises:
            ValueError: If a param conflicts with following, the tolerance
                is negative, or the client read timeout is under a minute
        """
        validate_changes_params(params)
        if error_tolerance is not None and error_tolerance < 0:
            raise ValueError("Error tolerance duration must not be negative.")
        timeout = client.config.timeout
        if timeout < MIN_CLIENT_TIMEOUT:
            raise ValueError(
                f"To use ChangesFollower the client read timeout must be at least "
                f"{int(MIN_CLIENT_TIMEOUT * 1000)} ms. The client read timeout is {int(timeout * 1000)} ms."
            )
        self._client = client
        self._params = clone_changes_params(params)
        self._error_tolerance = error_tolerance
        self._iterator: ChangesResultIterator | None = None

    def start(self) -> Iterator[dict[str, Any]]:
        """Yield all changes, then keep listening for new ones.

        Raises:
            RuntimeError: If the follower was already started
        """
        return self._run(Mode.LISTEN)

    def start_one_off(self) -> Iterator[dict[str, Any]]:
        """Yield all changes until none are pending.

        Raises:
            RuntimeError: If the follower was already started
        """
        return self._run(Mode.FINITE)

    def stop(self) -> None:
        """Stop the running feed. Safe to call from another thread.

        Raises:
            RuntimeError: If the follower was never started
        """
        if self._iterator is None:
            raise RuntimeError("Cannot stop a feed that is not running.")
        self._iterator.stop()

    def _run(self, mode: Mode) -> Iterator[dict[str, Any]]:
        if self._iterator is not None:
            raise RuntimeError("Cannot start a feed that has already started.")
        self._iterator = ChangesResultIterator(
            self._client, clone_changes_params(self._params, mode), mode, self._error_tolerance
        )
        return self._items(self._iterator)

    @staticmethod
    def _items(iterator: ChangesResultIterator) -> Iterator[dict[str, Any]]:
        for result in iterator:
            for item in result.get("results") or []:
                if iterator.stopped:
                    return
                yield item
