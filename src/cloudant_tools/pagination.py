"""Pagination over the list and query operations.

Two paging strategies are supported:

Key paging (all_docs, design_docs, views):
    Each request asks for one row more than the page size. The extra row
    is not returned; its key (and document ID for views) becomes the
    ``start_key`` of the next request.

Bookmark paging (find, search):
    The ``bookmark`` of each response is sent with the next request.

Usage:
    from cloudant_tools import CloudantV1, Pagination, PagerType

    service = CloudantV1()
    pagination = Pagination.new_pagination(
        service, PagerType.POST_ALL_DOCS, db="orders", limit=50
    )

    # Page by page
    for page in pagination.pages():
        ...

    # Row by row
    for row in pagination.rows():
        ...

    # One page per call
    pager = pagination.pager()
    while pager.has_next():
        page = pager.get_next()
"""

import logging
from collections.abc import Iterator
from enum import Enum
from typing import Any

logger = logging.getLogger("cloudant-tools")

MAX_LIMIT = 200
MIN_LIMIT = 1


class _BasePageIterator:
    """Iterator yielding one list of items per request."""

    # CloudantV1 method called for each page
    operation: str = ""
    # Result field holding the page items
    items_field = "rows"

    def __init__(self, client: Any, params: dict[str, Any]):
        self.validate(params)
        self._client = client
        self._page_size = self._get_page_size(params)
        self._next_page_params = dict(params)
        self._has_next = True

    @classmethod
    def validate(cls, params: dict[str, Any]) -> None:
        """Reject parameters that cannot be paginated.

        Raises:
            ValueError: If the limit is out of range or a parameter is
                incompatible with paging
        """
        limit = params.get("limit")
        if limit is not None:
            if limit > MAX_LIMIT:
                raise ValueError(
                    f"The provided limit {limit} exceeds the maximum page size value of {MAX_LIMIT}."
                )
            if limit < MIN_LIMIT:
                raise ValueError(
                    f"The provided limit {limit} is lower than the minimum page size value of {MIN_LIMIT}."
                )

    @classmethod
    def _validate_params_absent(cls, params: dict[str, Any], names: tuple[str, ...]) -> None:
        for name in names:
            if params.get(name) is not None:
                raise ValueError(cls._absent_message(name))

    @classmethod
    def _absent_message(cls, name: str) -> str:
        return f"The param '{name}' is invalid when using pagination."

    def _get_page_size(self, params: dict[str, Any]) -> int:
        return params.get("limit") or MAX_LIMIT

    def has_next(self) -> bool:
        """Whether another request will be made."""
        return self._has_next

    def __iter__(self) -> Iterator[list[dict[str, Any]]]:
        return self

    def __next__(self) -> list[dict[str, Any]]:
        if not self._has_next:
            raise StopIteration
        return self._next_request()

    def _next_request(self) -> list[dict[str, Any]]:
        response = getattr(self._client, self.operation)(**self._next_page_params)
        result = response.result
        items = list(result.get(self.items_field) or [])
        logger.debug(f"{self.operation} returned {len(items)} items")
        if len(items) < self._page_size:
            self._has_next = False
        else:
            self._set_next_page_params(result, items)
        return items

    def _set_next_page_params(self, result: dict[str, Any], items: list[dict[str, Any]]) -> None:
        raise NotImplementedError


class _KeyPageIterator(_BasePageIterator):
    """Paging by start key for all_docs and view results."""

    def __init__(self, client: Any, params: dict[str, Any]):
        super().__init__(client, params)
        self._boundary_failure: str | None = None
        # n+1 rows per request
        self._next_page_params["limit"] = self._page_size

    @classmethod
    def validate(cls, params: dict[str, Any]) -> None:
        super().validate(params)
        cls._validate_params_absent(params, ("keys", "key"))

    def _get_page_size(self, params: dict[str, Any]) -> int:
        return super()._get_page_size(params) + 1

    def _set_next_key_id(self, doc_id: str) -> None:
        raise NotImplementedError

    def _check_boundary(self, penultimate: dict[str, Any], last: dict[str, Any]) -> str | None:
        raise NotImplementedError

    def _set_next_page_params(self, result: dict[str, Any], items: list[dict[str, Any]]) -> None:
        last = items[-1]
        self._next_page_params["start_key"] = last.get("key")
        self._set_next_key_id(last.get("id"))
        self._next_page_params.pop("skip", None)

    def _next_request(self) -> list[dict[str, Any]]:
        if self._boundary_failure:
            raise RuntimeError(self._boundary_failure)
        items = super()._next_request()
        if self._has_next:
            last = items.pop()
            if items:
                self._boundary_failure = self._check_boundary(items[-1], last)
        return items


class _AllDocsBasePageIterator(_KeyPageIterator):

    @classmethod
    def _absent_message(cls, name: str) -> str:
        message = super()._absent_message(name)
        if name == "key":
            message += " No need to paginate as 'key' returns a single result for an ID."
        return message

    def _set_next_key_id(self, doc_id: str) -> None:
        # Key and ID are the same for all_docs rows
        pass

    def _check_boundary(self, penultimate: dict[str, Any], last: dict[str, Any]) -> str | None:
        return None


class _ViewBasePageIterator(_KeyPageIterator):

    @classmethod
    def _absent_message(cls, name: str) -> str:
        message = super()._absent_message(name)
        if name == "key":
            message += " Use 'start_key' and 'end_key' instead."
        return message

    def _set_next_key_id(self, doc_id: str) -> None:
        self._next_page_params["start_key_doc_id"] = doc_id

    def _check_boundary(self, penultimate: dict[str, Any], last: dict[str, Any]) -> str | None:
        if penultimate.get("id") == last.get("id") and penultimate.get("key") == last.get("key"):
            return (
                f"Cannot paginate on a boundary containing identical keys "
                f"'{last.get('key')}' and document IDs '{last.get('id')}'"
            )
        return None


class _BookmarkPageIterator(_BasePageIterator):
    """Paging by bookmark for find and search results."""

    def _set_next_page_params(self, result: dict[str, Any], items: list[dict[str, Any]]) -> None:
        self._next_page_params["bookmark"] = result.get("bookmark")


class _FindBasePageIterator(_BookmarkPageIterator):
    items_field = "docs"

    def _set_next_page_params(self, result: dict[str, Any], items: list[dict[str, Any]]) -> None:
        super()._set_next_page_params(result, items)
        self._next_page_params.pop("skip", None)


class AllDocsPageIterator(_AllDocsBasePageIterator):
    operation = "post_all_docs"


class AllDocsPartitionPageIterator(_AllDocsBasePageIterator):
    operation = "post_partition_all_docs"


class DesignDocsPageIterator(_AllDocsBasePageIterator):
    operation = "post_design_docs"


class ViewPageIterator(_ViewBasePageIterator):
    operation = "post_view"


class ViewPartitionPageIterator(_ViewBasePageIterator):
    operation = "post_partition_view"


class FindPageIterator(_FindBasePageIterator):
    operation = "post_find"


class FindPartitionPageIterator(_FindBasePageIterator):
    operation = "post_partition_find"


class SearchPageIterator(_BookmarkPageIterator):
    operation = "post_search"

    @classmethod
    def validate(cls, params: dict[str, Any]) -> None:
        super().validate(params)
        cls._validate_params_absent(
            params, ("counts", "group_field", "group_limit", "group_sort", "ranges")
        )


class SearchPartitionPageIterator(_BookmarkPageIterator):
    operation = "post_partition_search"


class PagerType(str, Enum):
    """Operations that support pagination."""

    POST_ALL_DOCS = "post_all_docs"
    POST_DESIGN_DOCS = "post_design_docs"
    POST_FIND = "post_find"
    POST_PARTITION_ALL_DOCS = "post_partition_all_docs"
    POST_PARTITION_FIND = "post_partition_find"
    POST_PARTITION_SEARCH = "post_partition_search"
    POST_PARTITION_VIEW = "post_partition_view"
    POST_SEARCH = "post_search"
    POST_VIEW = "post_view"


PAGE_ITERATORS: dict[PagerType, type[_BasePageIterator]] = {
    PagerType.POST_ALL_DOCS: AllDocsPageIterator,
    PagerType.POST_DESIGN_DOCS: DesignDocsPageIterator,
    PagerType.POST_FIND: FindPageIterator,
    PagerType.POST_PARTITION_ALL_DOCS: AllDocsPartitionPageIterator,
    PagerType.POST_PARTITION_FIND: FindPartitionPageIterator,
    PagerType.POST_PARTITION_SEARCH: SearchPartitionPageIterator,
    PagerType.POST_PARTITION_VIEW: ViewPartitionPageIterator,
    PagerType.POST_SEARCH: SearchPageIterator,
    PagerType.POST_VIEW: ViewPageIterator,
}


class _State(Enum):
    NEW = "new"
    GET_NEXT = "get_next"
    GET_ALL = "get_all"
    CONSUMED = "consumed"


class Pager:
    """Retrieves one page per call.

    A pager is used either with get_next() or with get_all(), never both,
    and cannot be reused once consumed.
    """

    def __init__(self, page_iterator: _BasePageIterator):
        self._page_iterator = page_iterator
        self._state = _State.NEW

    def has_next(self) -> bool:
        """Whether another page may be available."""
        return self._page_iterator.has_next()

    def get_next(self) -> list[dict[str, Any]]:
        """Get the next page.

        Raises:
            RuntimeError: If the pager is consumed or get_all() was used
            StopIteration: If no more results are available
        """
        self._check_state(_State.GET_NEXT)
        page = next(self._page_iterator, None)
        if not self.has_next():
            self._state = _State.CONSUMED
        if page is None:
            raise StopIteration("No more results available.")
        return page

    def get_all(self) -> list[dict[str, Any]]:
        """Get every remaining item from all pages.

        Raises:
            RuntimeError: If the pager is consumed or get_next() was used
        """
        self._check_state(_State.GET_ALL)
        items: list[dict[str, Any]] = []
        for page in self._page_iterator:
            items.extend(page)
        self._state = _State.CONSUMED
        return items

    def _check_state(self, state: _State) -> None:
        if self._state == state:
            return
        if self._state == _State.NEW:
            self._state = state
        elif self._state == _State.CONSUMED:
            raise RuntimeError("This pager has been consumed, use a new Pager.")
        else:
            raise RuntimeError(
                "Cannot mix getAll() and getNext(), use only one method or get a new Pager."
            )


class Pagination:
    """Entry point for paging through an operation's results.

    Each call to pages(), rows() or pager() starts again from the first
    page with the original parameters.
    """

    def __init__(self, client: Any, pager_type: PagerType, params: dict[str, Any]):
        self._client = client
        self._iterator_class = PAGE_ITERATORS[pager_type]
        self._params = params

    @classmethod
    def new_pagination(cls, client: Any, pager_type: PagerType, **params) -> "Pagination":
        """Create a pagination for an operation.

        The page size is set with the ``limit`` parameter (1 to 200,
        default 200).

        Args:
            client: CloudantV1 instance used to make requests
            pager_type: Operation to paginate
            **params: Operation parameters for the first page

        Raises:
            ValueError: If the pager type is unknown or the parameters
                cannot be paginated
        """
        if pager_type not in PAGE_ITERATORS:
            raise ValueError(f"No implementation available for PagerType {pager_type}.")
        PAGE_ITERATORS[pager_type].validate(params)
        return cls(client, pager_type, params)

    def _new_iterator(self) -> _BasePageIterator:
        return self._iterator_class(self._client, self._params)

    def pager(self) -> Pager:
        """Get a new Pager for retrieving one page at a time."""
        return Pager(self._new_iterator())

    def pages(self) -> Iterator[list[dict[str, Any]]]:
        """Iterate over all pages."""
        return self._new_iterator()

    def rows(self) -> Iterator[dict[str, Any]]:
        """Iterate over all rows of all pages."""
        for page in self.pages():
            yield from page
