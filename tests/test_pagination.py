"""Tests for pagination."""

from unittest.mock import MagicMock

import pytest

from cloudant_tools.client.response import DetailedResponse
from cloudant_tools.pagination import Pager, PagerType, Pagination


def all_docs_rows(start: int, count: int) -> list[dict]:
    return [{"id": f"doc{i:03d}", "key": f"doc{i:03d}", "value": {"rev": "1-a"}} for i in range(start, start + count)]


@pytest.fixture
def client():
    """Create a mock CloudantV1."""
    return MagicMock()


def key_pages(client, method: str, total: int):
    """Serve `total` rows by start_key like _all_docs does."""
    rows = all_docs_rows(0, total)

    def respond(**params):
        start = 0
        if "start_key" in params:
            start = next(i for i, r in enumerate(rows) if r["key"] == params["start_key"])
        return DetailedResponse(result={"rows": rows[start:start + params["limit"]]}, status=200)

    getattr(client, method).side_effect = respond
    return rows


class TestKeyPagination:
    """Tests for start_key based paging."""

    def test_pages(self, client):
        """Test pages are split at the page size without overlap."""
        rows = key_pages(client, "post_all_docs", 25)
        pagination = Pagination.new_pagination(client, PagerType.POST_ALL_DOCS, db="orders", limit=10)

        pages = list(pagination.pages())

        assert [len(p) for p in pages] == [10, 10, 5]
        assert [r["id"] for p in pages for r in p] == [r["id"] for r in rows]

    def test_requests_limit_plus_one(self, client):
        """Test each request asks for one extra row."""
        key_pages(client, "post_all_docs", 25)
        list(Pagination.new_pagination(client, PagerType.POST_ALL_DOCS, db="orders", limit=10).pages())

        calls = client.post_all_docs.call_args_list
        assert calls[0].kwargs == {"db": "orders", "limit": 11}
        assert calls[1].kwargs == {"db": "orders", "limit": 11, "start_key": "doc010"}
        assert calls[2].kwargs == {"db": "orders", "limit": 11, "start_key": "doc020"}

    def test_exact_multiple_of_page_size(self, client):
        """Test no empty page follows a final full page."""
        key_pages(client, "post_all_docs", 20)
        pages = list(Pagination.new_pagination(client, PagerType.POST_ALL_DOCS, db="d", limit=10).pages())
        assert [len(p) for p in pages] == [10, 10]

    def test_default_page_size(self, client):
        """Test the page size defaults to 200."""
        key_pages(client, "post_all_docs", 5)
        list(Pagination.new_pagination(client, PagerType.POST_ALL_DOCS, db="d").pages())
        assert client.post_all_docs.call_args.kwargs["limit"] == 201

    def test_skip_only_on_first_page(self, client):
        """Test skip is dropped after the first request."""
        key_pages(client, "post_all_docs", 30)
        list(Pagination.new_pagination(client, PagerType.POST_ALL_DOCS, db="d", limit=10, skip=2).pages())

        calls = client.post_all_docs.call_args_list
        assert calls[0].kwargs["skip"] == 2
        assert "skip" not in calls[1].kwargs

    def test_rows(self, client):
        """Test rows iterates across pages."""
        rows = key_pages(client, "post_design_docs", 7)
        result = list(Pagination.new_pagination(client, PagerType.POST_DESIGN_DOCS, db="d", limit=3).rows())
        assert result == rows

    def test_each_iteration_starts_over(self, client):
        """Test pages() can be iterated again from the start."""
        key_pages(client, "post_all_docs", 5)
        pagination = Pagination.new_pagination(client, PagerType.POST_ALL_DOCS, db="d", limit=2)
        assert list(pagination.rows()) == list(pagination.rows())

    def test_caller_params_not_modified(self, client):
        """Test the caller's parameters are copied."""
        key_pages(client, "post_all_docs", 5)
        params = {"db": "d", "limit": 2}
        list(Pagination.new_pagination(client, PagerType.POST_ALL_DOCS, **params).pages())
        assert params == {"db": "d", "limit": 2}

    @pytest.mark.parametrize("pager_type", [
        PagerType.POST_ALL_DOCS,
        PagerType.POST_DESIGN_DOCS,
        PagerType.POST_PARTITION_ALL_DOCS,
    ])
    def test_key_rejected_for_all_docs(self, client, pager_type):
        """Test key is rejected with an all_docs hint."""
        with pytest.raises(ValueError) as exc_info:
            Pagination.new_pagination(client, pager_type, db="d", key="x")
        assert str(exc_info.value) == (
            "The param 'key' is invalid when using pagination. "
            "No need to paginate as 'key' returns a single result for an ID."
        )

    @pytest.mark.parametrize("pager_type", [PagerType.POST_VIEW, PagerType.POST_PARTITION_VIEW])
    def test_key_rejected_for_views(self, client, pager_type):
        """Test key is rejected with a start_key hint."""
        with pytest.raises(ValueError, match="Use 'start_key' and 'end_key' instead."):
            Pagination.new_pagination(client, pager_type, db="d", ddoc="x", view="v", key="k")

    def test_keys_rejected(self, client):
        """Test keys is rejected."""
        with pytest.raises(ValueError) as exc_info:
            Pagination.new_pagination(client, PagerType.POST_ALL_DOCS, db="d", keys=["a"])
        assert str(exc_info.value) == "The param 'keys' is invalid when using pagination."


class TestViewPagination:
    """Tests for view paging."""

    def test_start_key_doc_id(self, client):
        """Test view pages continue from key and document ID."""
        rows = [{"id": f"d{i}", "key": i // 2, "value": None} for i in range(6)]

        def respond(**params):
            start = 0
            if "start_key" in params:
                start = next(
                    i for i, r in enumerate(rows)
                    if r["key"] == params["start_key"] and r["id"] == params["start_key_doc_id"]
                )
            return DetailedResponse(result={"rows": rows[start:start + params["limit"]]}, status=200)

        client.post_view.side_effect = respond
        pages = list(Pagination.new_pagination(
            client, PagerType.POST_VIEW, db="d", ddoc="x", view="v", limit=4
        ).pages())

        assert [r["id"] for p in pages for r in p] == [r["id"] for r in rows]
        second = client.post_view.call_args_list[1].kwargs
        assert second["start_key"] == 2
        assert second["start_key_doc_id"] == "d4"

    def test_identical_boundary_rows_fail(self, client):
        """Test duplicate key and ID at the boundary stops paging."""
        rows = [
            {"id": "a", "key": 1, "value": None},
            {"id": "b", "key": 2, "value": None},
            {"id": "b", "key": 2, "value": None},
        ]
        client.post_view.return_value = DetailedResponse(result={"rows": rows}, status=200)

        pages = Pagination.new_pagination(
            client, PagerType.POST_VIEW, db="d", ddoc="x", view="v", limit=2
        ).pages()

        assert [r["id"] for r in next(pages)] == ["a", "b"]
        with pytest.raises(RuntimeError) as exc_info:
            next(pages)
        assert str(exc_info.value) == (
            "Cannot paginate on a boundary containing identical keys '2' and document IDs 'b'"
        )
        assert client.post_view.call_count == 1


class TestBookmarkPagination:
    """Tests for bookmark paging."""

    def test_find_pages(self, client):
        """Test find results are paged by bookmark."""
        responses = [
            {"docs": [{"_id": "a"}, {"_id": "b"}], "bookmark": "bm1"},
            {"docs": [{"_id": "c"}, {"_id": "d"}], "bookmark": "bm2"},
            {"docs": [{"_id": "e"}], "bookmark": "bm3"},
        ]
        client.post_find.side_effect = [DetailedResponse(result=r, status=200) for r in responses]

        docs = list(Pagination.new_pagination(
            client, PagerType.POST_FIND, db="d", selector={}, limit=2, skip=1
        ).rows())

        assert [d["_id"] for d in docs] == ["a", "b", "c", "d", "e"]
        calls = client.post_find.call_args_list
        assert calls[0].kwargs == {"db": "d", "selector": {}, "limit": 2, "skip": 1}
        assert calls[1].kwargs == {"db": "d", "selector": {}, "limit": 2, "bookmark": "bm1"}
        assert calls[2].kwargs["bookmark"] == "bm2"

    def test_search_rows(self, client):
        """Test search results are read from rows."""
        client.post_search.return_value = DetailedResponse(
            result={"rows": [{"id": "a"}], "bookmark": "x", "total_rows": 1}, status=200
        )
        rows = list(Pagination.new_pagination(
            client, PagerType.POST_SEARCH, db="d", ddoc="x", index="i", query="*:*"
        ).rows())
        assert rows == [{"id": "a"}]

    @pytest.mark.parametrize("param", ["counts", "group_field", "group_limit", "group_sort", "ranges"])
    def test_search_facets_rejected(self, client, param):
        """Test faceting parameters cannot be paginated."""
        with pytest.raises(ValueError, match=f"The param '{param}' is invalid"):
            Pagination.new_pagination(
                client, PagerType.POST_SEARCH, db="d", ddoc="x", index="i", query="*:*", **{param: ["x"]}
            )

    def test_partition_search_allows_nothing_extra(self, client):
        """Test partition search has no faceting restriction of its own."""
        Pagination.new_pagination(
            client, PagerType.POST_PARTITION_SEARCH,
            db="d", partition_key="p", ddoc="x", index="i", query="*:*",
        )


class TestLimitValidation:
    """Tests for page size limits."""

    @pytest.mark.parametrize("limit,message", [
        (201, "The provided limit 201 exceeds the maximum page size value of 200."),
        (0, "The provided limit 0 is lower than the minimum page size value of 1."),
    ])
    def test_out_of_range(self, client, limit, message):
        """Test limits outside 1..200 are rejected."""
        with pytest.raises(ValueError) as exc_info:
            Pagination.new_pagination(client, PagerType.POST_FIND, db="d", selector={}, limit=limit)
        assert str(exc_info.value) == message

    @pytest.mark.parametrize("limit", [1, 200])
    def test_bounds_accepted(self, client, limit):
        """Test the bounds themselves are valid."""
        Pagination.new_pagination(client, PagerType.POST_FIND, db="d", selector={}, limit=limit)

    def test_unknown_pager_type(self, client):
        """Test unknown pager types are rejected."""
        with pytest.raises(ValueError, match="No implementation available"):
            Pagination.new_pagination(client, "post_changes", db="d")


class TestPager:
    """Tests for the Pager state machine."""

    @pytest.fixture
    def pager(self, client) -> Pager:
        key_pages(client, "post_all_docs", 5)
        return Pagination.new_pagination(client, PagerType.POST_ALL_DOCS, db="d", limit=2).pager()

    def test_get_next(self, pager):
        """Test pages are returned one per call."""
        pages = []
        while pager.has_next():
            pages.append(pager.get_next())
        assert [len(p) for p in pages] == [2, 2, 1]

    def test_get_all(self, pager):
        """Test get_all returns every row."""
        assert [r["id"] for r in pager.get_all()] == [f"doc{i:03d}" for i in range(5)]
        assert pager.has_next() is False

    def test_consumed(self, pager):
        """Test a consumed pager cannot be reused."""
        pager.get_all()
        with pytest.raises(RuntimeError, match="This pager has been consumed, use a new Pager."):
            pager.get_all()
        with pytest.raises(RuntimeError, match="consumed"):
            pager.get_next()

    def test_consumed_after_last_page(self, pager):
        """Test get_next after the last page fails."""
        while pager.has_next():
            pager.get_next()
        with pytest.raises(RuntimeError, match="consumed"):
            pager.get_next()

    def test_cannot_mix(self, pager):
        """Test get_next and get_all cannot be combined."""
        pager.get_next()
        with pytest.raises(RuntimeError, match="Cannot mix getAll\\(\\) and getNext\\(\\)"):
            pager.get_all()
