# ContentSync Pagination Tests
# Tests for the sequential offset/limit page loop

import pytest

from contentsync.errors import fetch_error
from contentsync.result import Err, Ok
from contentsync.sources.pagination import fetch_paginated, iter_pages


class PageStub:
    """Serves a fixed list of pages and records requested offsets."""

    def __init__(self, pages, error_at=None):
        self.pages = pages
        self.error_at = error_at
        self.calls = []

    def __call__(self, offset, limit):
        self.calls.append((offset, limit))
        index = len(self.calls) - 1
        if self.error_at is not None and index == self.error_at:
            return Err(fetch_error(f"page {index} failed"))
        if index < len(self.pages):
            return Ok(self.pages[index])
        return Ok(None)


class TestFetchPaginated:
    """Tests for fetch_paginated()."""

    def test_stops_on_none(self):
        """Test that three pages followed by None yields exactly three pages."""
        stub = PageStub([[1, 2], [3, 4], [5]])
        result = fetch_paginated(stub, 2)

        assert result.unwrap().pages == [[1, 2], [3, 4], [5]]
        assert stub.calls == [(0, 2), (2, 2), (4, 2), (6, 2)]

    def test_stops_on_empty_page(self):
        stub = PageStub([[1], []])
        result = fetch_paginated(stub, 1)
        assert result.unwrap().pages == [[1]]
        assert len(stub.calls) == 2

    def test_empty_first_page(self):
        result = fetch_paginated(PageStub([]), 10)
        assert result.unwrap().pages == []

    def test_error_aborts_without_partial_results(self):
        stub = PageStub([[1], [2], [3]], error_at=1)
        result = fetch_paginated(stub, 1)

        assert result.is_err
        assert "page 1 failed" in result.error.message
        assert len(stub.calls) == 2

    def test_meta_is_returned(self):
        result = fetch_paginated(PageStub([[1]]), 1, meta={"query": "articles"})
        assert result.unwrap().meta == {"query": "articles"}

    def test_max_pages(self):
        stub = PageStub([[1], [2], [3]])
        result = fetch_paginated(stub, 1, max_pages=2)
        assert result.unwrap().page_count == 2
        assert len(stub.calls) == 2

    def test_negative_max_pages_is_unlimited(self):
        result = fetch_paginated(PageStub([[1], [2], [3]]), 1, max_pages=-1)
        assert result.unwrap().page_count == 3

    def test_invalid_limit(self):
        with pytest.raises(ValueError):
            fetch_paginated(PageStub([]), 0)


class TestIterPages:
    """Tests for the lazy page generator."""

    def test_is_lazy(self):
        stub = PageStub([[1], [2], [3]])
        pages = iter_pages(stub, 1)

        assert next(pages) == Ok([1])
        assert len(stub.calls) == 1

    def test_error_is_last_item(self):
        results = list(iter_pages(PageStub([[1], [2]], error_at=1), 1))
        assert results[0] == Ok([1])
        assert results[-1].is_err
        assert len(results) == 2
