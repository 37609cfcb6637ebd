# ContentSync Pagination
# Sequential offset/limit page fetching

from collections.abc import Callable, Iterator, Sized
from dataclasses import dataclass, field
from typing import Any, Optional

from contentsync.errors import SourceError
from contentsync.logger import SyncLogger
from contentsync.result import Err, Ok, Result

# fetch_page(offset, limit) -> Ok(page) | Ok(None) | Err(SourceError)
PageFetcher = Callable[[int, int], Result[Optional[Any], SourceError]]


@dataclass
class PaginatedResult:
    """All non-empty pages of a paginated fetch, in order."""

    pages: list[Any] = field(default_factory=list)
    meta: Any = None

    @property
    def page_count(self) -> int:
        return len(self.pages)


def _is_empty(page: Any) -> bool:
    if page is None:
        return True
    if isinstance(page, Sized) and not isinstance(page, (str, bytes)):
        return len(page) == 0
    return False


def iter_pages(
    fetch_page: PageFetcher,
    limit: int,
    *,
    max_pages: Optional[int] = None,
    logger: Optional[SyncLogger] = None,
) -> Iterator[Result[Any, SourceError]]:
    """
    Lazily fetch pages until the source is exhausted.

    Yields one Ok per non-empty page. An Err is yielded as the last item.

    Args:
        fetch_page: Called with ``(offset, limit)`` where offset is ``page_index * limit``.
        limit: Page size, must be positive.
        max_pages: Stop after this many pages. ``None`` or negative means no cap.
        logger: Optional logger for page progress.
    """
    if limit <= 0:
        raise ValueError(f"limit must be positive, got {limit}")

    page_index = 0
    while max_pages is None or max_pages < 0 or page_index < max_pages:
        offset = page_index * limit
        if logger:
            logger.debug(f"Fetching page {page_index} (offset={offset}, limit={limit})")

        result = fetch_page(offset, limit)
        if result.is_err:
            if logger:
                logger.error(f"Page {page_index} failed: {result.error}")
            yield result
            return

        page = result.value
        if _is_empty(page):
            if logger:
                logger.debug(f"No more pages after {page_index}")
            return

        yield Ok(page)
        page_index += 1


def fetch_paginated(
    fetch_page: PageFetcher,
    limit: int,
    *,
    meta: Any = None,
    max_pages: Optional[int] = None,
    logger: Optional[SyncLogger] = None,
) -> Result[PaginatedResult, SourceError]:
    """
    Fetch all pages of a paginated resource.

    Pages are fetched strictly one after another. The first error aborts the
    whole fetch; pages fetched before it are discarded.

    Args:
        fetch_page: Called with ``(offset, limit)``; returns Ok(page), Ok(None) or Err.
        limit: Page size.
        meta: Arbitrary metadata carried into the result.
        max_pages: Optional cap on the number of pages.
        logger: Optional logger.

    Returns:
        Ok(PaginatedResult) with every non-empty page, or the first Err.
    """
    pages: list[Any] = []
    for result in iter_pages(fetch_page, limit, max_pages=max_pages, logger=logger):
        if result.is_err:
            return Err(result.error)
        pages.append(result.value)
    return Ok(PaginatedResult(pages=pages, meta=meta))
