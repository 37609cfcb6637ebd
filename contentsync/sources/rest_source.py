# ContentSync REST Source
# Offset/limit paginated JSON API

from typing import Any, Optional
from urllib.parse import urljoin

from contentsync.config.schema import RestQuery, RestSourceConfig
from contentsync.content import ContentResult, DataFile
from contentsync.errors import SourceError, config_error, fetch_error, parse_error
from contentsync.result import Err, Ok, Result
from contentsync.sources.base import ContentSource, FetchContext, SourceDocument
from contentsync.sources.http import get_json
from contentsync.sources.pagination import PageFetcher, fetch_paginated


class RestSource(ContentSource):
    """
    Fetches every configured query of a paginated REST API.

    Queries run one after another, each one paginating sequentially. Every
    page becomes a numbered document (``articles-0``, ``articles-1``, ...)
    unless ``merge_pages`` collates them into a single list document.
    """

    def __init__(self, config: RestSourceConfig):
        super().__init__(config.id, media_pattern=config.media_pattern)
        self.config = config

    def fetch(self, ctx: FetchContext) -> Result[list[SourceDocument], SourceError]:
        logger = ctx.logger.child(self.id)
        documents: list[SourceDocument] = []

        queries = self.config.get_queries()
        if not queries:
            return Err(config_error(f"Source {self.id} has no queries"))

        for query in queries:
            if ctx.aborted:
                return Err(fetch_error("Fetch aborted"))

            result = fetch_paginated(
                self._page_fetcher(ctx, query),
                self.config.limit,
                meta=query,
                max_pages=self.config.max_num_pages,
                logger=logger,
            )
            if result.is_err:
                return Err(result.error)

            pages = result.value.pages
            logger.debug(f"{query.path}: {len(pages)} page(s)")
            documents.extend(self._to_documents(query, pages))

        return Ok(documents)

    def _page_fetcher(self, ctx: FetchContext, query: RestQuery) -> PageFetcher:
        url = urljoin(self.config.base_url.rstrip("/") + "/", query.path.lstrip("/"))

        def fetch_page(offset: int, limit: int) -> Result[Optional[Any], SourceError]:
            if ctx.aborted:
                return Err(fetch_error("Fetch aborted"))
            params = {
                **query.params,
                self.config.offset_param: offset,
                self.config.limit_param: limit,
            }
            return get_json(
                ctx.client,
                url,
                params=params,
                headers=self.config.headers or None,
                timeout_ms=self.config.max_timeout,
            ).and_then(lambda body: self._extract_entries(url, body))

        return fetch_page

    def _extract_entries(self, url: str, body: Any) -> Result[Optional[list[Any]], SourceError]:
        if self.config.results_key:
            if not isinstance(body, dict) or self.config.results_key not in body:
                return Err(parse_error(f"{url}: response has no '{self.config.results_key}' key"))
            body = body[self.config.results_key]
        if body is None:
            return Ok(None)
        if not isinstance(body, list):
            return Err(parse_error(f"{url}: expected a list of entries, got {type(body).__name__}"))
        return Ok(body)

    def _to_documents(self, query: RestQuery, pages: list[list[Any]]) -> list[SourceDocument]:
        if self.config.merge_pages:
            page_results = (ContentResult([DataFile(query.document_id, page)]) for page in pages)
            merged = ContentResult.collate(page_results, query.document_id).data_files[0]
            return [SourceDocument(id=merged.local_path, data=merged.content)]

        pad = self.config.page_num_zero_pad
        return [
            SourceDocument(id=f"{query.document_id}-{str(index).zfill(pad)}", data=page)
            for index, page in enumerate(pages)
        ]
