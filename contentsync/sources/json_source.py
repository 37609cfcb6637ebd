# ContentSync JSON Source
# One JSON document per configured URL

from contentsync.config.schema import JsonSourceConfig
from contentsync.errors import SourceError, fetch_error
from contentsync.result import Err, Ok, Result
from contentsync.sources.base import ContentSource, FetchContext, SourceDocument
from contentsync.sources.http import get_json


class JsonSource(ContentSource):
    """Fetches a fixed set of JSON documents, keyed by document id."""

    def __init__(self, config: JsonSourceConfig):
        super().__init__(config.id, media_pattern=config.media_pattern)
        self.config = config

    def fetch(self, ctx: FetchContext) -> Result[list[SourceDocument], SourceError]:
        logger = ctx.logger.child(self.id)
        documents: list[SourceDocument] = []

        for doc_id, url in self.config.files.items():
            if ctx.aborted:
                return Err(fetch_error("Fetch aborted"))

            logger.debug(f"Fetching {doc_id} from {url}")
            result = get_json(ctx.client, url, timeout_ms=self.config.max_timeout)
            if result.is_err:
                return Err(result.error)
            documents.append(SourceDocument(id=doc_id, data=result.value))

        logger.debug(f"Fetched {len(documents)} document(s)")
        return Ok(documents)
