# ContentSync Sources Module
# Source contract, pagination protocol and reference connectors

from contentsync.config.schema import JsonSourceConfig, RestSourceConfig
from contentsync.sources.base import ContentSource, FetchContext, SourceDocument
from contentsync.sources.http import create_client, get_json
from contentsync.sources.json_source import JsonSource
from contentsync.sources.pagination import PaginatedResult, fetch_paginated, iter_pages
from contentsync.sources.rest_source import RestSource


def create_source(config: JsonSourceConfig | RestSourceConfig) -> ContentSource:
    """
    Build a source from its configuration.

    Raises:
        ValueError: If the source type is unknown.
    """
    if isinstance(config, JsonSourceConfig):
        return JsonSource(config)
    if isinstance(config, RestSourceConfig):
        return RestSource(config)
    raise ValueError(f"Unknown source type: {type(config).__name__}")


__all__ = [
    # Contract
    "ContentSource",
    "FetchContext",
    "SourceDocument",
    "create_source",
    # Pagination
    "PaginatedResult",
    "fetch_paginated",
    "iter_pages",
    # HTTP
    "create_client",
    "get_json",
    # Connectors
    "JsonSource",
    "RestSource",
]
