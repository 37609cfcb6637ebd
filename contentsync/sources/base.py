# ContentSync Source Contract
# Base class and shared types for content sources

import threading
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import httpx

from contentsync.config.schema import ContentConfig
from contentsync.errors import SourceError
from contentsync.logger import SyncLogger
from contentsync.result import Result
from contentsync.store import DataStore
from contentsync.utils.urls import MEDIA_PATTERN

if TYPE_CHECKING:
    from contentsync.content import MediaDownload


@dataclass
class SourceDocument:
    """A document produced by a source, with its data already resolved."""

    id: str
    data: Any
    media: Sequence["MediaDownload"] = field(default_factory=tuple)


@dataclass
class FetchContext:
    """Everything a source may use while fetching."""

    logger: SyncLogger
    store: DataStore
    options: ContentConfig
    client: httpx.Client
    abort: threading.Event = field(default_factory=threading.Event)

    @property
    def aborted(self) -> bool:
        return self.abort.is_set()


class ContentSource(ABC):
    """
    A named producer of documents.

    The source id is also the namespace in the data store and the
    subdirectory under the download, temp and backup paths.
    """

    def __init__(self, source_id: str, media_pattern: str = MEDIA_PATTERN):
        self.id = source_id
        self.media_pattern = media_pattern

    @abstractmethod
    def fetch(self, ctx: FetchContext) -> Result[list[SourceDocument], SourceError]:
        """
        Fetch all documents of this source.

        Args:
            ctx: Fetch context for this run.

        Returns:
            Ok with the documents, or Err describing the first failure.
        """

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r})"
