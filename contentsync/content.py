# ContentSync Content
# Data files and media downloads produced by one source fetch

import json
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional

from contentsync.utils.urls import find_urls, local_path_from_url

if TYPE_CHECKING:
    from contentsync.sources.base import SourceDocument


@dataclass(frozen=True)
class MediaDownload:
    """A remote asset and where it lands relative to the download dir."""

    url: str
    local_path: Optional[str] = None

    def __post_init__(self):
        if not self.local_path:
            object.__setattr__(self, "local_path", local_path_from_url(self.url))

    @property
    def key(self) -> tuple[str, str]:
        """Dedup key."""
        return (self.url, self.local_path or "")


@dataclass
class DataFile:
    """A document to be written as a file under the download dir."""

    local_path: str
    content: Any

    def content_str(self) -> str:
        """Raw content if already a string, else compact JSON."""
        if isinstance(self.content, str):
            return self.content
        if self.content is None:
            return ""
        return json.dumps(self.content, separators=(",", ":"), ensure_ascii=False)


@dataclass
class ContentResult:
    """Everything one source fetch wants written or downloaded."""

    data_files: list[DataFile] = field(default_factory=list)
    media_downloads: list[MediaDownload] = field(default_factory=list)

    def add_data_file(self, local_path: str, content: Any) -> DataFile:
        data_file = DataFile(local_path, content)
        self.data_files.append(data_file)
        return data_file

    def add_media_download(self, download: MediaDownload) -> None:
        self.media_downloads.append(download)

    def add_media_downloads(self, downloads: Iterable[MediaDownload]) -> None:
        self.media_downloads.extend(downloads)

    @classmethod
    def combine(cls, results: Iterable["ContentResult"]) -> "ContentResult":
        """Merge several results into one, keeping order."""
        combined = cls()
        for result in results:
            combined.data_files.extend(result.data_files)
            combined.media_downloads.extend(result.media_downloads)
        return combined

    @classmethod
    def collate(cls, results: Iterable["ContentResult"], local_path: str) -> "ContentResult":
        """
        Flatten the array-valued data files of several results into one file.

        Non-array contents are appended as single entries. Media downloads
        are combined unchanged.
        """
        combined = cls.combine(results)
        entries: list[Any] = []
        for data_file in combined.data_files:
            if isinstance(data_file.content, list):
                entries.extend(data_file.content)
            else:
                entries.append(data_file.content)
        return cls(data_files=[DataFile(local_path, entries)], media_downloads=combined.media_downloads)

    @classmethod
    def from_documents(
        cls, documents: Iterable["SourceDocument"], media_pattern: Optional[str] = None
    ) -> "ContentResult":
        """
        Build a result from fetched documents.

        Each document becomes a data file named after its id. Media URLs are
        scraped from the document data with ``media_pattern`` and joined with
        the media the document declares explicitly.
        """
        result = cls()
        for document in documents:
            result.add_data_file(document.id, document.data)
            if media_pattern:
                urls = find_urls(document.data, include=media_pattern)
                result.add_media_downloads(MediaDownload(url) for url in urls)
            result.add_media_downloads(document.media)
        return result
