# ContentSync Sync Module
# Media downloads and the sync engine

from contentsync.content import ContentResult, DataFile, MediaDownload
from contentsync.sync.engine import ContentSync, SourceSyncResult, SyncResult
from contentsync.sync.images import render_derivative
from contentsync.sync.media import (
    DownloadError,
    MediaDownloader,
    MediaSyncError,
    MediaSyncResult,
    dedupe_downloads,
)

__all__ = [
    # Content
    "ContentResult",
    "DataFile",
    "MediaDownload",
    # Media
    "MediaDownloader",
    "MediaSyncResult",
    "MediaSyncError",
    "DownloadError",
    "dedupe_downloads",
    "render_derivative",
    # Engine
    "ContentSync",
    "SyncResult",
    "SourceSyncResult",
]
