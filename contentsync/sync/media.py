# ContentSync Media Downloader
# Deduplicated, cache-aware, all-or-nothing media downloads

import shutil
import threading
from collections.abc import Iterable
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import datetime, timezone
from email.utils import format_datetime
from pathlib import Path
from typing import Optional

import httpx

from contentsync.config.schema import ContentConfig, ImageTransform
from contentsync.content import MediaDownload
from contentsync.logger import SyncLogger
from contentsync.result import Err, Ok, Result
from contentsync.sources.http import create_client, timeout_from_ms
from contentsync.sync.images import render_derivative
from contentsync.utils.paths import (
    add_filename_suffix,
    copy_tree,
    ensure_dir,
    join_within,
    remove_files_from_dir,
    safe_delete,
)

CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class DownloadError:
    """A single failed download task."""

    url: str
    message: str

    def __str__(self) -> str:
        return f"Download failed for {self.url} due to error ({self.message})"


@dataclass(frozen=True)
class MediaSyncError:
    """A media sync that left the destination untouched."""

    message: str
    failed: tuple[DownloadError, ...] = ()
    cancelled: int = 0

    def __str__(self) -> str:
        return self.message


@dataclass
class MediaSyncResult:
    """Summary of a committed media sync."""

    total: int = 0
    downloaded: int = 0
    cached: int = 0
    failed: list[DownloadError] = field(default_factory=list)
    bytes_transferred: int = 0

    @property
    def succeeded(self) -> int:
        return self.downloaded + self.cached


@dataclass
class _TaskOutcome:
    download: MediaDownload
    temp_path: Optional[Path] = None
    cached: bool = False
    size: int = 0
    error: Optional[DownloadError] = None
    skipped: bool = False


class _TaskFailure(Exception):
    """Raised inside a download task for expected failures."""


def dedupe_downloads(downloads: Iterable[MediaDownload]) -> list[MediaDownload]:
    """Drop repeated ``(url, local_path)`` tasks, first occurrence wins."""
    seen: set[tuple[str, str]] = set()
    unique: list[MediaDownload] = []
    for download in downloads:
        if download.key in seen:
            continue
        seen.add(download.key)
        unique.append(download)
    return unique


def if_modified_since_header(path: Path) -> dict[str, str]:
    """HTTP date of a file's mtime, as an If-Modified-Since header."""
    if not path.exists():
        return {}
    modified = datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)
    return {"If-Modified-Since": format_datetime(modified, usegmt=True)}


class MediaDownloader:
    """
    Downloads a batch of URLs to a destination directory.

    All downloads are staged in a temp directory. If the batch fails, the
    temp directory is removed and the destination stays as it was. If it
    succeeds, the staged files are copied over the destination.

    Existing destination files are revalidated with a HEAD request and
    reused when unchanged.
    """

    def __init__(
        self,
        logger: SyncLogger,
        client: Optional[httpx.Client] = None,
        abort: Optional[threading.Event] = None,
    ):
        """
        Initialize downloader.

        Args:
            logger: Logger for progress and failures.
            client: Shared HTTP client. A private one is created per sync if not provided.
            abort: External abort signal, observed before each task starts.
        """
        self.logger = logger
        self.client = client
        self.abort = abort or threading.Event()

    def sync(
        self,
        downloads: Iterable[MediaDownload],
        options: ContentConfig,
        *,
        download_path: Path,
        temp_path: Path,
    ) -> Result[MediaSyncResult, MediaSyncError]:
        """
        Download every unique task into ``download_path`` via ``temp_path``.

        Args:
            downloads: Tasks, possibly with duplicates.
            options: Cache, concurrency, pruning and image settings.
            download_path: Destination directory.
            temp_path: Staging directory, removed afterwards.

        Returns:
            Ok(MediaSyncResult) once committed, or Err(MediaSyncError) with
            the destination untouched.
        """
        dest_dir = Path(download_path).resolve()
        temp_dir = Path(temp_path).resolve()
        unique = dedupe_downloads(downloads)
        result = MediaSyncResult(total=len(unique))

        self.logger.info(f"Syncing {len(unique)} files")

        owns_client = self.client is None
        client = self.client or create_client(options.max_timeout)
        try:
            if options.clear_old_files_on_start:
                self.logger.debug(f"Removing old files from: {dest_dir}")
                remove_files_from_dir(dest_dir, options.keep)

            if options.force_clear_temp_files and temp_dir.exists():
                self.logger.debug(f"Clearing temp dir: {temp_dir}")
                safe_delete(temp_dir)

            self.logger.debug(f"Creating temp dir: {temp_dir}")
            ensure_dir(temp_dir)

            outcomes, cancelled = self._run_tasks(client, unique, temp_dir, dest_dir, options)
            errors = [outcome.error for outcome in outcomes if outcome.error is not None]

            if (errors and options.abort_on_error) or self.abort.is_set():
                return self._cancel(temp_dir, errors, cancelled)

            for outcome in outcomes:
                if outcome.error is not None or outcome.skipped:
                    continue
                if outcome.cached:
                    result.cached += 1
                else:
                    result.downloaded += 1
                    result.bytes_transferred += outcome.size
            result.failed = errors

            if errors:
                self.logger.error(f"Encountered {len(errors)} error(s) while downloading {len(outcomes)} items")
                for error in errors:
                    self.logger.error(str(error))

            self._commit(temp_dir, dest_dir, options)
            return Ok(result)
        except Exception as e:
            self.logger.error(f"Media sync into {dest_dir} failed: {e}")
            self._remove_temp(temp_dir)
            return Err(MediaSyncError(f"Media sync into {dest_dir} failed: {e}"))
        finally:
            if owns_client:
                client.close()

    def _run_tasks(
        self,
        client: httpx.Client,
        downloads: list[MediaDownload],
        temp_dir: Path,
        dest_dir: Path,
        options: ContentConfig,
    ) -> tuple[list[_TaskOutcome], int]:
        """Run all tasks on the pool. Returns settled outcomes and the number of cancelled tasks."""
        stop = threading.Event()
        locks = self._path_locks(downloads)
        outcomes: list[_TaskOutcome] = []
        cancelled = 0

        with ThreadPoolExecutor(max_workers=options.max_concurrent, thread_name_prefix="media") as pool:
            futures: dict[Future, MediaDownload] = {
                pool.submit(
                    self._run_task,
                    client,
                    download,
                    temp_dir,
                    dest_dir,
                    options,
                    stop,
                    locks[download.local_path or ""],
                ): download
                for download in downloads
            }
            for future in as_completed(futures):
                if future.cancelled():
                    cancelled += 1
                    continue
                outcome = future.result()
                if outcome.skipped:
                    cancelled += 1
                    continue
                outcomes.append(outcome)
                if outcome.error is not None and options.abort_on_error and not stop.is_set():
                    stop.set()
                    for pending in futures:
                        pending.cancel()

        return outcomes, cancelled

    def _run_task(
        self,
        client: httpx.Client,
        download: MediaDownload,
        temp_dir: Path,
        dest_dir: Path,
        options: ContentConfig,
        stop: threading.Event,
        lock: threading.Lock,
    ) -> _TaskOutcome:
        with lock:
            if stop.is_set() or self.abort.is_set():
                return _TaskOutcome(download, skipped=True)
            try:
                return self._download(client, download, temp_dir, dest_dir, options)
            except (_TaskFailure, httpx.HTTPError, OSError, ValueError) as e:
                error = DownloadError(download.url, str(e) or type(e).__name__)
                self.logger.debug(str(error))
                return _TaskOutcome(download, error=error)

    def _path_locks(self, downloads: list[MediaDownload]) -> dict[str, threading.Lock]:
        """One lock per local path. Tasks writing the same file run one after another."""
        urls_by_path: dict[str, list[str]] = {}
        for download in downloads:
            urls_by_path.setdefault(download.local_path or "", []).append(download.url)
        for local_path, urls in urls_by_path.items():
            if len(urls) > 1:
                self.logger.warning(f"{len(urls)} URLs share the local path {local_path}, the last one to finish wins")
        return {local_path: threading.Lock() for local_path in urls_by_path}

    def _download(
        self,
        client: httpx.Client,
        download: MediaDownload,
        temp_dir: Path,
        dest_dir: Path,
        options: ContentConfig,
    ) -> _TaskOutcome:
        local_path = download.local_path or ""
        if options.strip:
            local_path = local_path.replace(options.strip, "")
        dest_path = join_within(dest_dir, local_path)
        temp_file = join_within(temp_dir, local_path)
        ensure_dir(temp_file.parent)
        timeout = timeout_from_ms(options.max_timeout)

        cached = False
        if not options.ignore_cache and dest_path.is_file() and not dest_path.is_symlink():
            if self._is_cache_valid(client, download.url, dest_path, options, timeout):
                shutil.copy2(dest_path, temp_file)
                cached = True
                self.logger.debug(f"Using cached {local_path}")

        size = temp_file.stat().st_size if cached else self._fetch(client, download.url, temp_file, timeout)

        self._transform_image(
            temp_file,
            dest_path,
            options.image_transforms,
            ignore_errors=options.ignore_image_transform_errors,
            ignore_cache=options.ignore_image_transform_cache or not cached,
        )
        return _TaskOutcome(download, temp_path=temp_file, cached=cached, size=size)

    def _is_cache_valid(
        self,
        client: httpx.Client,
        url: str,
        dest_path: Path,
        options: ContentConfig,
        timeout: httpx.Timeout,
    ) -> bool:
        """
        Decide whether the existing destination file can be reused.

        With both checks disabled the local file is always reused and no
        request is made.
        """
        if not options.enable_if_modified_since_check and not options.enable_content_length_check:
            return True

        response = client.head(url, headers=if_modified_since_header(dest_path), timeout=timeout)
        if response.status_code >= 400:
            raise _TaskFailure(f"HEAD returned {response.status_code}")

        is_remote_new = False
        if options.enable_if_modified_since_check:
            is_remote_new = is_remote_new or response.status_code != 304

        content_length = response.headers.get("content-length")
        if options.enable_content_length_check and content_length:
            is_remote_new = is_remote_new or int(content_length) != dest_path.stat().st_size

        return not is_remote_new

    def _fetch(self, client: httpx.Client, url: str, temp_file: Path, timeout: httpx.Timeout) -> int:
        """Stream a URL into ``temp_file``. Returns the number of bytes written."""
        size = 0
        try:
            with client.stream("GET", url, timeout=timeout) as response:
                if not response.is_success:
                    raise _TaskFailure(f"GET returned {response.status_code}")
                with open(temp_file, "wb") as f:
                    for chunk in response.iter_bytes(CHUNK_SIZE):
                        f.write(chunk)
                        size += len(chunk)
        except Exception:
            # Partial files must not be committed
            temp_file.unlink(missing_ok=True)
            raise

        if size == 0:
            temp_file.unlink(missing_ok=True)
            raise _TaskFailure("Empty response body")
        return size

    def _transform_image(
        self,
        temp_file: Path,
        dest_path: Path,
        transforms: list[ImageTransform],
        *,
        ignore_errors: bool,
        ignore_cache: bool,
    ) -> None:
        for transform in transforms:
            output = add_filename_suffix(temp_file, transform.suffix)
            cached_output = add_filename_suffix(dest_path, transform.suffix)
            try:
                if not ignore_cache and cached_output.exists():
                    self.logger.debug(f"Using cached transformed image {output.name}")
                    shutil.copy2(cached_output, output)
                else:
                    self.logger.debug(f"Saving new transformed image {output.name}")
                    render_derivative(temp_file, output, transform)
            except Exception as e:
                if not ignore_errors:
                    self.logger.error(f"Couldn't transform image {temp_file}")
                    raise _TaskFailure(f"Image transform {transform.suffix} failed: {e}") from e

    def _cancel(self, temp_dir: Path, errors: list[DownloadError], cancelled: int) -> Err[MediaSyncError]:
        self.logger.error(f"Cancelled {cancelled} remaining sync tasks due to error")
        for error in errors:
            self.logger.error(str(error))
        self._remove_temp(temp_dir)
        message = str(errors[0]) if errors else "Media sync aborted"
        return Err(MediaSyncError(message, failed=tuple(errors), cancelled=cancelled))

    def _commit(self, temp_dir: Path, dest_dir: Path, options: ContentConfig) -> None:
        if options.clear_old_files_on_success:
            self.logger.debug(f"Removing old files from: {dest_dir}")
            remove_files_from_dir(dest_dir, options.keep)

        self.logger.debug(f"Copying new files to: {dest_dir}")
        copy_tree(temp_dir, dest_dir)

        self.logger.debug(f"Removing temp dir: {temp_dir}")
        safe_delete(temp_dir, missing_ok=True)

    def _remove_temp(self, temp_dir: Path) -> None:
        if temp_dir.exists():
            self.logger.warning(f"Removing temp dir at {temp_dir} due to sync error")
            safe_delete(temp_dir, missing_ok=True)
