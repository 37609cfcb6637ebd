# ContentSync Sync Engine
# Orchestrates sources, media, transforms, persistence and rollback

import threading
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional, Union
from urllib.parse import quote

import httpx

from contentsync.config.schema import ContentConfig
from contentsync.content import ContentResult, DataFile
from contentsync.logger import SyncLogger
from contentsync.plugins.driver import HookEvent, Plugin, PluginDriver, PluginError
from contentsync.plugins.transforms import plugins_from_config
from contentsync.result import Err, Ok, Result
from contentsync.sources import ContentSource, FetchContext, create_client, create_source
from contentsync.store import DataStore, Namespace
from contentsync.sync.media import MediaDownloader, MediaSyncResult
from contentsync.utils.paths import (
    copy_tree,
    detokenize_path,
    expand_path,
    join_within,
    remove_dir_if_empty,
    remove_files_from_dir,
    safe_delete,
    save_json,
)

SourceRef = Union[ContentSource, str, None]


@dataclass
class SourceSyncResult:
    """Outcome of one source within a run."""

    source_id: str
    success: bool = False
    documents: int = 0
    data_files: list[Path] = field(default_factory=list)
    media: Optional[MediaSyncResult] = None
    error: Optional[str] = None


@dataclass
class SyncResult:
    """Result of a complete sync run."""

    success: bool
    sources: dict[str, SourceSyncResult] = field(default_factory=dict)
    restored: list[str] = field(default_factory=list)
    aborted: bool = False
    plugin_errors: list[PluginError] = field(default_factory=list)

    @property
    def failed_sources(self) -> list[str]:
        return [source_id for source_id, result in self.sources.items() if not result.success]

    @property
    def has_issues(self) -> bool:
        """Check if anything failed, including recorded media failures."""
        if not self.success or self.plugin_errors:
            return True
        return any(result.media is not None and result.media.failed for result in self.sources.values())


class _SourceFailure(Exception):
    """Raised inside the per-source pipeline to stop it with a message."""


class ContentSync:
    """
    Main content synchronization engine.

    Runs every source through fetch, media download, transforms and
    persistence. If a source fails and ``backup_and_restore`` is enabled,
    every source is restored from the backup taken at the start of the run.
    """

    def __init__(
        self,
        config: ContentConfig,
        *,
        sources: Optional[Sequence[ContentSource]] = None,
        plugins: Optional[Iterable[Plugin]] = None,
        logger: Optional[SyncLogger] = None,
        client: Optional[httpx.Client] = None,
    ):
        """
        Initialize sync engine.

        Args:
            config: Validated configuration.
            sources: Sources to sync. Built from ``config.sources`` if not provided.
            plugins: Extra plugins, run before the configured content transforms.
            logger: Logger (creates one from ``config.output`` if not provided).
            client: Shared HTTP client (one is created per run if not provided).
        """
        self.config = config
        self.logger = logger or SyncLogger(verbose=config.output.verbose, log_file=config.output.log_file)
        self.client = client
        self.sources: list[ContentSource] = (
            list(sources) if sources is not None else [create_source(s) for s in config.sources]
        )
        self.plugins: list[Plugin] = list(plugins or []) + plugins_from_config(config.content_transforms)
        self.store = DataStore()
        self._abort = threading.Event()
        self._started_at = datetime.now()

        if not self.sources:
            self.logger.warning("No content sources found in config.")

    def abort(self) -> None:
        """Signal running work to stop. Pending downloads are cancelled."""
        self._abort.set()

    @property
    def aborted(self) -> bool:
        return self._abort.is_set()

    def start(self, sources: Optional[Sequence[ContentSource]] = None) -> SyncResult:
        """
        Run a full sync.

        Args:
            sources: Subset of sources to sync. All sources if not provided.

        Returns:
            SyncResult describing every source.
        """
        sources = list(sources) if sources is not None else self.sources
        result = SyncResult(success=True)

        if not sources:
            self.logger.warning("No sources found to download")
            return result

        self._started_at = datetime.now()
        self.store = DataStore()
        driver = PluginDriver(self.plugins, logger=self.logger, store=self.store, abort=self._abort)

        setup = driver.run_hook_sequential(HookEvent.SETUP)
        if setup.is_err:
            result.success = False
            result.plugin_errors.append(setup.error)
            self.logger.error("Setup failed, nothing was changed")
            result.plugin_errors.extend(driver.run_hook_all(HookEvent.DONE, result=result))
            return result

        owns_client = self.client is None
        client = self.client or create_client(self.config.max_timeout)
        try:
            self.logger.info(f"Downloading {len(sources)} sources")

            if self.config.backup_and_restore:
                self.logger.info(f"Backing up {len(sources)} sources")
                self.backup(sources)

            for index, source in enumerate(sources, start=1):
                if self.aborted:
                    result.success = False
                    result.aborted = True
                    self.logger.warning("Sync aborted")
                    break

                self.logger.info(f"Downloading source {index}/{len(sources)}: {source.id}")
                source_result = self._sync_source(source, driver, client)
                result.sources[source.id] = source_result

                if not source_result.success:
                    result.success = False
                    result.plugin_errors.extend(
                        driver.run_hook_all(HookEvent.FETCH_ERROR, source_id=source.id, error=source_result.error)
                    )
                    break

            if result.success:
                self.logger.success(f"Finished downloading {len(sources)} sources")
            elif self.config.backup_and_restore:
                self.logger.info(f"Restoring {len(sources)} sources")
                result.restored = self.restore(sources)
        finally:
            if owns_client:
                client.close()
            self.logger.debug("Cleaning up temp and backup files")
            self.clear(sources, temp=True, backups=True, downloads=False)

        result.plugin_errors.extend(driver.run_hook_all(HookEvent.DONE, result=result))
        return result

    def _sync_source(self, source: ContentSource, driver: PluginDriver, client: httpx.Client) -> SourceSyncResult:
        source_result = SourceSyncResult(source_id=source.id)
        logger = self.logger.child(source.id)
        try:
            self._run_source_pipeline(source, driver, client, source_result)
            source_result.success = True
        except _SourceFailure as e:
            source_result.error = str(e)
        except Exception as e:
            source_result.error = f"Unexpected error: {e}"

        if source_result.error:
            logger.error(f"Could not download content: {source_result.error}")
        return source_result

    def _run_source_pipeline(
        self,
        source: ContentSource,
        driver: PluginDriver,
        client: httpx.Client,
        source_result: SourceSyncResult,
    ) -> None:
        logger = self.logger.child(source.id)
        ctx = FetchContext(logger=logger, store=self.store, options=self.config, client=client, abort=self._abort)

        fetched = source.fetch(ctx)
        if fetched.is_err:
            raise _SourceFailure(str(fetched.error))
        documents = fetched.value
        source_result.documents = len(documents)
        logger.debug(f"Fetched {len(documents)} document(s)")

        doc_ids = [doc.id for doc in documents]
        if len(set(doc_ids)) != len(doc_ids):
            raise _SourceFailure(f"Source {source.id} returned duplicate document ids")

        content = ContentResult.from_documents(documents, source.media_pattern)

        hook = driver.run_hook_sequential(HookEvent.FETCH_DATA, source_id=source.id, data_files=content.data_files)
        if hook.is_err:
            raise _SourceFailure(str(hook.error))

        loaded = self._load_namespace(source.id, content.data_files)
        if loaded.is_err:
            raise _SourceFailure(loaded.error)

        media = self._download_media(source, content, client)
        if media.is_err:
            raise _SourceFailure(media.error)
        source_result.media = media.value

        hook = driver.run_hook_sequential(HookEvent.FETCH_DONE, source_id=source.id)
        if hook.is_err:
            raise _SourceFailure(str(hook.error))

        # Transforms ran on the namespace, persist what it holds now
        transformed = self.store.documents(source.id)
        if transformed.is_err:
            raise _SourceFailure(transformed.error)
        content.data_files = [DataFile(document.id, document.raw()) for document in transformed.value]

        saved = self._save_data_files(source, content.data_files)
        if saved.is_err:
            raise _SourceFailure(saved.error)
        source_result.data_files = saved.value

    def _load_namespace(self, namespace_id: str, data_files: list[DataFile]) -> Result[Namespace, str]:
        """Replace the namespace with one document per data file."""
        self.store.delete_namespace(namespace_id)
        created = self.store.create_namespace(namespace_id)
        if created.is_err:
            return created
        namespace = created.value
        for data_file in data_files:
            inserted = namespace.insert(data_file.local_path, data_file.content)
            if inserted.is_err:
                return Err(inserted.error)
        return Ok(namespace)

    def _download_media(
        self, source: ContentSource, content: ContentResult, client: httpx.Client
    ) -> Result[MediaSyncResult, str]:
        downloader = MediaDownloader(self.logger.child(source.id), client=client, abort=self._abort)
        return downloader.sync(
            content.media_downloads,
            self.config,
            download_path=self.get_download_path(source),
            temp_path=self.get_temp_path(source),
        ).map_err(str)

    def _save_data_files(self, source: ContentSource, data_files: list[DataFile]) -> Result[list[Path], str]:
        """Write every data file as JSON below the source's download dir."""
        download_dir = self.get_download_path(source)
        written: list[Path] = []
        for data_file in data_files:
            try:
                path = join_within(download_dir, self._encode_path(data_file.local_path))
                written.append(save_json(data_file.content_str(), path))
            except (OSError, TypeError, ValueError) as e:
                return Err(f"Could not save json {data_file.local_path}: {e}")
        return Ok(written)

    def _encode_path(self, local_path: str) -> str:
        if not self.config.encode_chars:
            return local_path
        return "".join(quote(ch, safe="") if ch in self.config.encode_chars else ch for ch in local_path)

    def clear(
        self,
        sources: Optional[Sequence[SourceRef]] = None,
        *,
        temp: bool = True,
        backups: bool = True,
        downloads: bool = True,
        remove_if_empty: bool = True,
    ) -> None:
        """
        Clear temp, backup and/or download files.

        Downloads matching ``config.keep`` survive; temp and backup files never do.

        Args:
            sources: Sources to clear. The whole directories if not provided.
            temp: Clear temp files.
            backups: Clear backups.
            downloads: Clear downloads.
            remove_if_empty: Remove each directory left empty.
        """
        for source in sources or [None]:
            label = f"source {_source_id(source)}" if source else "all sources"
            if temp:
                self.logger.debug(f"Clearing temp files of {label}")
                self._clear_dir(self.get_temp_path(source), remove_if_empty=remove_if_empty, ignore_keep=True)
            if backups:
                self.logger.debug(f"Clearing backup of {label}")
                self._clear_dir(self.get_backup_path(source), remove_if_empty=remove_if_empty, ignore_keep=True)
            if downloads:
                self.logger.debug(f"Clearing downloads of {label}")
                self._clear_dir(self.get_download_path(source), remove_if_empty=remove_if_empty)

        if remove_if_empty:
            if temp:
                remove_dir_if_empty(self.get_temp_path())
            if backups:
                remove_dir_if_empty(self.get_backup_path())
            if downloads:
                remove_dir_if_empty(self.get_download_path())

    def _clear_dir(self, path: Path, *, remove_if_empty: bool = True, ignore_keep: bool = False) -> None:
        if not path.exists():
            return
        try:
            remove_files_from_dir(path, None if ignore_keep else self.config.keep)
            if remove_if_empty:
                remove_dir_if_empty(path)
        except OSError as e:
            self.logger.error(f"Could not clear {path} (make sure dir is not in use): {e}")

    def backup(self, sources: Sequence[SourceRef]) -> list[str]:
        """
        Copy each source's downloads to its backup dir.

        Sources without downloads are skipped with a warning.

        Returns:
            Ids of the sources that were backed up.
        """
        backed_up: list[str] = []
        for source in sources:
            source_id = _source_id(source)
            download_path = self.get_download_path(source)
            backup_path = self.get_backup_path(source)
            if not download_path.exists():
                self.logger.warning(f"Couldn't back up {source_id}: no downloads found at {download_path}")
                continue
            try:
                self.logger.debug(f"Backing up {source_id}")
                copy_tree(download_path, backup_path)
                backed_up.append(source_id)
            except OSError as e:
                self.logger.warning(f"Couldn't back up {source_id}: {e}")
        return backed_up

    def restore(self, sources: Sequence[SourceRef], remove_backups: bool = True) -> list[str]:
        """
        Replace each source's downloads with its backup.

        Returns:
            Ids of the sources that were restored.
        """
        restored: list[str] = []
        for source in sources:
            source_id = _source_id(source)
            download_path = self.get_download_path(source)
            backup_path = self.get_backup_path(source)
            if not backup_path.exists():
                self.logger.warning(f"Couldn't restore {source_id}: no backup found at {backup_path}")
                continue
            try:
                self.logger.info(f"Restoring {source_id} from backup")
                safe_delete(download_path, missing_ok=True)
                copy_tree(backup_path, download_path)
                if remove_backups:
                    self.logger.debug(f"Removing backup for {source_id}")
                    safe_delete(backup_path, missing_ok=True)
                restored.append(source_id)
            except OSError as e:
                self.logger.error(f"Couldn't restore {source_id}: {e}")
        return restored

    def get_download_path(self, source: SourceRef = None) -> Path:
        root = expand_path(self.config.download_path)
        return root / _source_id(source) if source else root

    def get_temp_path(self, source: SourceRef = None) -> Path:
        root = detokenize_path(self.config.temp_path, self.config.download_path, self._started_at)
        return root / _source_id(source) if source else root

    def get_backup_path(self, source: SourceRef = None) -> Path:
        root = detokenize_path(self.config.backup_path, self.config.download_path, self._started_at)
        return root / _source_id(source) if source else root


def _source_id(source: SourceRef) -> str:
    if isinstance(source, ContentSource):
        return source.id
    return source or ""
