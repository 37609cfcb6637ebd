# ContentSync Plugin Driver
# Lifecycle hooks and their execution modes

import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from contentsync.logger import SyncLogger
from contentsync.result import Err, Ok, Result
from contentsync.store import DataStore


class HookEvent(str, Enum):
    """Lifecycle events plugins can hook into."""

    SETUP = "setup"  # Before any source is fetched
    FETCH_DATA = "fetch_data"  # A source's documents were fetched
    FETCH_DONE = "fetch_done"  # Documents are loaded; transforms run here
    FETCH_ERROR = "fetch_error"  # A source failed
    DONE = "done"  # The run finished


@dataclass
class HookContext:
    """Passed to every hook callback."""

    logger: SyncLogger
    abort: threading.Event
    store: DataStore


HookCallback = Callable[..., Any]


@dataclass
class Plugin:
    """A named set of hook callbacks.

    Callbacks are called as ``callback(ctx, **kwargs)`` where kwargs are the
    event-specific arguments (``source_id``, ``data_files``, ``error``, ``result``).
    """

    name: str
    hooks: dict[HookEvent, HookCallback] = field(default_factory=dict)

    def handles(self, event: HookEvent) -> bool:
        return event in self.hooks


@dataclass(frozen=True)
class PluginError:
    """A failed hook callback."""

    plugin: str
    event: HookEvent
    message: str

    def __str__(self) -> str:
        return f"Plugin '{self.plugin}' failed on {self.event.value}: {self.message}"


class PluginDriver:
    """
    Runs plugin hooks in registration order.

    Two modes are available. ``run_hook_sequential`` stops at the first
    failing plugin, ``run_hook_all`` runs every plugin and collects failures.
    """

    def __init__(
        self,
        plugins: Optional[Iterable[Plugin]] = None,
        *,
        logger: SyncLogger,
        store: DataStore,
        abort: Optional[threading.Event] = None,
    ):
        """
        Initialize driver.

        Args:
            plugins: Initial plugins.
            logger: Parent logger; each plugin gets a child scoped to its name.
            store: Data store handed to hooks.
            abort: Shared abort signal.
        """
        self.plugins: list[Plugin] = list(plugins or [])
        self.logger = logger
        self.store = store
        self.abort = abort or threading.Event()

    def add(self, plugins: Iterable[Plugin]) -> None:
        """Append plugins. Names need not be unique."""
        self.plugins.extend(plugins)

    def _context(self, plugin: Plugin) -> HookContext:
        return HookContext(logger=self.logger.child(plugin.name), abort=self.abort, store=self.store)

    def _invoke(self, plugin: Plugin, event: HookEvent, kwargs: dict[str, Any]) -> Optional[PluginError]:
        try:
            plugin.hooks[event](self._context(plugin), **kwargs)
        except Exception as e:
            error = PluginError(plugin=plugin.name, event=event, message=str(e) or type(e).__name__)
            self.logger.error(str(error))
            return error
        return None

    def run_hook_sequential(self, event: HookEvent, **kwargs: Any) -> Result[None, PluginError]:
        """
        Run ``event`` on each plugin, stopping at the first failure.

        Returns:
            Ok(None) if every hook succeeded, otherwise Err with the first failure.
        """
        for plugin in list(self.plugins):
            if not plugin.handles(event):
                continue
            self.logger.debug(f"Running {event.value} hook of '{plugin.name}'")
            error = self._invoke(plugin, event, kwargs)
            if error is not None:
                return Err(error)
        return Ok(None)

    def run_hook_all(self, event: HookEvent, **kwargs: Any) -> list[PluginError]:
        """
        Run ``event`` on every plugin regardless of failures.

        Returns:
            All failures, in plugin order. Empty if every hook succeeded.
        """
        errors: list[PluginError] = []
        for plugin in list(self.plugins):
            if not plugin.handles(event):
                continue
            error = self._invoke(plugin, event, kwargs)
            if error is not None:
                errors.append(error)
        return errors
