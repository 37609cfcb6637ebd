"""ContentSync - Content synchronization from remote sources.

Pulls structured documents and media from pluggable sources, stages them
locally, applies transform plugins and commits them so that a failed sync
never corrupts previously downloaded content.
"""

__version__ = "1.0.0"

__all__ = [
    "__version__",
    "Ok",
    "Err",
    "Result",
    "DataStore",
    "ContentSync",
    "SyncResult",
    "MediaDownloader",
    "Plugin",
    "HookEvent",
    "load_config",
]


def __getattr__(name: str):
    """Lazy import to avoid loading dependencies during setup."""
    if name in ("Ok", "Err", "Result"):
        from contentsync import result

        return getattr(result, name)
    if name == "DataStore":
        from contentsync.store import DataStore

        return DataStore
    if name in ("ContentSync", "SyncResult", "MediaDownloader"):
        from contentsync import sync

        return getattr(sync, name)
    if name in ("Plugin", "HookEvent"):
        from contentsync import plugins

        return getattr(plugins, name)
    if name == "load_config":
        from contentsync.config import load_config

        return load_config
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
