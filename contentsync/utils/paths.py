# ContentSync Path Utilities
# Safe file operations, directory pruning and path tokens

import fnmatch
import os
import shutil
import tempfile
from datetime import datetime
from pathlib import Path

DOWNLOAD_PATH_TOKEN = "%DOWNLOAD_PATH%"
TIMESTAMP_TOKEN = "%TIMESTAMP%"


def expand_path(path: str | Path) -> Path:
    """
    Expand ~ and environment variables in path.

    Args:
        path: Path string or Path object.

    Returns:
        Expanded, absolute Path object.
    """
    path_str = str(path)
    path_str = os.path.expanduser(path_str)
    path_str = os.path.expandvars(path_str)
    return Path(path_str).resolve()


def ensure_dir(path: Path) -> Path:
    """
    Ensure directory exists, creating if necessary.

    Args:
        path: Directory path.

    Returns:
        The path that was ensured.
    """
    path.mkdir(parents=True, exist_ok=True)
    return path


def safe_delete(path: Path, *, missing_ok: bool = False) -> bool:
    """
    Safely delete file or directory.

    Args:
        path: Path to delete.
        missing_ok: If True, don't raise error if path doesn't exist.

    Returns:
        True if something was deleted, False if path didn't exist.

    Raises:
        FileNotFoundError: If path doesn't exist and missing_ok is False.
    """
    if not path.exists():
        if missing_ok:
            return False
        raise FileNotFoundError(f"Path does not exist: {path}")

    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink()
    return True


def atomic_write(path: Path, content: str | bytes, *, encoding: str = "utf-8") -> None:
    """
    Atomically write content to file.

    Uses a temporary file and atomic rename.

    Args:
        path: Target file path.
        content: Content to write (str or bytes).
        encoding: Encoding for string content (default utf-8).
    """
    ensure_dir(path.parent)

    fd, temp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        if isinstance(content, str):
            with os.fdopen(fd, "w", encoding=encoding) as f:
                f.write(content)
        else:
            with os.fdopen(fd, "wb") as f:
                f.write(content)
        os.replace(temp_path, path)
    except Exception:
        try:
            os.unlink(temp_path)
        except OSError:
            pass
        raise


def join_within(root: Path, relative: str | Path) -> Path:
    """
    Join a relative path onto a root directory.

    Args:
        root: Directory the result must stay inside.
        relative: Path below ``root``.

    Returns:
        ``root / relative``, unresolved.

    Raises:
        ValueError: If the resolved path is ``root`` itself or lies outside it.
    """
    path = Path(root) / relative
    if Path(root).resolve() not in path.resolve().parents:
        raise ValueError(f"Path {str(relative)!r} escapes {root}")
    return path


def save_json(text: str, path: Path, *, append_extension: bool = True) -> Path:
    """
    Write serialized JSON to a file.

    Args:
        text: File content, usually from ``DataFile.content_str()``.
        path: Target file path.
        append_extension: Force a ``.json`` extension if missing.

    Returns:
        The path that was written.
    """
    if append_extension and not str(path).endswith(".json"):
        path = path.with_name(path.name + ".json")
    atomic_write(path, text)
    return path


def copy_tree(source: Path, dest: Path) -> None:
    """
    Copy a directory tree over another, merging into existing directories.

    Files in ``dest`` that also exist in ``source`` are overwritten.
    Timestamps are preserved.

    Args:
        source: Directory to copy from.
        dest: Directory to copy into (created if missing).
    """
    shutil.copytree(source, dest, dirs_exist_ok=True, copy_function=shutil.copy2)


def matches_pattern(path: str | Path, pattern: str) -> bool:
    """
    Check if path matches a glob pattern.

    Supports:
    - * for any characters within path component
    - ** for any path components
    - ? for single character

    Args:
        path: Path to check.
        pattern: Glob pattern.

    Returns:
        True if path matches pattern.
    """
    path_str = str(path)

    if "**" in pattern:
        parts = pattern.split("**")
        if len(parts) == 2:
            prefix, suffix = parts
            if prefix and not fnmatch.fnmatch(path_str, f"{prefix}*"):
                return False
            if suffix:
                suffix = suffix.lstrip("/")
                if not fnmatch.fnmatch(path_str, f"*{suffix}"):
                    return False
            return True

    return fnmatch.fnmatch(path_str, pattern)


def matches_any_pattern(path: str | Path, patterns: list[str]) -> bool:
    """
    Check if path matches any of the given patterns.

    Args:
        path: Path to check.
        patterns: List of glob patterns.

    Returns:
        True if path matches any pattern.
    """
    return any(matches_pattern(path, p) for p in patterns)


def split_keep_patterns(keep: str | None) -> list[str]:
    """Split a ``|``-separated keep expression (e.g. ``*.json|*.csv``) into patterns."""
    if not keep:
        return []
    return [p.strip() for p in keep.split("|") if p.strip()]


def remove_files_from_dir(directory: Path, keep: str | None = None) -> int:
    """
    Remove all files and subdirectories of ``directory`` except kept ones.

    An entry is kept if its name or its path relative to ``directory``
    matches one of the keep patterns. Kept directories are preserved with
    their whole subtree. Directories left empty are removed.

    Args:
        directory: Directory to prune. The directory itself is never removed.
        keep: ``|``-separated glob patterns to preserve.

    Returns:
        Number of files removed.
    """
    if not directory.is_dir():
        return 0

    patterns = split_keep_patterns(keep)
    removed = 0

    for root, dirs, files in os.walk(directory, topdown=True):
        root_path = Path(root)

        # Prune kept directories from the walk
        kept_dirs = []
        for name in dirs:
            rel = (root_path / name).relative_to(directory).as_posix()
            if patterns and (matches_any_pattern(name, patterns) or matches_any_pattern(rel, patterns)):
                continue
            kept_dirs.append(name)
        dirs[:] = kept_dirs

        for name in files:
            file_path = root_path / name
            rel = file_path.relative_to(directory).as_posix()
            if patterns and (matches_any_pattern(name, patterns) or matches_any_pattern(rel, patterns)):
                continue
            file_path.unlink()
            removed += 1

    # Remove directories emptied by the pass above (deepest first)
    for root, dirs, _files in os.walk(directory, topdown=False):
        for name in dirs:
            dir_path = Path(root) / name
            if dir_path.is_dir() and not dir_path.is_symlink() and is_dir_empty(dir_path):
                dir_path.rmdir()

    return removed


def is_dir_empty(path: Path) -> bool:
    """Check if a directory has no entries."""
    return not any(path.iterdir())


def remove_dir_if_empty(path: Path) -> bool:
    """
    Remove a directory if it exists and is empty.

    Returns:
        True if the directory was removed.
    """
    if not path.is_dir() or not is_dir_empty(path):
        return False
    path.rmdir()
    return True


def add_filename_suffix(path: Path, suffix: str) -> Path:
    """
    Insert a suffix before the file extension.

    ``images/photo.png`` with ``@2x`` becomes ``images/photo@2x.png``.
    """
    return path.with_name(f"{path.stem}{suffix}{path.suffix}")


def get_date_string(moment: datetime | None = None) -> str:
    """Format a timestamp as ``YYYY-MM-DD_HH-MM-SS`` for use in paths."""
    moment = moment or datetime.now()
    return moment.strftime("%Y-%m-%d_%H-%M-%S")


def detokenize_path(tokenized: str, download_path: str | Path, started_at: datetime | None = None) -> Path:
    """
    Substitute path tokens and resolve the result.

    Args:
        tokenized: Path that may contain ``%DOWNLOAD_PATH%`` and ``%TIMESTAMP%``.
        download_path: Value for ``%DOWNLOAD_PATH%``.
        started_at: Value for ``%TIMESTAMP%`` (defaults to now).

    Returns:
        Resolved path.
    """
    path_str = tokenized
    if TIMESTAMP_TOKEN in path_str:
        path_str = path_str.replace(TIMESTAMP_TOKEN, get_date_string(started_at))
    if DOWNLOAD_PATH_TOKEN in path_str:
        path_str = path_str.replace(DOWNLOAD_PATH_TOKEN, str(download_path))
    return expand_path(path_str)
