# ContentSync URL Utilities
# Local path derivation and URL scraping from structured data

import os
import posixpath
import re
from collections.abc import Iterator
from typing import Any
from urllib.parse import unquote, urlsplit

IMAGE_PATTERN = r".+(\.jpg|\.jpeg|\.png|\.gif|\.webp)"
VIDEO_PATTERN = r".+(\.avi|\.mov|\.mp4|\.mpg|\.mpeg|\.webm)"
MEDIA_PATTERN = f"({IMAGE_PATTERN})|({VIDEO_PATTERN})"

_URL_RE = re.compile(r"https?://[^\s\"'<>()\[\]{}]+", re.IGNORECASE)


def local_path_from_url(url: str) -> str:
    """
    Derive a relative local path from a URL.

    Scheme, host, query and fragment are dropped. Dot segments are resolved
    against the URL root, so the result never climbs above it. The leading
    separator is stripped and the remaining separators follow the host
    convention.

    Args:
        url: Absolute URL.

    Returns:
        Relative path string, e.g. ``images/a.png`` on POSIX.
    """
    path = unquote(urlsplit(url).path)
    path = posixpath.normpath("/" + path.lstrip("/")).lstrip("/")
    return path.replace("/", os.sep)


def iter_leaves(node: Any) -> Iterator[Any]:
    """Yield every primitive leaf (str, int, float, bool) of a nested structure."""
    if node is None or callable(node):
        return
    if isinstance(node, (str, int, float, bool)):
        yield node
        return
    if isinstance(node, dict):
        for value in node.values():
            yield from iter_leaves(value)
    elif isinstance(node, (list, tuple)):
        for value in node:
            yield from iter_leaves(value)


def find_urls(data: Any, include: str | re.Pattern | None = None, exclude: str | re.Pattern | None = None) -> list[str]:
    """
    Find all http(s) URLs in the string leaves of a nested structure.

    Args:
        data: JSON-like data to scan.
        include: Only keep URLs matching this regex.
        exclude: Drop URLs matching this regex.

    Returns:
        Unique URLs in discovery order.
    """
    include_re = re.compile(include, re.IGNORECASE) if isinstance(include, str) else include
    exclude_re = re.compile(exclude, re.IGNORECASE) if isinstance(exclude, str) else exclude

    seen: dict[str, None] = {}
    for leaf in iter_leaves(data):
        if not isinstance(leaf, str):
            continue
        for match in _URL_RE.finditer(leaf):
            url = match.group(0).rstrip(".,;:")
            if include_re is not None and not include_re.search(url):
                continue
            if exclude_re is not None and exclude_re.search(url):
                continue
            seen.setdefault(url, None)
    return list(seen)
