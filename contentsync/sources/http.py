# ContentSync HTTP Helpers
# httpx client creation and JSON requests returning Results

from typing import Any, Optional

import httpx

from contentsync.errors import SourceError, fetch_error, parse_error
from contentsync.result import Err, Ok, Result

USER_AGENT = "contentsync"


def timeout_from_ms(timeout_ms: int) -> httpx.Timeout:
    """Build an httpx timeout from milliseconds."""
    return httpx.Timeout(timeout_ms / 1000)


def create_client(timeout_ms: int = 30_000, headers: Optional[dict[str, str]] = None) -> httpx.Client:
    """
    Create the shared HTTP client for a sync run.

    Args:
        timeout_ms: Default request timeout in milliseconds.
        headers: Extra default headers.

    Returns:
        Configured httpx.Client. The caller closes it.
    """
    return httpx.Client(
        timeout=timeout_from_ms(timeout_ms),
        follow_redirects=True,
        headers={"User-Agent": USER_AGENT, **(headers or {})},
    )


def get_json(
    client: httpx.Client,
    url: str,
    *,
    params: Optional[dict[str, Any]] = None,
    headers: Optional[dict[str, str]] = None,
    timeout_ms: Optional[int] = None,
) -> Result[Any, SourceError]:
    """
    GET a URL and decode the body as JSON.

    Returns:
        Ok with the decoded body, Err(fetch) for network and HTTP status
        failures, Err(parse) for bodies that are not JSON.
    """
    kwargs: dict[str, Any] = {}
    if timeout_ms is not None:
        kwargs["timeout"] = timeout_from_ms(timeout_ms)

    try:
        response = client.get(url, params=params, headers=headers, **kwargs)
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        return Err(fetch_error(f"GET {url} returned {e.response.status_code}"))
    except httpx.HTTPError as e:
        return Err(fetch_error(f"GET {url} failed: {e}"))

    try:
        return Ok(response.json())
    except ValueError as e:
        return Err(parse_error(f"GET {url} returned invalid JSON: {e}"))
