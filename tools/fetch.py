"""
tools/fetch.py — One raw HTTP GET. Status + body, or FetchError.

THE CORE CONCEPT: A dumb fetcher
  The fetch-and-clean extraction strategy needs the raw HTML of a page.
  This module gets it and nothing else:

    - one attempt, no retry — a retry policy belongs to the caller, and
      the extractor treats the first network failure as final for a URL
    - no status interpretation — a 403 comes back as a FetchResponse with
      status_code=403; deciding that non-2xx is a failure is the caller's job
    - no content processing — the body is opaque text

  What counts as a network failure (→ FetchError):
    timeout, DNS failure, refused connection, TLS error, bad redirect,
    anything else httpx raises while talking to the server.

WHY ASYNC:
  The extractor runs up to max_concurrent_extractions URLs at once on one
  event loop. A blocking httpx.get() would serialize them.

USAGE:
  from tools.fetch import fetch_url, FetchError

  try:
      response = await fetch_url(url, headers={"User-Agent": "..."})
  except FetchError as e:
      print(f"Failed: {e}")
  else:
      if response.ok:
          print(response.body[:500])
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone

import httpx

from config import settings


# ── Result type ────────────────────────────────────────────────────────────────

class FetchError(Exception):
    """The request never produced an HTTP response."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"{reason} ({url})")
        self.url = url
        self.reason = reason


@dataclass
class FetchResponse:
    """
    A completed HTTP exchange — whatever the status code.

    url is the final URL after redirects.
    """
    url: str
    status_code: int
    body: str
    fetched_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


# ── Main function ──────────────────────────────────────────────────────────────

async def fetch_url(
    url: str,
    headers: dict[str, str] | None = None,
    *,
    timeout: float | None = None,
) -> FetchResponse:
    """
    GET a URL once and return status + body.

    Args:
        url:     Any HTTP/HTTPS URL.
        headers: Request headers (the extractor passes its crawler User-Agent).
        timeout: Override settings.fetch_timeout_seconds for this call.

    Raises:
        FetchError on any network failure. Never raises on HTTP status.
    """
    timeout = timeout if timeout is not None else settings.fetch_timeout_seconds

    try:
        async with httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=True,
        ) as client:
            response = await client.get(url, headers=headers or {})
    except httpx.TimeoutException as e:
        raise FetchError(url, f"Fetch timeout after {timeout}s") from e
    except httpx.HTTPError as e:
        raise FetchError(url, f"Fetch error: {type(e).__name__}: {e}") from e

    return FetchResponse(
        url=str(response.url),
        status_code=response.status_code,
        body=response.text,
    )
