"""
agent/guardrails.py — Input validation and URL safety checks.

WHAT GUARDRAILS DO:
  They catch bad inputs before they waste LLM calls, and stop model-chosen
  URLs from pointing the crawler somewhere it should never go.

  Without guardrails:
    - submitting "   " → discovery sends an empty query to the model
    - discovery returns "example.com" → httpx rejects a URL without a scheme
    - discovery returns "http://169.254.169.254/..." → we fetch cloud metadata

LAYERS COVERED:
  1. Input (query validation)     — before the run starts
  2. Discovery output cleanup     — before the bounded subset is taken
  3. URL safety                   — before the fetch-and-clean strategy

USAGE:
  from agent.guardrails import validate_query, normalize_urls, is_safe_url

  clean = validate_query(query)            # raises ValueError on bad input
  urls = normalize_urls(raw_websites)      # ordered, de-duplicated, schemed
  if not is_safe_url(url):
      skip()
"""

import re


# ── Query validation ──────────────────────────────────────────────────────────

def validate_query(query: str) -> str:
    """
    Validate and clean a research query before running the pipeline.

    Returns the stripped query if valid.
    Raises ValueError with a human-readable message if invalid.

    Any non-blank query is accepted, of any length, even a single
    character. Whether it finds sources is discovery's problem, not input
    validation's.
    """
    if not isinstance(query, str):
        raise ValueError(f"Query must be a string, got {type(query).__name__}")

    query = query.strip()

    if not query:
        raise ValueError("Query cannot be empty")

    return query


# ── Discovery output cleanup ──────────────────────────────────────────────────

_SCHEME = re.compile(r"^[a-z][a-z0-9+.-]*://", re.IGNORECASE)


def normalize_url(url: str) -> str:
    """
    Strip whitespace and give bare domains an https:// scheme.

    "example.com/report" → "https://example.com/report"
    "//cdn.example.com"  → "https://cdn.example.com"
    Returns "" for blank input.
    """
    url = (url or "").strip()
    if not url:
        return ""
    if url.startswith("//"):
        return "https:" + url
    if not _SCHEME.match(url):
        return "https://" + url
    return url


def normalize_urls(urls: list[str]) -> list[str]:
    """
    Normalize each URL, drop blanks and exact duplicates, preserve order.

    Order matters: the bounded subset is a positional prefix of this list.
    """
    seen: set[str] = set()
    result = []
    for raw in urls:
        url = normalize_url(raw)
        if url and url not in seen:
            seen.add(url)
            result.append(url)
    return result


# ── URL safety ────────────────────────────────────────────────────────────────

# Patterns that indicate an internal/unsafe URL target
_BLOCKED_HOSTS = re.compile(
    r"^(localhost|127\.\d+\.\d+\.\d+|0\.0\.0\.0"
    r"|10\.\d+\.\d+\.\d+|172\.(1[6-9]|2\d|3[01])\.\d+\.\d+"
    r"|192\.168\.\d+\.\d+|169\.254\.\d+\.\d+|::1|\[::1\])$",
    re.IGNORECASE,
)


def is_safe_url(url: str) -> bool:
    """
    Return True if the URL is safe to fetch.

    Blocks:
      - Empty or non-string URLs
      - Non-http/https schemes (file://, ftp://, data://, etc.)
      - Localhost, private and link-local IP ranges (SSRF prevention)

    This is a fast structural check, not a full security audit.
    """
    if not url or not isinstance(url, str):
        return False

    url = url.strip()

    if not url.lower().startswith(("http://", "https://")):
        return False

    try:
        without_scheme = url.split("://", 1)[1]
        authority = without_scheme.split("/")[0].split("?")[0].split("#")[0]
        host = authority.rsplit("@", 1)[-1]
        if host.startswith("["):
            host = host.split("]")[0] + "]"
        else:
            host = host.split(":")[0]
        host = host.lower()
    except (IndexError, AttributeError):
        return False

    if not host:
        return False

    if _BLOCKED_HOSTS.match(host):
        return False

    return True
