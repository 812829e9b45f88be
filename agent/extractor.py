"""
agent/extractor.py — URL → query-relevant text. Never raises.

TWO-TIER EXTRACTION STRATEGY:
  The web fights automation, and not always the same way. Some sites block
  plain HTTP clients but are readable by the model's own browsing; others
  are the reverse. One strategy means one failure mode zeroes the source.
  So we try two, in order, and the first that produces text wins:

  Tier 1 — Direct
    Ask the cheap model to extract query-relevant content straight from the
    URL. Accepted only if the trimmed output is longer than
    min_direct_extraction_chars (~50). Anything shorter is usually an
    apology or a "page not available" stub, so it counts as no content.
    Bounded by direct_extraction_timeout_seconds — a slow answer falls
    through to tier 2 instead of eating the whole budget.

  Tier 2 — Fetch and clean
    Fetch the HTML ourselves with a descriptive crawler User-Agent.
    Non-2xx is final. The body is cut to max_raw_html_chars (~20,000) and
    the cheap model strips navigation, ads and footers. An empty answer is
    final too.

FAILURE ISOLATION:
  Every failure on the way is recorded as an ExtractionItemFailure and
  logged with the URL. extract_result() returns them on the result;
  extract() collapses the result to plain text exactly once. Whatever
  happens — model error, network error, HTTP 403, timeout — the caller
  gets text, possibly "". The whole attempt is bounded by
  extraction_timeout_seconds so a hung URL cannot stall the fan-out join.

USAGE:
  from agent.extractor import ContentExtractor

  extractor = ContentExtractor(client=LLMClient())
  text = await extractor.extract("https://example.com/ev-report", "electric vehicles market")

  result = await extractor.extract_result(url, query)
  print(result.succeeded, result.strategy, result.failures)
"""

import asyncio
from typing import Awaitable, Callable

from agent.guardrails import is_safe_url
from agent.schemas import ExtractedContent
from agent.state import ExtractionItemFailure, ExtractionResult
from llm.client import LLMClient
from tools.extract import clean_text, truncate_chars
from tools.fetch import FetchError, FetchResponse, fetch_url
from config import settings
from prompts.extraction import CLEAN_HTML_PROMPT, DIRECT_EXTRACTION_PROMPT


Fetcher = Callable[..., Awaitable[FetchResponse]]


class ContentExtractor:
    """
    Runs the direct → fetch-and-clean chain for one URL at a time.

    Stateless between calls: the orchestrator can run many extract()
    coroutines on one instance concurrently.
    """

    def __init__(self, client: LLMClient, fetcher: Fetcher = fetch_url) -> None:
        self._client = client
        self._fetch = fetcher

    async def extract(self, url: str, query: str = "") -> str:
        """Extracted text for url, or "" if every strategy failed."""
        result = await self.extract_result(url, query)
        return result.text

    async def extract_result(self, url: str, query: str = "") -> ExtractionResult:
        """
        Typed variant of extract(). Never raises.

        result.failures lists every strategy that failed, even when a later
        one succeeded.
        """
        failures: list[ExtractionItemFailure] = []

        try:
            result = await asyncio.wait_for(
                self._run_strategies(url, query, failures),
                timeout=settings.extraction_timeout_seconds,
            )
        except asyncio.TimeoutError:
            _fail(failures, url, "timeout",
                  f"no result within {settings.extraction_timeout_seconds}s")
            result = ExtractionResult(url=url)
        except Exception as e:
            _fail(failures, url, "unexpected", f"{type(e).__name__}: {e}")
            result = ExtractionResult(url=url)

        result.failures = failures
        if not result.succeeded:
            _log(f"No content from {url}")
        return result

    # ── Strategy chain ────────────────────────────────────────────────────────

    async def _run_strategies(
        self,
        url: str,
        query: str,
        failures: list[ExtractionItemFailure],
    ) -> ExtractionResult:
        text = await self._extract_direct(url, query, failures)
        if text:
            return ExtractionResult(url=url, text=text, succeeded=True, strategy="direct")

        text = await self._fetch_and_clean(url, failures)
        if text:
            return ExtractionResult(url=url, text=text, succeeded=True, strategy="fetch")

        return ExtractionResult(url=url)

    # ── Tier 1: direct ────────────────────────────────────────────────────────

    async def _extract_direct(
        self,
        url: str,
        query: str,
        failures: list[ExtractionItemFailure],
    ) -> str:
        prompt = DIRECT_EXTRACTION_PROMPT.format(url=url, query=query or "general market research")

        try:
            output = await asyncio.wait_for(
                self._client.generate_structured(prompt, ExtractedContent, tier="cheap"),
                timeout=settings.direct_extraction_timeout_seconds,
            )
        except asyncio.TimeoutError:
            _fail(failures, url, "direct",
                  f"timeout after {settings.direct_extraction_timeout_seconds}s")
            return ""
        except Exception as e:
            _fail(failures, url, "direct", f"{type(e).__name__}: {e}")
            return ""

        text = output.extracted_content.strip()
        if len(text) <= settings.min_direct_extraction_chars:
            _fail(failures, url, "direct", f"too little content ({len(text)} chars)")
            return ""

        return clean_text(text)

    # ── Tier 2: fetch and clean ───────────────────────────────────────────────

    async def _fetch_and_clean(
        self,
        url: str,
        failures: list[ExtractionItemFailure],
    ) -> str:
        if not is_safe_url(url):
            _fail(failures, url, "fetch", "unsafe URL — not fetched")
            return ""

        try:
            response = await self._fetch(
                url, headers={"User-Agent": settings.crawler_user_agent}
            )
        except FetchError as e:
            _fail(failures, url, "fetch", e.reason)
            return ""

        if not response.ok:
            _fail(failures, url, "fetch", f"HTTP {response.status_code}")
            return ""

        raw = truncate_chars(response.body, settings.max_raw_html_chars)
        if not raw.strip():
            _fail(failures, url, "fetch", "empty response body")
            return ""

        try:
            output = await self._client.generate_structured(
                CLEAN_HTML_PROMPT.format(raw_content=raw),
                ExtractedContent,
                tier="cheap",
            )
        except Exception as e:
            _fail(failures, url, "fetch", f"cleanup failed: {type(e).__name__}: {e}")
            return ""

        text = clean_text(output.extracted_content)
        if not text:
            _fail(failures, url, "fetch", "cleanup returned no content")
        return text


# ── Private helpers ───────────────────────────────────────────────────────────

def _fail(
    failures: list[ExtractionItemFailure],
    url: str,
    strategy: str,
    reason: str,
) -> None:
    failure = ExtractionItemFailure(url=url, strategy=strategy, reason=reason)
    failures.append(failure)
    _log(str(failure))


def _log(message: str) -> None:
    print(f"[extractor] {message}")
