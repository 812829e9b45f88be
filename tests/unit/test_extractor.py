"""
tests/unit/test_extractor.py — Unit tests for agent/extractor.py

What we test (no real HTTP, no model calls):
  - direct strategy wins when it returns enough text
  - short / failing / slow direct output falls back to fetch-and-clean
  - fetch-and-clean: non-2xx, network error, unsafe URL, empty cleanup
  - raw HTML is truncated and sent with the crawler User-Agent
  - the whole per-URL budget degrades to empty on expiry
  - extract() never raises
"""

import asyncio

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from agent.extractor import ContentExtractor
from agent.schemas import ExtractedContent
from config import settings
from llm.client import StructuredOutputError
from tools.fetch import FetchError, FetchResponse


URL = "https://example.com/ev-report"
QUERY = "electric vehicles market"
LONG_TEXT = "Global EV sales reached 14 million units in 2023, up 35% year over year."
CLEANED_TEXT = "China accounted for 60% of global electric car sales in 2023."


# ── Helpers ───────────────────────────────────────────────────────────────────

def content(text: str) -> ExtractedContent:
    return ExtractedContent(extracted_content=text)


def make_client(*outputs) -> MagicMock:
    """generate_structured returns / raises each output in turn."""
    client = MagicMock()
    client.generate_structured = AsyncMock(side_effect=list(outputs))
    return client


def ok_fetcher(body: str = "<html><body><p>EV report</p></body></html>", status: int = 200) -> AsyncMock:
    return AsyncMock(return_value=FetchResponse(url=URL, status_code=status, body=body))


def extract_result(client, fetcher, url=URL):
    extractor = ContentExtractor(client=client, fetcher=fetcher)
    return asyncio.run(extractor.extract_result(url, QUERY))


# ── Tier 1: direct ────────────────────────────────────────────────────────────

class TestDirectStrategy:
    def test_direct_success_skips_fetch(self):
        client = make_client(content(LONG_TEXT))
        fetcher = ok_fetcher()

        result = extract_result(client, fetcher)

        assert result.succeeded is True
        assert result.strategy == "direct"
        assert result.text == LONG_TEXT
        fetcher.assert_not_called()

    def test_direct_uses_cheap_tier_and_mentions_url_and_query(self):
        client = make_client(content(LONG_TEXT))

        extract_result(client, ok_fetcher())

        args, kwargs = client.generate_structured.call_args
        assert URL in args[0]
        assert QUERY in args[0]
        assert kwargs["tier"] == "cheap"

    def test_output_at_threshold_triggers_fallback(self):
        at_threshold = "x" * settings.min_direct_extraction_chars
        client = make_client(content(at_threshold), content(CLEANED_TEXT))

        result = extract_result(client, ok_fetcher())

        assert result.strategy == "fetch"
        assert result.text == CLEANED_TEXT
        assert "too little content" in result.failures[0].reason

    def test_threshold_is_measured_after_trimming(self):
        padded = "   " + "x" * 10 + " " * 100
        client = make_client(content(padded), content(CLEANED_TEXT))

        result = extract_result(client, ok_fetcher())

        assert result.strategy == "fetch"

    def test_threshold_is_configurable(self):
        client = make_client(content("short but fine"))
        with patch.object(settings, "min_direct_extraction_chars", 5):
            result = extract_result(client, ok_fetcher())
        assert result.strategy == "direct"

    def test_direct_exception_triggers_fallback(self):
        client = make_client(StructuredOutputError("bad JSON"), content(CLEANED_TEXT))

        result = extract_result(client, ok_fetcher())

        assert result.succeeded is True
        assert result.strategy == "fetch"
        assert result.failures[0].strategy == "direct"
        assert "StructuredOutputError" in result.failures[0].reason

    def test_direct_timeout_triggers_fallback(self):
        async def slow_then_clean(prompt, schema, tier):
            if "RAW CONTENT" not in prompt:
                await asyncio.sleep(1)
            return content(CLEANED_TEXT)

        client = MagicMock()
        client.generate_structured = AsyncMock(side_effect=slow_then_clean)

        with patch.object(settings, "direct_extraction_timeout_seconds", 0.01):
            result = extract_result(client, ok_fetcher())

        assert result.strategy == "fetch"
        assert "timeout" in result.failures[0].reason


# ── Tier 2: fetch and clean ───────────────────────────────────────────────────

class TestFetchAndClean:
    def test_sends_crawler_user_agent(self):
        client = make_client(content(""), content(CLEANED_TEXT))
        fetcher = ok_fetcher()

        extract_result(client, fetcher)

        headers = fetcher.call_args.kwargs["headers"]
        assert headers["User-Agent"] == settings.crawler_user_agent

    def test_raw_html_truncated_before_cleanup(self):
        body = "A" * 1_500 + "B" * 1_500
        client = make_client(content(""), content(CLEANED_TEXT))

        with patch.object(settings, "max_raw_html_chars", 1_500):
            extract_result(client, ok_fetcher(body=body))

        cleanup_prompt = client.generate_structured.call_args.args[0]
        assert "A" * 1_500 in cleanup_prompt
        assert "B" not in cleanup_prompt.split("RAW CONTENT:")[1].split("Respond")[0]

    def test_non_2xx_is_hard_failure(self):
        client = make_client(content(""))

        result = extract_result(client, ok_fetcher(status=403))

        assert result.succeeded is False
        assert result.text == ""
        assert result.failures[-1].reason == "HTTP 403"
        assert client.generate_structured.await_count == 1

    def test_network_error_is_hard_failure(self):
        client = make_client(content(""))
        fetcher = AsyncMock(side_effect=FetchError(URL, "Fetch timeout after 10.0s"))

        result = extract_result(client, fetcher)

        assert result.succeeded is False
        assert "timeout" in result.failures[-1].reason.lower()
        fetcher.assert_awaited_once()

    def test_unsafe_url_not_fetched(self):
        client = make_client(content(""))
        fetcher = ok_fetcher()

        result = extract_result(client, fetcher, url="http://169.254.169.254/latest/meta-data/")

        assert result.succeeded is False
        fetcher.assert_not_called()
        assert "unsafe" in result.failures[-1].reason

    def test_empty_cleanup_yields_empty(self):
        client = make_client(content(""), content("   "))

        result = extract_result(client, ok_fetcher())

        assert result.succeeded is False
        assert result.text == ""
        assert "no content" in result.failures[-1].reason

    def test_cleanup_failure_yields_empty(self):
        client = make_client(content(""), RuntimeError("model down"))

        result = extract_result(client, ok_fetcher())

        assert result.succeeded is False
        assert "cleanup failed" in result.failures[-1].reason

    def test_empty_body_skips_cleanup(self):
        client = make_client(content(""))

        result = extract_result(client, ok_fetcher(body="   "))

        assert result.succeeded is False
        assert client.generate_structured.await_count == 1

    def test_cleaned_text_is_normalized(self):
        client = make_client(content(""), content("Para one\n\n\n\n\nPara two   "))

        result = extract_result(client, ok_fetcher())

        assert result.text == "Para one\n\nPara two"


# ── Never raises / overall budget ─────────────────────────────────────────────

class TestIsolation:
    def test_extract_returns_plain_text(self):
        client = make_client(content(LONG_TEXT))
        extractor = ContentExtractor(client=client, fetcher=ok_fetcher())
        assert asyncio.run(extractor.extract(URL, QUERY)) == LONG_TEXT

    def test_extract_returns_empty_when_everything_fails(self):
        client = make_client(RuntimeError("a"), RuntimeError("b"))
        fetcher = AsyncMock(side_effect=FetchError(URL, "refused"))
        extractor = ContentExtractor(client=client, fetcher=fetcher)

        assert asyncio.run(extractor.extract(URL, QUERY)) == ""

    def test_unexpected_fetcher_exception_degrades_to_empty(self):
        client = make_client(content(""))
        fetcher = AsyncMock(side_effect=KeyError("surprise"))

        result = extract_result(client, fetcher)

        assert result.succeeded is False
        assert result.failures[-1].strategy == "unexpected"

    def test_overall_budget_expiry_degrades_to_empty(self):
        async def hang(*args, **kwargs):
            await asyncio.sleep(5)

        client = MagicMock()
        client.generate_structured = AsyncMock(side_effect=hang)

        with patch.object(settings, "extraction_timeout_seconds", 0.05), \
             patch.object(settings, "direct_extraction_timeout_seconds", 10.0):
            result = extract_result(client, ok_fetcher())

        assert result.succeeded is False
        assert result.text == ""
        assert result.failures[-1].strategy == "timeout"

    def test_failures_kept_even_when_fallback_succeeds(self):
        client = make_client(content("tiny"), content(CLEANED_TEXT))

        result = extract_result(client, ok_fetcher())

        assert result.succeeded is True
        assert len(result.failures) == 1
        assert result.failures[0].url == URL
