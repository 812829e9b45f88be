"""
tests/unit/test_guardrails.py — Unit tests for agent/guardrails.py

Covers: validate_query(), normalize_url(s)(), is_safe_url()
"""

import pytest
from agent.guardrails import (
    is_safe_url,
    normalize_url,
    normalize_urls,
    validate_query,
)


# ── validate_query ────────────────────────────────────────────────────────────

class TestValidateQuery:
    def test_returns_stripped_query(self):
        assert validate_query("  electric vehicles market  ") == "electric vehicles market"

    def test_single_character_is_valid(self):
        assert validate_query("x") == "x"

    def test_empty_raises(self):
        with pytest.raises(ValueError, match="empty"):
            validate_query("")

    def test_whitespace_only_raises(self):
        with pytest.raises(ValueError, match="empty"):
            validate_query("   \n\t ")

    def test_non_string_raises(self):
        with pytest.raises(ValueError, match="string"):
            validate_query(None)

    def test_long_query_accepted(self):
        query = "electric vehicles market " * 25
        assert validate_query(query) == query.strip()


# ── normalize_url / normalize_urls ────────────────────────────────────────────

class TestNormalizeUrl:
    def test_full_url_unchanged(self):
        assert normalize_url("https://example.com/a") == "https://example.com/a"

    def test_http_kept(self):
        assert normalize_url("http://example.com") == "http://example.com"

    def test_bare_domain_gets_https(self):
        assert normalize_url("example.com/report") == "https://example.com/report"

    def test_protocol_relative_gets_https(self):
        assert normalize_url("//cdn.example.com/x") == "https://cdn.example.com/x"

    def test_whitespace_stripped(self):
        assert normalize_url("  https://example.com  ") == "https://example.com"

    def test_blank_returns_empty(self):
        assert normalize_url("   ") == ""


class TestNormalizeUrls:
    def test_preserves_order(self):
        urls = ["https://c.com", "https://a.com", "https://b.com"]
        assert normalize_urls(urls) == urls

    def test_drops_blanks(self):
        assert normalize_urls(["", "https://a.com", "  "]) == ["https://a.com"]

    def test_removes_duplicates_keeping_first(self):
        urls = ["https://a.com", "https://b.com", "https://a.com"]
        assert normalize_urls(urls) == ["https://a.com", "https://b.com"]

    def test_duplicates_detected_after_normalization(self):
        assert normalize_urls(["a.com", "https://a.com"]) == ["https://a.com"]

    def test_empty_list(self):
        assert normalize_urls([]) == []


# ── is_safe_url ───────────────────────────────────────────────────────────────

class TestIsSafeUrl:
    @pytest.mark.parametrize("url", [
        "https://www.iea.org/reports/global-ev-outlook-2024",
        "http://example.com",
        "https://example.com:8443/path?q=1",
    ])
    def test_public_urls_are_safe(self, url):
        assert is_safe_url(url) is True

    @pytest.mark.parametrize("url", [
        "http://localhost/admin",
        "http://127.0.0.1:8080",
        "http://10.0.0.5/",
        "http://172.16.0.1/",
        "http://192.168.1.1/",
        "http://169.254.169.254/latest/meta-data/",
        "http://0.0.0.0/",
        "http://[::1]/",
    ])
    def test_internal_hosts_blocked(self, url):
        assert is_safe_url(url) is False

    @pytest.mark.parametrize("url", [
        "file:///etc/passwd",
        "ftp://example.com/file",
        "javascript:alert(1)",
        "example.com",
    ])
    def test_non_http_schemes_blocked(self, url):
        assert is_safe_url(url) is False

    def test_empty_and_none_blocked(self):
        assert is_safe_url("") is False
        assert is_safe_url(None) is False

    def test_userinfo_does_not_hide_host(self):
        assert is_safe_url("http://user@localhost/") is False
