"""
config.py — Single source of truth for all pipeline settings.

pydantic-settings reads .env at import time, raises a clear error if
required fields are missing, typed everywhere.

THE KNOBS THAT SHAPE A RUN:

  1. Two LLM models with different roles:
       smart_model  — source discovery + report synthesis (2 calls/run)
       cheap_model  — per-URL extraction and cleanup (up to 2 calls per URL)

     Extraction is the multiplier: 5 URLs x 2 strategies = up to 10 calls.
     Discovery and synthesis happen once each and decide the report quality.

  2. Bounded subset:
       Discovery asks for ~20 URLs, but only the first max_sources_to_crawl
       are extracted. Positional prefix, not a ranking — a cost/latency cap.

  3. Extraction thresholds:
       min_direct_extraction_chars — direct output shorter than this is
         treated as "no content" and triggers the fetch-and-clean fallback
       max_raw_html_chars — fetched HTML is cut to this prefix before being
         sent to the model for cleanup

  4. Timeouts at three levels:
       fetch_timeout_seconds              — one HTTP GET
       direct_extraction_timeout_seconds  — the direct strategy as a whole
       extraction_timeout_seconds         — everything done for one URL
     A hung URL degrades to empty text instead of stalling the join.

USAGE:
  from config import settings
  print(settings.smart_model)           # "gpt-5.2-chat"
  print(settings.max_sources_to_crawl)  # 5
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Azure AI Foundry ───────────────────────────────────────────────────────
    foundry_endpoint: str = Field(
        description="Full Foundry / Azure OpenAI endpoint URL"
    )
    foundry_api_key: str = Field(
        default="",
        description="API key — leave blank to use DefaultAzureCredential",
    )
    api_version: str = Field(
        default="2025-04-01-preview",
        description="Azure OpenAI API version for cognitiveservices endpoints",
    )

    # ── LLM Models ────────────────────────────────────────────────────────────
    smart_model: str = Field(
        default="gpt-5.2-chat",
        description="High-quality model for source discovery and report synthesis",
    )
    cheap_model: str = Field(
        default="gpt-4o-mini",
        description="Fast cheap model for per-URL extraction and HTML cleanup",
    )
    llm_timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        description="SDK-level timeout for a single model request",
    )

    # ── Source discovery ──────────────────────────────────────────────────────
    discovery_target: int = Field(
        default=20,
        ge=1,
        le=50,
        description="How many candidate URLs to ask the model for",
    )
    max_sources_to_crawl: int = Field(
        default=5,
        ge=1,
        le=20,
        description="Bounded subset — only the first N discovered URLs are extracted",
    )

    # ── Extraction ────────────────────────────────────────────────────────────
    max_concurrent_extractions: int = Field(
        default=5,
        ge=1,
        le=20,
        description="Semaphore size for the extraction fan-out",
    )
    min_direct_extraction_chars: int = Field(
        default=50,
        ge=0,
        description="Direct-strategy output at or below this length triggers the fallback",
    )
    max_raw_html_chars: int = Field(
        default=20_000,
        ge=1_000,
        description="Fetched HTML is truncated to this prefix before cleanup",
    )
    fetch_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Max seconds to wait for one URL fetch",
    )
    direct_extraction_timeout_seconds: float = Field(
        default=45.0,
        gt=0,
        description="Budget for the direct strategy — expiry falls back to fetch-and-clean",
    )
    extraction_timeout_seconds: float = Field(
        default=120.0,
        gt=0,
        description="Budget for everything done for one URL — expiry degrades to empty",
    )
    crawler_user_agent: str = Field(
        default=(
            "Mozilla/5.0 (compatible; MarketResearchBot/1.0; "
            "+https://github.com/market-research-pipeline)"
        ),
        description="User-Agent sent by the fetch-and-clean strategy",
    )

    # ── Query history ─────────────────────────────────────────────────────────
    history_max_entries: int = Field(
        default=50,
        ge=1,
        le=1000,
        description="Cap on the saved query history",
    )
    history_path: str = Field(
        default="",
        description="JSON file for the query history — blank keeps it in memory",
    )

    # ── Observability ─────────────────────────────────────────────────────────
    log_dir: str = Field(
        default="logs/",
        description="Directory for structured JSON run traces",
    )
    save_traces: bool = Field(
        default=True,
        description="Write one trace file per run under {log_dir}/traces/",
    )


# Module-level singleton. Import this everywhere, never instantiate Settings again.
settings = Settings()
