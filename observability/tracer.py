"""
observability/tracer.py — Span-based tracing for one pipeline run.

THE CORE CONCEPT:
  Every stage of the pipeline is a Span: a named unit of work with a start
  time, end time, status, and metadata dict.

  A Trace collects all spans for one run and saves them to disk as JSON.
  This gives you a permanent record of exactly what the pipeline did:
    - Which URLs discovery returned, and which were crawled
    - Which extraction strategy worked for each URL, or why none did
    - How long synthesis took
    - Which stage a failed run died in, and why

WHAT GETS TRACED:
  - discovery   → n_discovered, n_crawled, duration
  - extraction  → per-URL strategy / chars / failures, n_succeeded, duration
  - synthesis   → input chars, report chars, duration
  - run         → overall: stage reached, error kind, counts, duration

USAGE:
  tracer = Tracer(query="...", run_id="abc123")

  with tracer.span("discovery") as span:
      urls = await discoverer.discover(query)
      span.metadata["n_discovered"] = len(urls)

  tracer.finish(run)
  path = tracer.save()
"""

import json
import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from pathlib import Path

from agent.state import ExtractionResult, PipelineRun
from config import settings


# ── Span ──────────────────────────────────────────────────────────────────────

@dataclass
class Span:
    """
    One stage of a run: discovery, extraction or synthesis.

    metadata is free-form per stage. The extraction span additionally
    gets one entry per crawled URL through record_extraction().
    """
    name: str
    step: int
    started_at: float       # time.monotonic(), for duration math
    ended_at: float = 0.0
    duration_ms: float = 0.0
    status: str = "success"     # or "error"
    metadata: dict = field(default_factory=dict)
    error: str = ""

    def record_extraction(self, result: ExtractionResult) -> None:
        self.metadata.setdefault("urls", []).append({
            "url": result.url,
            "strategy": result.strategy,
            "chars": result.char_count,
            "failures": [str(f) for f in result.failures],
        })

    def finish(self, status: str = "success", error: str = "") -> None:
        self.ended_at = time.monotonic()
        self.duration_ms = round((self.ended_at - self.started_at) * 1000, 2)
        self.status = status
        self.error = error


# ── Trace ─────────────────────────────────────────────────────────────────────

@dataclass
class Trace:
    """
    Complete record of one pipeline run: all spans + summary stats.

    Saved to {log_dir}/traces/{run_id}.json after the run completes.
    """
    run_id: str
    query: str
    started_at: str         # ISO timestamp
    completed_at: str = ""
    spans: list[Span] = field(default_factory=list)

    # Summary stats (filled by finish())
    status: str = "running"
    failed_stage: str = ""
    error_kind: str = ""
    n_discovered: int = 0
    n_crawled: int = 0
    n_extracted: int = 0
    n_succeeded: int = 0
    n_item_failures: int = 0
    aggregated_chars: int = 0
    report_chars: int = 0
    errors: list[str] = field(default_factory=list)
    total_duration_ms: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)


# ── Tracer ────────────────────────────────────────────────────────────────────

class Tracer:
    """
    One per PipelineRun. The orchestrator opens a span per stage, calls
    finish() with the terminal run and, when save_traces is on, save().
    """

    def __init__(self, query: str, run_id: str | None = None) -> None:
        self._query = query
        self._run_id = run_id or uuid.uuid4().hex[:12]
        self._started = time.monotonic()
        self._trace = Trace(
            run_id=self._run_id,
            query=query,
            started_at=datetime.now(timezone.utc).isoformat(),
        )
        self._step_counter = 0

    @property
    def run_id(self) -> str:
        return self._run_id

    @property
    def trace(self) -> Trace:
        return self._trace

    @contextmanager
    def span(self, name: str):
        """
        Open a numbered span for one stage and close it on exit.

        A stage that raises leaves an "error" span behind; the exception
        still reaches the orchestrator.
        """
        self._step_counter += 1
        s = Span(name=name, step=self._step_counter, started_at=time.monotonic())
        self._trace.spans.append(s)
        try:
            yield s
            s.finish(status="success")
        except Exception as exc:
            s.finish(status="error", error=f"{type(exc).__name__}: {exc}")
            raise

    def finish(self, run: PipelineRun) -> None:
        """
        Copy the summary stats off the terminal run. Call once, after the
        last span has closed.
        """
        elapsed = time.monotonic() - self._started
        self._trace.completed_at = datetime.now(timezone.utc).isoformat()
        self._trace.total_duration_ms = round(elapsed * 1000, 2)
        self._trace.status = run.stage.value
        self._trace.failed_stage = run.failed_stage.value if run.failed_stage else ""
        self._trace.error_kind = run.error_kind.value if run.error_kind else ""
        self._trace.n_discovered = len(run.discovered_sources)
        self._trace.n_crawled = len(run.crawled_sources)
        self._trace.n_extracted = run.extracted_count
        self._trace.n_succeeded = run.succeeded_count
        self._trace.n_item_failures = sum(len(r.failures) for r in run.extraction_results)
        self._trace.aggregated_chars = run.aggregated_chars
        self._trace.errors = list(run.errors)
        if run.report is not None:
            self._trace.report_chars = sum(len(text) for _, text in run.report.sections())

    def save(self, log_dir: Path | None = None) -> Path:
        """
        Write the trace to {log_dir}/traces/{run_id}.json.
        Returns the path written. Creates the directory if needed.
        """
        if log_dir is None:
            log_dir = Path(settings.log_dir) / "traces"
        log_dir.mkdir(parents=True, exist_ok=True)

        path = log_dir / f"{self._run_id}.json"
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self._trace.to_dict(), f, indent=2, default=str)

        return path
