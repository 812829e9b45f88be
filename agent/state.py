"""
agent/state.py — PipelineRun dataclass + the enums and records around it.

Design principles:
  - A dataclass, not a dict — typos become AttributeError, not silent new keys
  - One PipelineRun per submission, owned by the orchestrator, discarded
    when the run reaches DONE or ERROR — nothing is persisted mid-run
  - Explicit stage machine — no ambiguity about where in the pipeline we are

THE STAGE MACHINE:

  IDLE → DISCOVERING → EXTRACTING → GENERATING → DONE
              │             │            │
              └─────────────┴────────────┴──→ ERROR

  ERROR always records which working stage it came from (failed_stage)
  and which kind of failure ended the run (error_kind).

ExtractionResult vs ExtractionItemFailure:
  ExtractionResult is what every extraction task produces — success or not.
  ExtractionItemFailure is the typed record of why one strategy failed for
  one URL. Failures are kept on the result for logging and tracing; the
  orchestrator only ever looks at .text.

USAGE:
  from agent.state import PipelineRun, PipelineStage

  run = PipelineRun(query="electric vehicles market")
  run.enter(PipelineStage.DISCOVERING)
  run.record_success(report)
  print(run.stage)      # PipelineStage.DONE
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from agent.errors import PipelineError
    from agent.schemas import Report


# ── Enums ──────────────────────────────────────────────────────────────────────

class PipelineStage(str, Enum):
    IDLE        = "idle"
    DISCOVERING = "discovering"
    EXTRACTING  = "extracting"
    GENERATING  = "generating"
    DONE        = "done"
    ERROR       = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (PipelineStage.DONE, PipelineStage.ERROR)


class ErrorKind(str, Enum):
    DISCOVERY         = "discovery"
    AGGREGATION_EMPTY = "aggregation_empty"
    SYNTHESIS         = "synthesis"
    UNCLASSIFIED      = "unclassified"


# ── Per-URL extraction records ────────────────────────────────────────────────

@dataclass(frozen=True)
class ExtractionItemFailure:
    """
    Why one strategy produced nothing for one URL.

    strategy: "direct", "fetch", "timeout" (the whole per-URL budget ran out)
              or "unexpected" (a strategy raised something it should not have)
    """
    url: str
    strategy: str
    reason: str

    def __str__(self) -> str:
        return f"{self.url} [{self.strategy}] {self.reason}"


@dataclass
class ExtractionResult:
    """
    The outcome of extracting one URL.

    succeeded=False means every strategy failed — text is "".
    strategy tells you which tier produced the text:
      "direct" — the model extracted it straight from the URL
      "fetch"  — we fetched the HTML and the model cleaned it
      "none"   — nothing worked
    """
    url: str
    text: str = ""
    succeeded: bool = False
    strategy: str = "none"
    failures: list[ExtractionItemFailure] = field(default_factory=list)

    @property
    def char_count(self) -> int:
        return len(self.text)


# ── Progress events ───────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ProgressEvent:
    """
    One snapshot of a run, emitted after every meaningful change.

    The final event of a run has stage DONE (report set) or ERROR
    (error_message set). url is set on per-extraction events.
    """
    stage: PipelineStage
    discovered_count: int
    extracted_count: int
    total_to_extract: int
    message: str = ""
    url: str = ""
    report: Report | None = None
    error_message: str = ""

    @property
    def is_terminal(self) -> bool:
        return self.stage.is_terminal


# ── PipelineRun ───────────────────────────────────────────────────────────────

@dataclass
class PipelineRun:
    """
    The complete state of one pipeline invocation.

    Written only by the orchestrator. Observers get ProgressEvent snapshots,
    never this object while the run is active.
    """

    query: str
    """The validated query. Never modified after construction."""

    stage: PipelineStage = PipelineStage.IDLE

    # ── Discovery output ───────────────────────────────────────────────────────
    discovered_sources: list[str] = field(default_factory=list)
    """Everything the discoverer returned, in order."""

    crawled_sources: list[str] = field(default_factory=list)
    """The bounded subset actually extracted."""

    # ── Extraction progress ────────────────────────────────────────────────────
    extracted_count: int = 0
    """Settled extraction tasks — success or degraded-empty alike."""

    extraction_results: list[ExtractionResult] = field(default_factory=list)
    """Per-URL results in crawled_sources order. Set when EXTRACTING exits."""

    aggregated_chars: int = 0

    # ── Result ─────────────────────────────────────────────────────────────────
    report: Report | None = None

    error_kind: ErrorKind | None = None
    failed_stage: PipelineStage | None = None
    error_message: str = ""

    errors: list[str] = field(default_factory=list)
    """Non-fatal diagnostics (per-URL extraction failures) plus the fatal one, if any."""

    # ── Timing ─────────────────────────────────────────────────────────────────
    started_at: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
    completed_at: str = ""

    # ── Transitions ────────────────────────────────────────────────────────────

    def enter(self, stage: PipelineStage) -> None:
        if self.stage.is_terminal:
            raise RuntimeError(f"Run already finished ({self.stage.value})")
        self.stage = stage

    def record_success(self, report: Report) -> None:
        self.report = report
        self.stage = PipelineStage.DONE
        self.completed_at = datetime.now(timezone.utc).isoformat()

    def record_failure(self, error: PipelineError) -> None:
        """Mark run as ERROR, remembering which stage it failed in."""
        self.failed_stage = error.stage or self.stage
        self.error_kind = error.kind
        self.error_message = error.user_message
        self.errors.append(f"{error.kind.value}: {error}")
        self.stage = PipelineStage.ERROR
        self.completed_at = datetime.now(timezone.utc).isoformat()

    # ── Convenience ────────────────────────────────────────────────────────────

    @property
    def total_to_extract(self) -> int:
        return len(self.crawled_sources)

    @property
    def succeeded_count(self) -> int:
        return sum(1 for r in self.extraction_results if r.succeeded)

    @property
    def is_done(self) -> bool:
        return self.stage == PipelineStage.DONE

    @property
    def is_finished(self) -> bool:
        return self.stage.is_terminal

    def snapshot(self, message: str = "", url: str = "") -> ProgressEvent:
        return ProgressEvent(
            stage=self.stage,
            discovered_count=len(self.discovered_sources),
            extracted_count=self.extracted_count,
            total_to_extract=self.total_to_extract,
            message=message,
            url=url,
            report=self.report if self.stage == PipelineStage.DONE else None,
            error_message=self.error_message,
        )
