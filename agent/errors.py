"""
agent/errors.py — Fatal pipeline errors.

Every error that can end a run derives from PipelineError and carries:
  stage        — the PipelineStage the run was in when it failed
  user_message — what the caller shows; never a stack trace

Per-URL extraction failures are NOT here. They are never fatal and never
raised — see ExtractionItemFailure in agent/state.py.

The orchestrator is the only place these are caught. It turns them into
PipelineRun.error_kind / error_message, so no exception type crosses the
caller-facing surface.
"""

from agent.state import ErrorKind, PipelineStage


class PipelineError(Exception):
    kind: ErrorKind = ErrorKind.UNCLASSIFIED
    default_message = (
        "An unexpected error occurred while generating the report. "
        "Please try again later."
    )

    def __init__(
        self,
        detail: str = "",
        *,
        stage: PipelineStage | None = None,
        user_message: str | None = None,
    ) -> None:
        super().__init__(detail or self.default_message)
        self.detail = detail
        self.stage = stage
        self.user_message = user_message or self.default_message


class DiscoveryError(PipelineError):
    kind = ErrorKind.DISCOVERY
    default_message = "Could not discover any relevant websites. Try a different query."


class AggregationEmptyError(PipelineError):
    kind = ErrorKind.AGGREGATION_EMPTY
    default_message = (
        "Could not extract meaningful content from the discovered websites. "
        "They may be blocking automated access. Please try a different query."
    )


class SynthesisError(PipelineError):
    kind = ErrorKind.SYNTHESIS
    default_message = "Report generation failed. Please try again."


class UnclassifiedError(PipelineError):
    kind = ErrorKind.UNCLASSIFIED

    @classmethod
    def wrap(cls, exc: BaseException, stage: PipelineStage) -> "UnclassifiedError":
        err = cls(f"{type(exc).__name__}: {exc}", stage=stage)
        err.__cause__ = exc
        return err


class SessionBusyError(RuntimeError):
    """A query was submitted while the session's previous run is still active."""
