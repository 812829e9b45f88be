"""
agent/session.py — One user's research session: one run at a time + history.

WHY A SESSION:
  An orchestrator is single-use: it owns one PipelineRun and is thrown away.
  The things that outlive a run live here:
    - the "is something running?" guard — a second submit() while a run is
      active is rejected with SessionBusyError, not queued
    - the query history — appended only when a run reaches DONE

  Every submit() builds a fresh orchestrator, so re-running a query is a
  completely new run. Nothing is cached between runs.

USAGE:
  from agent.session import ResearchSession

  session = ResearchSession()
  run = await session.submit("electric vehicles market", on_progress=print)
  if run.is_done:
      print(run.report.to_markdown(run.query, run.crawled_sources))
  print(session.history.entries)
"""

from typing import Callable

from agent.errors import SessionBusyError
from agent.guardrails import validate_query
from agent.history import QueryHistory
from agent.orchestrator import PipelineOrchestrator, ProgressObserver
from agent.state import PipelineRun
from llm.client import LLMClient


class ResearchSession:

    def __init__(
        self,
        history: QueryHistory | None = None,
        orchestrator_factory: Callable[[], PipelineOrchestrator] | None = None,
    ) -> None:
        self._history = history if history is not None else QueryHistory.from_settings()
        self._orchestrator_factory = orchestrator_factory or self._default_orchestrator
        self._client: LLMClient | None = None
        self._active = False

    @property
    def history(self) -> QueryHistory:
        return self._history

    @property
    def is_busy(self) -> bool:
        return self._active

    async def submit(
        self,
        query: str,
        on_progress: ProgressObserver | None = None,
    ) -> PipelineRun:
        """
        Run the pipeline once for query.

        Raises:
            SessionBusyError — a run is already active in this session
            ValueError       — blank query (nothing is started)
        """
        if self._active:
            raise SessionBusyError("A research run is already in progress")

        query = validate_query(query)

        self._active = True
        try:
            orchestrator = self._orchestrator_factory()
            if on_progress:
                orchestrator.subscribe(on_progress)
            run = await orchestrator.run(query)
        finally:
            self._active = False

        if run.is_done:
            self._history.add(run.query)
        return run

    def delete_query(self, query: str) -> bool:
        return self._history.remove(query)

    def clear_history(self) -> None:
        if self._active:
            raise SessionBusyError("Cannot clear history while a run is in progress")
        self._history.clear()

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None

    def _default_orchestrator(self) -> PipelineOrchestrator:
        if self._client is None:
            self._client = LLMClient()
        return PipelineOrchestrator(client=self._client)
