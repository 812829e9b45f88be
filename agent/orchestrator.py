"""
agent/orchestrator.py — Full pipeline: Discover → fan-out Extract → Synthesize.

THE PIPELINE:

  1. Discoverer asks the smart model for ~20 candidate URLs
  2. The list is cut to the bounded subset (first max_sources_to_crawl)
  3. Every URL in the subset is extracted concurrently (fan-out), bounded by
     a semaphore; the orchestrator waits for ALL of them to settle (fan-in)
  4. Non-empty texts are joined in source order with "---" separators
  5. Synthesizer turns the aggregated text into a four-section Report

  IDLE → DISCOVERING → EXTRACTING → GENERATING → DONE, or ERROR from any
  working stage. One pass per orchestrator instance.

FAILURE ISOLATION:
  A URL that fails never aborts the join — the extractor turns every
  per-URL failure into empty text, so the join only ever sees strings.
  Stage failures are different: no URLs, no extractable content, a broken
  report, or anything unexpected all end the run in ERROR, tagged with the
  stage they happened in. run() returns the PipelineRun either way; it only
  raises for a blank query (ValueError) or for being called twice.

PROGRESS:
  subscribe(observer) registers a callback that receives a ProgressEvent
  after every meaningful step — stage changes, each settled extraction,
  and the terminal DONE / ERROR event. stream(query) wraps the same events
  as an async iterator. The extraction counter increments once per settled
  task, success or not, so it reaches the total exactly when EXTRACTING exits.

USAGE:
  from agent.orchestrator import PipelineOrchestrator

  orchestrator = PipelineOrchestrator(client=LLMClient())
  orchestrator.subscribe(lambda e: print(e.stage.value, e.extracted_count))
  run = await orchestrator.run("electric vehicles market")
  print(run.stage, run.report or run.error_message)

  # or, as a stream
  async for event in PipelineOrchestrator(client=client).stream(query):
      print(event.message)
"""

import asyncio
from typing import AsyncIterator, Callable

from agent.discoverer import SourceDiscoverer
from agent.errors import AggregationEmptyError, DiscoveryError, PipelineError, UnclassifiedError
from agent.extractor import ContentExtractor
from agent.guardrails import validate_query
from agent.state import (
    ExtractionItemFailure,
    ExtractionResult,
    PipelineRun,
    PipelineStage,
    ProgressEvent,
)
from agent.synthesizer import ReportSynthesizer
from observability.tracer import Tracer
from llm.client import LLMClient
from config import settings


SEPARATOR = "\n\n---\n\n"

ProgressObserver = Callable[[ProgressEvent], None]


def aggregate_content(results: list[ExtractionResult]) -> str:
    """
    Join the non-empty texts in the order given.

    Empty iff every result is empty or whitespace.
    """
    return SEPARATOR.join(r.text for r in results if r.text and r.text.strip())


class PipelineOrchestrator:
    """
    Owns one PipelineRun from IDLE to DONE / ERROR.

    Collaborators default to the real ones built on a shared LLMClient;
    pass your own to test or to swap a stage.
    """

    def __init__(
        self,
        client: LLMClient | None = None,
        *,
        discoverer: SourceDiscoverer | None = None,
        extractor: ContentExtractor | None = None,
        synthesizer: ReportSynthesizer | None = None,
        tracer_factory: Callable[..., Tracer] = Tracer,
    ) -> None:
        if client is None and None in (discoverer, extractor, synthesizer):
            client = LLMClient()

        self._discoverer = discoverer or SourceDiscoverer(client=client)
        self._extractor = extractor or ContentExtractor(client=client)
        self._synthesizer = synthesizer or ReportSynthesizer(client=client)
        self._tracer_factory = tracer_factory

        self._observers: list[ProgressObserver] = []
        self._run: PipelineRun | None = None

    @property
    def current_run(self) -> PipelineRun | None:
        return self._run

    # ── Observation ───────────────────────────────────────────────────────────

    def subscribe(self, observer: ProgressObserver) -> Callable[[], None]:
        """Register observer; returns a function that unregisters it."""
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def _emit(self, run: PipelineRun, message: str = "", url: str = "") -> None:
        event = run.snapshot(message=message, url=url)
        if message:
            _log(message)
        for observer in list(self._observers):
            try:
                observer(event)
            except Exception as e:
                _log(f"Progress observer failed: {type(e).__name__}: {e}")

    async def stream(self, query: str) -> AsyncIterator[ProgressEvent]:
        """
        Run the pipeline, yielding every ProgressEvent as it happens.

        The last event has stage DONE (with report) or ERROR (with
        error_message). Raises ValueError for a blank query.
        """
        queue: asyncio.Queue[ProgressEvent] = asyncio.Queue()
        unsubscribe = self.subscribe(queue.put_nowait)
        task = asyncio.ensure_future(self.run(query))

        try:
            while True:
                if task.done():
                    while not queue.empty():
                        yield queue.get_nowait()
                    break

                getter = asyncio.ensure_future(queue.get())
                done, _ = await asyncio.wait(
                    {getter, task}, return_when=asyncio.FIRST_COMPLETED
                )
                if getter in done:
                    yield getter.result()
                else:
                    getter.cancel()

            await task
        finally:
            unsubscribe()
            if not task.done():
                task.cancel()

    # ── Run ───────────────────────────────────────────────────────────────────

    async def run(self, query: str) -> PipelineRun:
        """
        Execute the pipeline once for query and return the terminal run.

        Stage failures end in PipelineStage.ERROR, never in an exception.
        """
        if self._run is not None:
            raise RuntimeError("PipelineOrchestrator runs once — create a new instance")

        query = validate_query(query)
        run = PipelineRun(query=query)
        self._run = run
        tracer = self._tracer_factory(query=query)

        try:
            await self._execute(run, tracer)
        except PipelineError as e:
            if e.stage is None:
                e.stage = run.stage
            run.record_failure(e)
        except Exception as e:
            run.record_failure(UnclassifiedError.wrap(e, run.stage))

        if run.is_done:
            self._emit(run, "Report complete")
        elif run.is_finished:
            self._emit(
                run,
                f"Run failed in {run.failed_stage.value}: {run.error_message}",
            )

        tracer.finish(run)
        if settings.save_traces:
            try:
                path = tracer.save()
                _log(f"Trace saved → {path}")
            except OSError as e:
                _log(f"Could not save trace: {e}")

        return run

    async def _execute(self, run: PipelineRun, tracer: Tracer) -> None:
        """The stage sequence. Modifies run in place; raises on stage failure."""

        # ── Stage 1: Discover ─────────────────────────────────────────────────
        run.enter(PipelineStage.DISCOVERING)
        self._emit(run, "Discovering relevant websites...")

        with tracer.span("discovery") as span:
            urls = await self._discoverer.discover(run.query)
            if not urls:
                raise DiscoveryError("Discovery returned no URLs", stage=PipelineStage.DISCOVERING)
            run.discovered_sources = list(urls)
            run.crawled_sources = run.discovered_sources[: settings.max_sources_to_crawl]
            span.metadata["n_discovered"] = len(run.discovered_sources)
            span.metadata["n_crawled"] = len(run.crawled_sources)

        # ── Stage 2: Extract (fan-out / fan-in) ───────────────────────────────
        run.enter(PipelineStage.EXTRACTING)
        self._emit(
            run,
            f"Discovered {len(run.discovered_sources)} sources — "
            f"extracting content (0/{run.total_to_extract})...",
        )

        with tracer.span("extraction") as span:
            results = await self._extract_all(run)
            run.extraction_results = results
            for result in results:
                span.record_extraction(result)
            span.metadata["n_succeeded"] = run.succeeded_count

        for result in results:
            run.errors.extend(str(f) for f in result.failures)

        content = aggregate_content(results)
        run.aggregated_chars = len(content)
        if not content:
            raise AggregationEmptyError(
                f"All {run.total_to_extract} extractions came back empty",
                stage=PipelineStage.EXTRACTING,
            )

        # ── Stage 3: Synthesize ───────────────────────────────────────────────
        run.enter(PipelineStage.GENERATING)
        self._emit(
            run,
            f"Generating report from {run.succeeded_count} of "
            f"{run.total_to_extract} sources...",
        )

        with tracer.span("synthesis") as span:
            span.metadata["input_chars"] = len(content)
            report = await self._synthesizer.synthesize(content, run.query)
            span.metadata["report_chars"] = sum(len(text) for _, text in report.sections())

        run.record_success(report)

    async def _extract_all(self, run: PipelineRun) -> list[ExtractionResult]:
        """
        Extract every crawled URL concurrently; wait for all to settle.

        Completions are consumed in arrival order (counter + progress event)
        and stored by index, so the returned list is in source order.
        """
        urls = run.crawled_sources
        semaphore = asyncio.Semaphore(settings.max_concurrent_extractions)

        async def extract_one(index: int, url: str) -> tuple[int, ExtractionResult]:
            async with semaphore:
                try:
                    result = await self._extractor.extract_result(url, run.query)
                except Exception as e:
                    failure = ExtractionItemFailure(
                        url=url, strategy="unexpected", reason=f"{type(e).__name__}: {e}"
                    )
                    _log(str(failure))
                    result = ExtractionResult(url=url, failures=[failure])
            return index, result

        tasks = [asyncio.ensure_future(extract_one(i, url)) for i, url in enumerate(urls)]
        results: list[ExtractionResult | None] = [None] * len(urls)

        try:
            for next_done in asyncio.as_completed(tasks):
                index, result = await next_done
                results[index] = result
                run.extracted_count += 1
                self._emit(
                    run,
                    f"Extracting content ({run.extracted_count}/{run.total_to_extract})...",
                    url=result.url,
                )
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()

        return [r for r in results if r is not None]


# ── Convenience entry point ───────────────────────────────────────────────────

def run_research(
    query: str,
    on_progress: ProgressObserver | None = None,
) -> PipelineRun:
    """
    Blocking wrapper: build a client, run the pipeline once, close the client.

    For scripts and notebooks. Async callers should use
    PipelineOrchestrator.run() or ResearchSession.submit() directly.
    """

    async def _main() -> PipelineRun:
        client = LLMClient()
        try:
            orchestrator = PipelineOrchestrator(client=client)
            if on_progress:
                orchestrator.subscribe(on_progress)
            return await orchestrator.run(query)
        finally:
            await client.close()

    return asyncio.run(_main())


def _log(message: str) -> None:
    print(f"[pipeline] {message}")
