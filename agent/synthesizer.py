"""
agent/synthesizer.py — Aggregated source text → four-section Report.

THE CORE CONCEPT:
  By the time synthesis runs, extraction has produced one block of text
  per source that worked, joined in source order with "---" separators.
  The Synthesizer asks the smart model to turn that into a fixed-shape
  report: executive summary, market context, current trends, outlook.

ALL OR NOTHING:
  The report shape is validated by the Report model. If any section is
  missing or blank, or the output isn't JSON at all, the whole synthesis
  fails with SynthesisError. There is no partial-report success: a report
  with an empty "Future Outlook" looks finished but isn't.

PRECONDITION:
  aggregated_text must be non-blank. The orchestrator guarantees this
  (empty aggregation ends the run with AggregationEmptyError first), but
  a blank input here raises SynthesisError without calling the model.

USAGE:
  from agent.synthesizer import ReportSynthesizer

  synthesizer = ReportSynthesizer(client=LLMClient())
  report = await synthesizer.synthesize(aggregated_text, "electric vehicles market")
  print(report.executive_summary)
"""

from agent.errors import SynthesisError
from agent.schemas import Report
from agent.state import PipelineStage
from llm.client import LLMClient
from prompts.report import REPORT_PROMPT


class ReportSynthesizer:
    """
    One smart-model call. Returns a complete Report or raises SynthesisError.
    """

    def __init__(self, client: LLMClient) -> None:
        self._client = client

    async def synthesize(self, aggregated_text: str, query: str) -> Report:
        if not aggregated_text or not aggregated_text.strip():
            raise SynthesisError(
                "No content to synthesize from",
                stage=PipelineStage.GENERATING,
            )

        prompt = REPORT_PROMPT.format(query=query, content=aggregated_text)

        try:
            report = await self._client.generate_structured(prompt, Report, tier="smart")
        except Exception as e:
            raise SynthesisError(
                f"Synthesis call failed: {type(e).__name__}: {e}",
                stage=PipelineStage.GENERATING,
            ) from e

        _log(f"Report ready — {sum(len(text) for _, text in report.sections())} chars")
        return report


def _log(message: str) -> None:
    print(f"[synthesizer] {message}")
