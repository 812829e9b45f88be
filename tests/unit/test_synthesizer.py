"""
tests/unit/test_synthesizer.py — Unit tests for agent/synthesizer.py.

Tests cover:
  - synthesize() returns the validated Report unchanged
  - prompt carries the query and the aggregated text
  - blank input fails without a model call
  - malformed / partial output and service errors → SynthesisError
"""

import asyncio

import pytest
from unittest.mock import AsyncMock, MagicMock

from agent.errors import SynthesisError
from agent.schemas import Report
from agent.state import ErrorKind, PipelineStage
from agent.synthesizer import ReportSynthesizer
from llm.client import StructuredOutputError


AGGREGATED = "EV sales reached 14M in 2023.\n\n---\n\nChina holds 60% of the market."


# ── Fixtures ──────────────────────────────────────────────────────────────────

def make_report() -> Report:
    return Report(
        executive_summary="EV adoption is accelerating.",
        market_context="14M units sold globally in 2023.",
        current_trends="China leads with 60% share.",
        future_outlook="Growth continues through 2030.",
    )


def mock_client(output=None, error: Exception = None) -> MagicMock:
    client = MagicMock()
    if error is not None:
        client.generate_structured = AsyncMock(side_effect=error)
    else:
        client.generate_structured = AsyncMock(return_value=output)
    return client


def synthesize(client, text=AGGREGATED, query="electric vehicles market"):
    return asyncio.run(ReportSynthesizer(client=client).synthesize(text, query))


# ── Happy path ────────────────────────────────────────────────────────────────

class TestSynthesize:
    def test_returns_report(self):
        report = make_report()
        assert synthesize(mock_client(report)) is report

    def test_prompt_has_query_and_content(self):
        client = mock_client(make_report())
        synthesize(client, query="solid-state batteries")

        prompt = client.generate_structured.call_args.args[0]
        assert "solid-state batteries" in prompt
        assert "China holds 60% of the market." in prompt

    def test_uses_smart_tier_and_report_schema(self):
        client = mock_client(make_report())
        synthesize(client)

        args, kwargs = client.generate_structured.call_args
        assert args[1] is Report
        assert kwargs["tier"] == "smart"


# ── Failures ──────────────────────────────────────────────────────────────────

class TestSynthesizeFailures:
    @pytest.mark.parametrize("blank", ["", "   ", "\n\n"])
    def test_blank_input_skips_model(self, blank):
        client = mock_client(make_report())

        with pytest.raises(SynthesisError):
            synthesize(client, text=blank)

        client.generate_structured.assert_not_called()

    def test_malformed_output_raises(self):
        client = mock_client(error=StructuredOutputError("Response does not match Report: 1 error(s)"))

        with pytest.raises(SynthesisError) as exc_info:
            synthesize(client)

        assert exc_info.value.stage == PipelineStage.GENERATING
        assert exc_info.value.kind == ErrorKind.SYNTHESIS

    def test_service_error_raises(self):
        client = mock_client(error=TimeoutError("model timed out"))

        with pytest.raises(SynthesisError, match="TimeoutError"):
            synthesize(client)

    def test_user_message_suggests_retry(self):
        client = mock_client(error=RuntimeError("boom"))

        with pytest.raises(SynthesisError) as exc_info:
            synthesize(client)

        assert "try again" in exc_info.value.user_message.lower()
