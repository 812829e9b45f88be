"""
agent/schemas.py — The output shapes the model is asked to fill.

Each pipeline stage sends a prompt together with one of these pydantic
models. The LLM client validates the answer against it, so a stage
either gets a well-formed value or an exception — never half a value.

  DiscoveredSources  — discovery:  {"websites": [...]}
  ExtractedContent   — extraction: {"extractedContent": "..."}
  Report             — synthesis:  four named sections, all required

The JSON keys are camelCase (what the prompts ask for); the Python
attribute names are snake_case via field aliases.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator


class DiscoveredSources(BaseModel):
    websites: list[str] = Field(default_factory=list)

    @field_validator("websites", mode="before")
    @classmethod
    def _drop_non_strings(cls, value):
        if not isinstance(value, list):
            return value
        return [v for v in value if isinstance(v, str)]


class ExtractedContent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    extracted_content: str = Field(default="", alias="extractedContent")


# Display order + titles for the report sections.
REPORT_SECTIONS: tuple[tuple[str, str], ...] = (
    ("executive_summary", "Executive Summary"),
    ("market_context", "Market Context"),
    ("current_trends", "Current Market Trends"),
    ("future_outlook", "Future Outlook"),
)


class Report(BaseModel):
    """
    The final market research report.

    All four sections are required and must be non-blank. A response with
    a missing or empty section fails validation — there is no partial report.
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    executive_summary: str = Field(alias="executiveSummary")
    market_context: str = Field(alias="marketContext")
    current_trends: str = Field(alias="currentTrends")
    future_outlook: str = Field(alias="futureOutlook")

    @field_validator(
        "executive_summary", "market_context", "current_trends", "future_outlook"
    )
    @classmethod
    def _non_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("section must not be empty")
        return value

    def sections(self) -> list[tuple[str, str]]:
        """(title, text) pairs in display order."""
        return [(title, getattr(self, name)) for name, title in REPORT_SECTIONS]

    def to_markdown(self, query: str = "", sources: list[str] | None = None) -> str:
        lines = ["# Market Research Report", ""]
        if query:
            lines += [f"*Query: {query}*", ""]
        for title, text in self.sections():
            lines += [f"## {title}", "", text, ""]
        if sources:
            lines += ["## Sources", ""]
            lines += [f"[{i}] {url}" for i, url in enumerate(sources, 1)]
            lines.append("")
        return "\n".join(lines).rstrip() + "\n"
