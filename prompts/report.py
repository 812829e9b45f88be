"""
prompts/report.py — Prompt for report synthesis.
"""

REPORT_PROMPT = """\
You are an expert market research analyst.

Based on the content extracted from several webpages, write a comprehensive
market research report for the query below.

MARKET RESEARCH QUERY: {query}

EXTRACTED CONTENT (sources separated by ---):
{content}

The report must have exactly these four sections, each a few well-written paragraphs:
1. executiveSummary — a brief overview of the findings
2. marketContext    — background information and relevant details about the market
3. currentTrends    — the latest trends and developments in the market
4. futureOutlook    — predictions and expectations for the market's future

Rules:
- Every section must be filled in
- Be specific: include numbers, dates and names where the content provides them
- Do NOT invent facts that are not in the extracted content

Respond with ONLY valid JSON. No other text.
Format: {{"executiveSummary": "...", "marketContext": "...", "currentTrends": "...", "futureOutlook": "..."}}"""
