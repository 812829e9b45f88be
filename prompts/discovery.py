"""
prompts/discovery.py — Prompt for candidate-source discovery.
"""

DISCOVER_PROMPT = """\
You are an expert market research assistant. Your task is to identify the
{n} most relevant websites for a given market research query.

QUERY: {query}

Provide {n} URLs that would be most helpful for researching this topic.
The websites should be diverse and authoritative: industry reports, trade
publications, analyst coverage, company investor pages, government statistics.
List the most relevant first.

Respond with ONLY valid JSON. No other text.
Format: {{"websites": ["https://...", "https://..."]}}"""
