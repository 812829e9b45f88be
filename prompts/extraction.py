"""
prompts/extraction.py — Prompts for the two extraction strategies.

DIRECT_EXTRACTION_PROMPT → the model reads the URL itself
CLEAN_HTML_PROMPT        → we fetched the HTML; the model strips boilerplate
"""

DIRECT_EXTRACTION_PROMPT = """\
You are an expert web content extractor.

Extract the content from the following URL that is relevant to the research query.

URL: {url}
RESEARCH QUERY: {query}

Context: the user is doing market research. Keep facts, figures, dates,
company names and trends. Leave out navigation, ads and unrelated material.

Respond with ONLY valid JSON. No other text.
Format: {{"extractedContent": "<the extracted text>"}}"""


CLEAN_HTML_PROMPT = """\
You are an expert web content cleaner. From the following raw HTML, extract
the meaningful text content.

Remove all navigation, ads, footers, cookie banners and other boilerplate.
Focus on the main article or body content. Return plain text, not HTML.

RAW CONTENT:
{raw_content}

Respond with ONLY valid JSON. No other text.
Format: {{"extractedContent": "<the cleaned text>"}}"""
