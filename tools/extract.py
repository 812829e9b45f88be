"""
tools/extract.py — Text cleanup for model-extracted content.

Both extraction strategies end with the model handing back plain text.
That text still carries the usual noise of web content:
    - Excessive blank lines (3+ in a row)
    - Unicode noise (soft hyphens, zero-width spaces, curly quotes)
    - Windows line endings and trailing whitespace

clean_text() normalizes all of that before the text is aggregated.
truncate_chars() cuts raw HTML to a fixed prefix before it is sent for
cleanup — the model only needs the top of the page to find the body.

USAGE:
  from tools.extract import clean_text, truncate_chars

  cleaned = clean_text(raw_text)
  prefix = truncate_chars(html, 20_000)
"""

import re


# ── Text cleanup ───────────────────────────────────────────────────────────────

def clean_text(text: str) -> str:
    """
    Normalize extracted text for aggregation.

    Operations (in order):
      1. Normalize line endings (Windows \\r\\n → \\n)
      2. Remove zero-width and soft-hyphen Unicode noise
      3. Normalize curly quotes to straight quotes
      4. Collapse 3+ consecutive blank lines to 2
      5. Strip trailing whitespace from each line
      6. Strip leading/trailing whitespace from the whole text

    Does NOT remove content or truncate.
    """
    if not text:
        return ""

    text = text.replace("\r\n", "\n").replace("\r", "\n")

    # \u00ad = soft hyphen, \u200b = zero-width space, \u200c/\u200d = zero-width joiners
    text = re.sub(r"[\u00ad\u200b\u200c\u200d\ufeff]", "", text)

    text = text.replace("\u2018", "'").replace("\u2019", "'")
    text = text.replace("\u201c", '"').replace("\u201d", '"')

    text = re.sub(r"\n{3,}", "\n\n", text)

    lines = [line.rstrip() for line in text.split("\n")]
    text = "\n".join(lines)

    return text.strip()


def truncate_chars(text: str, max_chars: int) -> str:
    """
    Keep the first max_chars characters of text.

    No marker is appended: the result goes to the model as raw page
    content, and a trailing "[truncated]" would read as page text.
    """
    if max_chars <= 0 or len(text) <= max_chars:
        return text
    return text[:max_chars]
