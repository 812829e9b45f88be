"""
prompts/ — All LLM prompt templates for the research pipeline.

One file per stage. Import the prompt constant you need:

    from prompts.discovery import DISCOVER_PROMPT
    from prompts.extraction import DIRECT_EXTRACTION_PROMPT, CLEAN_HTML_PROMPT
    from prompts.report import REPORT_PROMPT
"""
