"""
agent/discoverer.py — Query → ordered list of candidate source URLs.

THE CORE CONCEPT:
  Discovery asks the smart model for the ~20 most relevant websites for the
  query. The list is a starting point, not a promise: nothing here checks
  that the URLs resolve. Dead links simply degrade to empty text during
  extraction.

WHAT COUNTS AS FAILURE:
  Discovery has no sensible fallback: without sources there is nothing to
  extract. So:
    - the model call fails                 → DiscoveryError
    - the output isn't {"websites": [...]} → DiscoveryError
    - the list is empty after cleanup      → DiscoveryError
  An empty list is never success.

CLEANUP:
  normalize_urls() strips whitespace, adds https:// to bare domains, drops
  blanks and duplicates. Order is preserved because the orchestrator takes a
  positional prefix.

USAGE:
  from agent.discoverer import SourceDiscoverer

  discoverer = SourceDiscoverer(client=LLMClient())
  urls = await discoverer.discover("electric vehicles market")
"""

from agent.errors import DiscoveryError
from agent.guardrails import normalize_urls
from agent.schemas import DiscoveredSources
from agent.state import PipelineStage
from llm.client import LLMClient
from config import settings
from prompts.discovery import DISCOVER_PROMPT


class SourceDiscoverer:
    """
    One smart-model call. Returns a non-empty list of URLs or raises.
    """

    def __init__(self, client: LLMClient) -> None:
        self._client = client

    async def discover(self, query: str, n: int | None = None) -> list[str]:
        """
        Ask the model for up to n candidate URLs for query.

        Returns:
            Normalized URLs in the model's order. Never empty.

        Raises:
            DiscoveryError on service failure, malformed output, or no URLs.
        """
        n = n or settings.discovery_target
        prompt = DISCOVER_PROMPT.format(query=query, n=n)

        try:
            result = await self._client.generate_structured(
                prompt, DiscoveredSources, tier="smart"
            )
        except Exception as e:
            raise DiscoveryError(
                f"Discovery call failed: {type(e).__name__}: {e}",
                stage=PipelineStage.DISCOVERING,
            ) from e

        urls = normalize_urls(result.websites)
        if not urls:
            raise DiscoveryError(
                "Discovery returned no URLs",
                stage=PipelineStage.DISCOVERING,
            )

        _log(f"{len(urls)} candidate sources for {query[:60]!r}")
        return urls


def _log(message: str) -> None:
    print(f"[discoverer] {message}")
