"""
llm/client.py — The ONLY file that imports the Azure/OpenAI SDK.

Every stage of the pipeline talks to the model the same way: a filled
prompt template goes in, together with the shape the answer must have,
and a parsed value of that shape comes out — or the call fails.

  generate_structured(prompt, schema, tier=...)

    schema is a pydantic model class. The model is asked for JSON
    (response_format=json_object), markdown fences are stripped, and the
    text is validated against the schema. Anything that does not fit
    raises StructuredOutputError; SDK errors (rate limits, timeouts,
    auth) propagate unchanged. Callers decide what a failure means —
    the discoverer and synthesizer turn it into a stage error, the
    extractor turns it into empty text.

TWO MODEL TIERS:
  tier="smart" → smart_model — discovery and synthesis, once per run each
  tier="cheap" → cheap_model — per-URL extraction, up to 2 calls per URL

AUTH:
  Path A — API key (foundry_api_key set)
  Path B — Entra ID via DefaultAzureCredential (az login / managed identity)

USAGE:
  from llm.client import LLMClient
  from agent.schemas import DiscoveredSources

  client = LLMClient()
  result = await client.generate_structured(prompt, DiscoveredSources, tier="smart")
  print(result.websites)
"""

import json
import re
from typing import Literal, TypeVar

from openai import AsyncAzureOpenAI, AsyncOpenAI
from azure.identity import DefaultAzureCredential, get_bearer_token_provider
from pydantic import BaseModel, ValidationError

from config import settings


T = TypeVar("T", bound=BaseModel)

_COGNITIVE_SERVICES_SCOPE = "https://cognitiveservices.azure.com/.default"


class StructuredOutputError(ValueError):
    """The model answered, but not in the shape that was asked for."""


class LLMClient:
    """
    Thin async wrapper around Azure AI Foundry → Chat Completions API.

    One method that matters: generate_structured(). The two tiers share
    one connection pool; only the deployment name differs.
    """

    def __init__(self) -> None:
        if settings.foundry_api_key:
            # Path A: API key auth
            self._client: AsyncOpenAI = AsyncAzureOpenAI(
                api_key=settings.foundry_api_key,
                azure_endpoint=settings.foundry_endpoint,
                api_version=settings.api_version,
                timeout=settings.llm_timeout_seconds,
            )
        else:
            # Path B: Managed identity / az login
            token_provider = get_bearer_token_provider(
                DefaultAzureCredential(), _COGNITIVE_SERVICES_SCOPE
            )
            self._client = AsyncAzureOpenAI(
                azure_ad_token_provider=token_provider,
                azure_endpoint=settings.foundry_endpoint,
                api_version=settings.api_version,
                timeout=settings.llm_timeout_seconds,
            )

        self._smart_model = settings.smart_model
        self._cheap_model = settings.cheap_model

    def model_for(self, tier: Literal["smart", "cheap"]) -> str:
        return self._cheap_model if tier == "cheap" else self._smart_model

    async def generate_structured(
        self,
        prompt: str,
        schema: type[T],
        *,
        tier: Literal["smart", "cheap"] = "smart",
    ) -> T:
        """
        Send a filled template and return a validated instance of schema.

        Raises:
            StructuredOutputError — empty, non-JSON, or schema-violating output
            openai.OpenAIError    — transport / API failures, unchanged
        """
        response = await self._client.chat.completions.create(
            model=self.model_for(tier),
            messages=[{"role": "user", "content": prompt}],
            response_format={"type": "json_object"},
        )
        text = response.choices[0].message.content or ""
        return parse_structured(text, schema)

    async def close(self) -> None:
        await self._client.close()


# ── Parsing ───────────────────────────────────────────────────────────────────

def parse_structured(text: str, schema: type[T]) -> T:
    """
    Parse model output into schema.

    LLMs sometimes wrap JSON in markdown code fences (```json ... ```)
    even in JSON mode. Strip a fence only when it wraps the whole response;
    fences inside string values are page content.
    """
    text = (text or "").strip()
    text = re.sub(r"^```(?:json)?\s*", "", text)
    text = re.sub(r"\s*```$", "", text).strip()

    if not text:
        raise StructuredOutputError(f"Empty response for {schema.__name__}")

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise StructuredOutputError(f"Response is not JSON: {e}") from e

    try:
        return schema.model_validate(data)
    except ValidationError as e:
        raise StructuredOutputError(
            f"Response does not match {schema.__name__}: {e.error_count()} error(s)"
        ) from e
