"""
Thin Gemini client used by the reconciliation, moderation and agent code.

``get_llm`` is a FastAPI dependency: it returns ``None`` when no API key is
configured, which every caller treats as "use the local fallback".
"""
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from bolao.config import settings

logger = logging.getLogger(__name__)


class LLMError(Exception):
    """Gemini call failed (API error or transport error)."""


@dataclass
class Completion:
    text: str
    tokens: int = 0


class GeminiClient:
    def __init__(self, api_key: str, model: str):
        self._client = genai.Client(api_key=api_key)
        self.model = model

    def generate(
        self,
        prompt: str,
        temperature: Optional[float] = None,
        max_output_tokens: Optional[int] = None,
    ) -> Completion:
        config = types.GenerateContentConfig(
            temperature=temperature,
            max_output_tokens=max_output_tokens,
        )
        try:
            response = self._client.models.generate_content(
                model=self.model,
                contents=prompt,
                config=config,
            )
        except (genai_errors.APIError, httpx.HTTPError) as exc:
            raise LLMError(str(exc)) from exc

        usage = response.usage_metadata
        tokens = (usage.total_token_count or 0) if usage else 0
        return Completion(text=response.text or "", tokens=tokens)


@lru_cache(maxsize=4)
def _build_client(api_key: str, model: str) -> GeminiClient:
    return GeminiClient(api_key, model)


def get_llm() -> Optional[GeminiClient]:
    if not settings.GEMINI_API_KEY:
        return None
    return _build_client(settings.GEMINI_API_KEY, settings.GEMINI_MODEL)


# ---------------------------------------------------------------------------
# Response helpers
# ---------------------------------------------------------------------------

_FENCE = re.compile(r"```(?:json)?\s*", re.IGNORECASE)
_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences the model adds despite being told not to."""
    return _FENCE.sub("", text).strip()


def extract_json_object(text: str, required: bool = True) -> dict:
    """Return the outermost ``{...}`` block of *text* as a dict.

    Raises ``ValueError`` when there is no parseable object. With
    ``required=False`` a reply without any braces yields ``{}``; a malformed
    object still raises.
    """
    match = _JSON_OBJECT.search(text)
    if not match:
        if not required:
            return {}
        raise ValueError("no JSON object in model output")
    data = json.loads(match.group(0))
    if not isinstance(data, dict):
        raise ValueError("model output is not a JSON object")
    return data
