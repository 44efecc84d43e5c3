import json
import logging
import re
from typing import Any, Optional

import google.generativeai as genai
from google.generativeai.types import HarmCategory, HarmBlockThreshold

from app.config import settings
from app.config.tiers_config import normalize_tier
from app.core.exceptions import GeminiError

logger = logging.getLogger(__name__)

SAFETY_SETTINGS = {
    HarmCategory.HARM_CATEGORY_HARASSMENT: HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
    HarmCategory.HARM_CATEGORY_HATE_SPEECH: HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
    HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT: HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
    HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT: HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
}

_ARRAY_RE = re.compile(r"\[[\s\S]*\]")
_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


def model_for_tier(tier: str) -> str:
    """Free tier gets the lite model, paid tiers the full one."""
    if normalize_tier(tier) == "foundation":
        return settings.gemini_free_tier_model
    return settings.gemini_paid_tier_model


def _parse(raw: str, pattern: re.Pattern, expected: type) -> Optional[Any]:
    if not raw:
        return None
    try:
        parsed = json.loads(raw)
        if isinstance(parsed, expected):
            return parsed
    except ValueError:
        pass
    match = pattern.search(raw)
    if not match:
        return None
    try:
        parsed = json.loads(match.group(0))
    except ValueError:
        return None
    return parsed if isinstance(parsed, expected) else None


def parse_json_array(raw: str) -> Optional[list]:
    """Best-effort: the whole reply, else the first [...] span."""
    return _parse(raw, _ARRAY_RE, list)


def parse_json_object(raw: str) -> Optional[dict]:
    """Best-effort: the whole reply, else the first {...} span (handles markdown fences)."""
    return _parse(raw, _OBJECT_RE, dict)


class GeminiClient:
    def __init__(self, api_key: Optional[str] = None):
        self.api_key = api_key if api_key is not None else settings.google_ai_api_key

    def generate(
        self,
        prompt: str,
        model: Optional[str] = None,
        temperature: float = 0.5,
        max_output_tokens: int = 512,
    ) -> str:
        """Run one generateContent call and return the reply text ('' when blocked or empty)."""
        if not self.api_key:
            raise GeminiError("Missing GOOGLE_AI_API_KEY")
        model_name = model or settings.gemini_paid_tier_model
        try:
            genai.configure(api_key=self.api_key)
            generative_model = genai.GenerativeModel(
                model_name,
                generation_config=genai.GenerationConfig(
                    temperature=temperature,
                    max_output_tokens=max_output_tokens,
                ),
                safety_settings=SAFETY_SETTINGS,
            )
            response = generative_model.generate_content(prompt)
        except Exception as e:
            logger.error(f"Gemini generation error ({model_name}): {e}")
            raise GeminiError(f"Gemini API error: {e}")
        try:
            return response.text or ""
        except ValueError:
            # .text raises when the candidate was blocked or has no parts
            logger.warning(f"Gemini returned no text ({model_name})")
            return ""


def get_gemini_client() -> GeminiClient:
    return GeminiClient()
