"""Google Gemini LLM provider."""

import base64
import logging

from google import genai
from google.genai import types

from medreport.core.config import Settings
from medreport.services.llm.base import BaseLLMProvider, ProviderError, ProviderRateLimited

logger = logging.getLogger(__name__)


def is_rate_limited(exc: Exception) -> bool:
    """True when a provider error means the usage limit or quota was hit."""
    code = getattr(exc, "code", None)
    status = getattr(exc, "status", None)
    if code == 429 or status == 429 or status == "RESOURCE_EXHAUSTED":
        return True
    return "429" in str(exc)


def to_gemini_part(part: dict) -> types.Part:
    if "inline_data" in part:
        blob = part["inline_data"]
        return types.Part.from_bytes(
            data=base64.b64decode(blob["data"]),
            mime_type=blob["mime_type"],
        )
    return types.Part.from_text(text=part["text"])


def to_gemini_history(history: list[dict]) -> list[types.Content]:
    return [
        types.Content(
            role=turn["role"],
            parts=[types.Part.from_text(text=p.get("text", "")) for p in turn["parts"]],
        )
        for turn in history
    ]


class GeminiProvider(BaseLLMProvider):
    def __init__(self, settings: Settings, client: genai.Client | None = None):
        self._client = client
        self.api_key = settings.gemini_api_key
        self.model = settings.gemini_model
        self.system_prompt = settings.system_prompt

    @property
    def client(self) -> genai.Client:
        """Created on first use so a missing key fails the request, not app startup."""
        if self._client is None:
            if not self.api_key:
                raise ProviderError("Gemini API key is not configured")
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    async def send(self, history: list[dict], parts: list[dict]) -> str:
        logger.info(
            f"Gemini call: model={self.model} history_turns={len(history)} parts={len(parts)}"
        )
        try:
            chat = self.client.aio.chats.create(
                model=self.model,
                config=types.GenerateContentConfig(system_instruction=self.system_prompt),
                history=to_gemini_history(history),
            )
            response = await chat.send_message([to_gemini_part(p) for p in parts])
        except ProviderError:
            raise
        except Exception as e:
            if is_rate_limited(e):
                raise ProviderRateLimited(str(e)) from e
            raise ProviderError(str(e)) from e

        usage = response.usage_metadata
        if usage:
            logger.info(
                f"Gemini response: prompt_tokens={usage.prompt_token_count} "
                f"response_tokens={usage.candidates_token_count}"
            )
        return response.text or ""
