"""Abstract LLM provider interface. All providers must implement this."""

from abc import ABC, abstractmethod


class ProviderError(Exception):
    """The model provider failed to produce a response."""


class ProviderRateLimited(ProviderError):
    """The provider rejected the call for rate-limit or quota reasons."""


class BaseLLMProvider(ABC):
    @abstractmethod
    async def send(self, history: list[dict], parts: list[dict]) -> str:
        """Start a chat seeded with ``history`` and send one multimodal message.

        ``history`` is a list of ``{"role": "user" | "model", "parts": [{"text": ...}]}``
        turns. ``parts`` holds ``{"text": ...}`` and ``{"inline_data": {"mime_type": ...,
        "data": <base64>}}`` entries. Returns the generated text, or raises
        ``ProviderRateLimited`` / ``ProviderError``.
        """
        ...
