"""LLM provider factory."""

from medreport.core.config import Settings
from medreport.services.llm.base import BaseLLMProvider


def get_llm_provider(settings: Settings) -> BaseLLMProvider:
    """Factory function that returns the configured LLM provider."""
    if settings.llm_provider == "gemini":
        from medreport.services.llm.gemini import GeminiProvider
        return GeminiProvider(settings)
    else:
        raise ValueError(f"Unknown LLM provider: {settings.llm_provider}")
