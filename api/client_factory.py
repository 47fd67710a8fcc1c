from config.config import GenerationSettings, LLMProvider
from pipeline.errors import ServiceNotConfigured

from .base_client import BaseAIClient


def create_client(settings: GenerationSettings) -> BaseAIClient:
    """
    Build the generation client selected by ``settings.provider``.

    Raises:
        ServiceNotConfigured: no API key, or an unknown provider
    """
    if not settings.api_key:
        raise ServiceNotConfigured(f"no API key for provider {settings.provider}")

    if settings.provider == LLMProvider.ANTHROPIC.value:
        from .anthropic_client import AnthropicClient

        return AnthropicClient(api_key=settings.api_key, model_name=settings.model, timeout=settings.timeout_s)
    if settings.provider == LLMProvider.OPENAI.value:
        from .openai_client import OpenAIClient

        return OpenAIClient(api_key=settings.api_key, model_name=settings.model, timeout=settings.timeout_s)
    if settings.provider == LLMProvider.GEMINI.value:
        from .google_gemini_client import GeminiClient

        return GeminiClient(api_key=settings.api_key, model_name=settings.model)

    raise ServiceNotConfigured(f"unknown provider {settings.provider}")
