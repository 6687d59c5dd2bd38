"""Text-generation provider used by the stage executors."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from openai import APIError, APITimeoutError, AsyncOpenAI

from .config import Settings, get_settings
from .errors import ProviderFailure

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationRequest:
    """Container describing one call to the provider."""

    system_instruction: str
    profile_context: str
    temperature: float = 0.7


class TextProvider(Protocol):
    """Anything that turns a request into non-empty text or raises ``ProviderFailure``."""

    async def generate(self, request: GenerationRequest) -> str: ...


class OpenAIProvider:
    """Chat-completion backed provider."""

    def __init__(self, client: AsyncOpenAI, *, model: str, max_tokens: int = 1200) -> None:
        self._client = client
        self._model = model
        self._max_tokens = max_tokens

    async def generate(self, request: GenerationRequest) -> str:
        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=[
                    {"role": "system", "content": request.system_instruction.strip()},
                    {"role": "user", "content": request.profile_context},
                ],
                temperature=request.temperature,
                max_tokens=self._max_tokens,
            )
        except APITimeoutError as exc:
            raise ProviderFailure("Provider request timed out") from exc
        except APIError as exc:
            raise ProviderFailure(f"Provider error: {exc.__class__.__name__}") from exc

        message = response.choices[0].message.content if response.choices else None
        if not message or not message.strip():
            raise ProviderFailure("No response generated")
        return message


class UnconfiguredProvider:
    """Stand-in used when no API key is configured; every call fails."""

    async def generate(self, request: GenerationRequest) -> str:
        raise ProviderFailure("No provider API key configured")


ClientCache = tuple[str, OpenAIProvider]
_provider_cache: ClientCache | None = None


def get_provider(settings: Settings | None = None) -> TextProvider:
    """Return a cached provider for the configured OpenAI key."""

    global _provider_cache
    settings = settings or get_settings()
    api_key = settings.get_api_key("openai")
    if not api_key:
        if settings.primary_provider:
            logger.warning(
                "Only a %s key is configured but stages are generated through OpenAI; set OPENAI_API_KEY",
                settings.primary_provider,
            )
        else:
            logger.warning("OPENAI_API_KEY is not set; stage generation will fail until it is configured")
        return UnconfiguredProvider()
    if _provider_cache and _provider_cache[0] == api_key:
        return _provider_cache[1]
    client = AsyncOpenAI(api_key=api_key, timeout=settings.request_timeout, max_retries=0)
    provider = OpenAIProvider(client, model=settings.model)
    _provider_cache = (api_key, provider)
    return provider
