"""Completion providers for generating text via hosted or local LLMs.

Three backends share one ``generate`` contract so callers never depend on a
specific vendor:

- ``openai``: hosted chat model through the OpenAI chat completions API
- ``gemini``: hosted generative model through the Google GenAI SDK
- ``local``: self-hosted Ollama server through its HTTP generate endpoint

The backend is chosen once at startup from ``LLM_PROVIDER``.
"""

from abc import ABC, abstractmethod

import httpx
from google import genai
from google.genai import types
from openai import AsyncOpenAI

from src.utils.logging import get_logger

from .config import KnowledgeBaseConfig
from .errors import ProviderError, ProviderNotConfigured

logger = get_logger(__name__)

DEFAULT_SYSTEM_PROMPT = "You are a helpful assistant that analyzes YouTube video content."
DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 2000


class CompletionProvider(ABC):
    """Text generation backend.

    Implementations own their client and credentials. Every call is a fresh
    request: nothing is cached and nothing is retried.
    """

    name: str = "base"

    async def generate(
        self,
        prompt: str,
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
        temperature: float = DEFAULT_TEMPERATURE,
        max_tokens: int = DEFAULT_MAX_TOKENS,
    ) -> str:
        """Generate text for a prompt.

        Args:
            prompt: User prompt.
            system_prompt: Instruction framing the model's behaviour.
            temperature: Sampling temperature.
            max_tokens: Upper bound on generated tokens.

        Returns:
            Generated text.

        Raises:
            ProviderNotConfigured: If credentials or connection info are missing.
            ProviderError: If the call fails or returns no text.
        """
        logger.info(
            "completion_started",
            provider=self.name,
            prompt_length=len(prompt),
            temperature=temperature,
            max_tokens=max_tokens,
        )

        try:
            text = await self._generate(prompt, system_prompt, temperature, max_tokens)
        except ProviderNotConfigured:
            logger.error("completion_provider_not_configured", provider=self.name)
            raise
        except ProviderError:
            logger.exception("completion_failed", provider=self.name)
            raise
        except Exception as e:
            logger.exception(
                "completion_failed",
                provider=self.name,
                error_type=type(e).__name__,
            )
            raise ProviderError(f"{self.name} completion failed: {e}") from e

        if not isinstance(text, str) or not text:
            logger.error("completion_empty_response", provider=self.name)
            raise ProviderError(f"{self.name} returned an empty response")

        logger.info("completion_completed", provider=self.name, response_length=len(text))
        return text

    @abstractmethod
    async def _generate(
        self, prompt: str, system_prompt: str, temperature: float, max_tokens: int
    ) -> str | None:
        """Backend-specific call returning the raw generated text."""

    async def aclose(self) -> None:
        """Release network resources held by the provider."""


class OpenAIProvider(CompletionProvider):
    """Hosted chat model via the OpenAI chat completions API."""

    name = "openai"

    def __init__(self, config: KnowledgeBaseConfig):
        self.model = config.openai_model
        self.client: AsyncOpenAI | None = None
        if config.openai_api_key:
            self.client = AsyncOpenAI(
                base_url=config.openai_base_url,
                api_key=config.openai_api_key,
            )
        logger.info(
            "openai_provider_initialized",
            model=self.model,
            api_key_present=self.client is not None,
        )

    async def _generate(
        self, prompt: str, system_prompt: str, temperature: float, max_tokens: int
    ) -> str | None:
        if self.client is None:
            raise ProviderNotConfigured("OpenAI client not initialized. Check OPENAI_API_KEY.")

        response = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": prompt},
            ],
            temperature=temperature,
            max_tokens=max_tokens,
        )
        if not response.choices:
            raise ProviderError("OpenAI response contained no choices")
        return response.choices[0].message.content

    async def aclose(self) -> None:
        if self.client is not None:
            await self.client.close()


class GeminiProvider(CompletionProvider):
    """Hosted generative model via the Google GenAI SDK."""

    name = "gemini"

    def __init__(self, config: KnowledgeBaseConfig):
        self.model = config.gemini_model
        self.client: genai.Client | None = None
        if config.gemini_api_key:
            self.client = genai.Client(api_key=config.gemini_api_key)
        logger.info(
            "gemini_provider_initialized",
            model=self.model,
            api_key_present=self.client is not None,
        )

    async def _generate(
        self, prompt: str, system_prompt: str, temperature: float, max_tokens: int
    ) -> str | None:
        if self.client is None:
            raise ProviderNotConfigured("Gemini client not initialized. Check GEMINI_API_KEY.")

        response = await self.client.aio.models.generate_content(
            model=self.model,
            contents=prompt,
            config=types.GenerateContentConfig(
                system_instruction=system_prompt,
                temperature=temperature,
                max_output_tokens=max_tokens,
            ),
        )
        return response.text


class LocalProvider(CompletionProvider):
    """Self-hosted model served by Ollama."""

    name = "local"

    def __init__(self, config: KnowledgeBaseConfig):
        self.base_url = config.local_llm_url.rstrip("/")
        self.model = config.local_llm_model
        self.client: httpx.AsyncClient | None = None
        if self.base_url and self.model:
            self.client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=config.local_llm_timeout,
            )
        logger.info("local_provider_initialized", base_url=self.base_url, model=self.model)

    async def _generate(
        self, prompt: str, system_prompt: str, temperature: float, max_tokens: int
    ) -> str | None:
        if self.client is None:
            raise ProviderNotConfigured(
                "Local LLM not configured. Check LOCAL_LLM_URL and LOCAL_LLM_MODEL."
            )

        response = await self.client.post(
            "/api/generate",
            json={
                "model": self.model,
                "prompt": f"{system_prompt}\n\n{prompt}",
                "stream": False,
                "options": {
                    "temperature": temperature,
                    "num_predict": max_tokens,
                },
            },
        )
        response.raise_for_status()

        data = response.json()
        if not isinstance(data, dict):
            raise ProviderError("Local LLM returned a malformed response")
        return data.get("response")

    async def aclose(self) -> None:
        if self.client is not None:
            await self.client.aclose()


PROVIDERS: dict[str, type[CompletionProvider]] = {
    "openai": OpenAIProvider,
    "gemini": GeminiProvider,
    "local": LocalProvider,
}


def get_completion_provider(config: KnowledgeBaseConfig) -> CompletionProvider:
    """Create the completion provider named by the configuration.

    Args:
        config: Configuration with ``llm_provider`` and backend credentials.

    Returns:
        Concrete CompletionProvider instance.

    Raises:
        ProviderNotConfigured: If the provider name is unknown.
    """
    provider_name = config.llm_provider.strip().lower()
    provider_cls = PROVIDERS.get(provider_name)

    if provider_cls is None:
        logger.error("unknown_llm_provider", provider=config.llm_provider)
        raise ProviderNotConfigured(f"Unknown LLM provider: {config.llm_provider}")

    return provider_cls(config)
