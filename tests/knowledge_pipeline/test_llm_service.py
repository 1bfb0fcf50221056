"""Unit tests for completion providers."""

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from src.knowledge_pipeline.config import KnowledgeBaseConfig
from src.knowledge_pipeline.errors import ProviderError, ProviderNotConfigured
from src.knowledge_pipeline.llm_service import (
    GeminiProvider,
    LocalProvider,
    OpenAIProvider,
    get_completion_provider,
)


def chat_completion(content: str | None) -> SimpleNamespace:
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


@pytest.mark.unit
class TestOpenAIProvider:
    """Test suite for OpenAIProvider class."""

    @pytest.fixture
    def config(self) -> KnowledgeBaseConfig:
        """Create test configuration."""
        return KnowledgeBaseConfig(openai_api_key="sk-test", openai_model="gpt-test")

    @pytest.fixture
    def provider(self, config: KnowledgeBaseConfig) -> OpenAIProvider:
        """Create OpenAI provider with mocked client."""
        with patch("src.knowledge_pipeline.llm_service.AsyncOpenAI") as mock_openai:
            mock_openai.return_value = MagicMock()
            provider = OpenAIProvider(config)
        provider.client.chat.completions.create = AsyncMock(return_value=chat_completion("Hello"))
        return provider

    @pytest.mark.asyncio
    async def test_generate_success(self, provider: OpenAIProvider) -> None:
        """Test system and user messages are sent with sampling options."""
        text = await provider.generate("Prompt", system_prompt="System", temperature=0.3, max_tokens=500)

        assert text == "Hello"
        provider.client.chat.completions.create.assert_called_once_with(
            model="gpt-test",
            messages=[
                {"role": "system", "content": "System"},
                {"role": "user", "content": "Prompt"},
            ],
            temperature=0.3,
            max_tokens=500,
        )

    @pytest.mark.asyncio
    async def test_generate_defaults(self, provider: OpenAIProvider) -> None:
        """Test default temperature and max tokens."""
        await provider.generate("Prompt")

        kwargs = provider.client.chat.completions.create.call_args.kwargs
        assert kwargs["temperature"] == 0.7
        assert kwargs["max_tokens"] == 2000

    @pytest.mark.asyncio
    async def test_missing_api_key_raises_not_configured(self) -> None:
        """Test missing credentials fail at call time."""
        provider = OpenAIProvider(KnowledgeBaseConfig(openai_api_key=""))

        assert provider.client is None
        with pytest.raises(ProviderNotConfigured):
            await provider.generate("Prompt")

    @pytest.mark.asyncio
    async def test_client_error_wrapped_as_provider_error(self, provider: OpenAIProvider) -> None:
        """Test SDK exceptions surface as ProviderError."""
        provider.client.chat.completions.create.side_effect = RuntimeError("rate limited")

        with pytest.raises(ProviderError, match="rate limited"):
            await provider.generate("Prompt")

    @pytest.mark.asyncio
    async def test_empty_content_raises_provider_error(self, provider: OpenAIProvider) -> None:
        """Test an empty completion is a provider error."""
        provider.client.chat.completions.create.return_value = chat_completion(None)

        with pytest.raises(ProviderError):
            await provider.generate("Prompt")

    @pytest.mark.asyncio
    async def test_no_choices_raises_provider_error(self, provider: OpenAIProvider) -> None:
        """Test a response without choices is a provider error."""
        provider.client.chat.completions.create.return_value = SimpleNamespace(choices=[])

        with pytest.raises(ProviderError):
            await provider.generate("Prompt")


@pytest.mark.unit
class TestGeminiProvider:
    """Test suite for GeminiProvider class."""

    @pytest.mark.asyncio
    async def test_generate_success(self) -> None:
        """Test system prompt is passed as system instruction."""
        with patch("src.knowledge_pipeline.llm_service.genai.Client") as mock_client_cls:
            mock_client = MagicMock()
            mock_client.aio.models.generate_content = AsyncMock(
                return_value=SimpleNamespace(text="Gemini says hi")
            )
            mock_client_cls.return_value = mock_client

            provider = GeminiProvider(
                KnowledgeBaseConfig(gemini_api_key="g-key", gemini_model="gemini-test")
            )
            text = await provider.generate("Prompt", system_prompt="System", temperature=0.5, max_tokens=300)

        assert text == "Gemini says hi"
        mock_client_cls.assert_called_once_with(api_key="g-key")
        kwargs = mock_client.aio.models.generate_content.call_args.kwargs
        assert kwargs["model"] == "gemini-test"
        assert kwargs["contents"] == "Prompt"
        assert kwargs["config"].system_instruction == "System"
        assert kwargs["config"].temperature == 0.5
        assert kwargs["config"].max_output_tokens == 300

    @pytest.mark.asyncio
    async def test_missing_api_key_raises_not_configured(self) -> None:
        """Test missing credentials fail at call time."""
        provider = GeminiProvider(KnowledgeBaseConfig(gemini_api_key=""))

        with pytest.raises(ProviderNotConfigured):
            await provider.generate("Prompt")


@pytest.mark.unit
class TestLocalProvider:
    """Test suite for LocalProvider class."""

    @pytest.fixture
    def config(self) -> KnowledgeBaseConfig:
        """Create test configuration."""
        return KnowledgeBaseConfig(local_llm_url="http://ollama:11434/", local_llm_model="llama2")

    @pytest.mark.asyncio
    async def test_generate_success(self, config: KnowledgeBaseConfig) -> None:
        """Test generate endpoint payload and response extraction."""
        captured: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["url"] = str(request.url)
            captured["json"] = json.loads(request.content)
            return httpx.Response(200, json={"response": "Local answer", "done": True})

        provider = LocalProvider(config)
        provider.client = httpx.AsyncClient(
            base_url=provider.base_url, transport=httpx.MockTransport(handler)
        )

        text = await provider.generate("Prompt", system_prompt="System", temperature=0.3, max_tokens=200)
        await provider.aclose()

        assert text == "Local answer"
        assert captured["url"] == "http://ollama:11434/api/generate"
        assert captured["json"] == {
            "model": "llama2",
            "prompt": "System\n\nPrompt",
            "stream": False,
            "options": {"temperature": 0.3, "num_predict": 200},
        }

    @pytest.mark.asyncio
    async def test_http_error_raises_provider_error(self, config: KnowledgeBaseConfig) -> None:
        """Test non-2xx responses surface as ProviderError."""
        provider = LocalProvider(config)
        provider.client = httpx.AsyncClient(
            base_url=provider.base_url,
            transport=httpx.MockTransport(lambda request: httpx.Response(500, text="oops")),
        )

        with pytest.raises(ProviderError):
            await provider.generate("Prompt")

    @pytest.mark.asyncio
    async def test_missing_model_raises_not_configured(self) -> None:
        """Test missing connection info fails at call time."""
        provider = LocalProvider(KnowledgeBaseConfig(local_llm_url="", local_llm_model=""))

        with pytest.raises(ProviderNotConfigured):
            await provider.generate("Prompt")


@pytest.mark.unit
class TestGetCompletionProvider:
    """Test suite for provider selection."""

    @pytest.mark.parametrize(
        ("name", "provider_cls"),
        [("openai", OpenAIProvider), ("gemini", GeminiProvider), ("LOCAL", LocalProvider)],
    )
    def test_selects_provider_by_name(self, name: str, provider_cls: type) -> None:
        """Test the configured name picks the backend."""
        provider = get_completion_provider(
            KnowledgeBaseConfig(llm_provider=name, openai_api_key="", gemini_api_key="")
        )

        assert isinstance(provider, provider_cls)

    def test_unknown_provider_raises(self) -> None:
        """Test unknown provider names are rejected."""
        with pytest.raises(ProviderNotConfigured):
            get_completion_provider(KnowledgeBaseConfig(llm_provider="anthropic"))
