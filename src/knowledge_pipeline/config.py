"""Configuration module for the YouTube knowledge base pipeline."""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field

# Load environment variables from .env file
load_dotenv()


class KnowledgeBaseConfig(BaseModel):
    """Configuration for the knowledge base pipeline.

    This configuration class manages all settings for transcript fetching,
    completion providers, summarization, retrieval and storage. All settings
    can be overridden via environment variables.
    """

    # Supadata API settings (captions and video metadata)
    supadata_api_key: str = Field(
        default_factory=lambda: os.getenv("SUPADATA_API_KEY", "")
    )

    # Database settings
    supabase_url: str = Field(default_factory=lambda: os.getenv("SUPABASE_URL", ""))
    supabase_key: str = Field(
        default_factory=lambda: os.getenv("SUPABASE_SERVICE_KEY", "")
    )

    # Completion provider selection: openai, gemini or local
    llm_provider: str = Field(
        default_factory=lambda: os.getenv("LLM_PROVIDER", "openai")
    )

    # Hosted chat model
    openai_api_key: str = Field(
        default_factory=lambda: os.getenv("OPENAI_API_KEY", "")
    )
    openai_base_url: str = Field(
        default_factory=lambda: os.getenv(
            "OPENAI_BASE_URL", "https://api.openai.com/v1"
        )
    )
    openai_model: str = Field(
        default_factory=lambda: os.getenv("OPENAI_MODEL", "gpt-3.5-turbo")
    )

    # Hosted generative model
    gemini_api_key: str = Field(
        default_factory=lambda: os.getenv("GEMINI_API_KEY", "")
    )
    gemini_model: str = Field(
        default_factory=lambda: os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
    )

    # Self-hosted model (Ollama)
    local_llm_url: str = Field(
        default_factory=lambda: os.getenv("LOCAL_LLM_URL", "http://localhost:11434")
    )
    local_llm_model: str = Field(
        default_factory=lambda: os.getenv("LOCAL_LLM_MODEL", "llama2")
    )
    local_llm_timeout: float = Field(
        default_factory=lambda: float(os.getenv("LOCAL_LLM_TIMEOUT", "120"))
    )

    # Processing settings
    chunk_size_words: int = Field(
        default_factory=lambda: int(os.getenv("CHUNK_SIZE_WORDS", "500"))
    )
    summary_max_chars: int = Field(
        default_factory=lambda: int(os.getenv("SUMMARY_MAX_CHARS", "10000"))
    )
    rag_context_chars: int = Field(
        default_factory=lambda: int(os.getenv("RAG_CONTEXT_CHARS", "2000"))
    )
    rag_max_candidates: int = Field(
        default_factory=lambda: int(os.getenv("RAG_MAX_CANDIDATES", "10"))
    )

    # Monitoring settings
    slow_request_ms: int = Field(
        default_factory=lambda: int(os.getenv("SLOW_REQUEST_MS", "2000"))
    )
    error_log_size: int = Field(
        default_factory=lambda: int(os.getenv("ERROR_LOG_SIZE", "500"))
    )
    environment: str = Field(
        default_factory=lambda: os.getenv("ENVIRONMENT", "development")
    )


def get_config() -> KnowledgeBaseConfig:
    """Get validated configuration instance.

    Returns:
        KnowledgeBaseConfig: Validated configuration object with all settings.

    Raises:
        ValidationError: If environment variables hold invalid values.
    """
    return KnowledgeBaseConfig()
