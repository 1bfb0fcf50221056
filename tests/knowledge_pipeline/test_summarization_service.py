"""Unit tests for summarization service."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.knowledge_pipeline.config import KnowledgeBaseConfig
from src.knowledge_pipeline.errors import ProviderError, ProviderNotConfigured
from src.knowledge_pipeline.schemas import TranscriptSegment
from src.knowledge_pipeline.summarization_service import (
    TRUNCATION_MARKER,
    SummarizationService,
)


@pytest.mark.unit
class TestSummarizationService:
    """Test suite for SummarizationService class."""

    @pytest.fixture
    def config(self) -> KnowledgeBaseConfig:
        """Create test configuration."""
        return KnowledgeBaseConfig(summary_max_chars=10000)

    @pytest.fixture
    def mock_provider(self) -> MagicMock:
        """Create mock completion provider."""
        provider = MagicMock()
        provider.name = "mock"
        provider.generate = AsyncMock()
        return provider

    @pytest.fixture
    def service(self, config: KnowledgeBaseConfig, mock_provider: MagicMock) -> SummarizationService:
        """Create summarization service with mocked provider."""
        return SummarizationService(config, mock_provider)

    def test_prompt_truncates_long_transcript(self, service: SummarizationService) -> None:
        """Test transcripts over 10,000 characters are cut and marked."""
        transcript = "a" * 10000 + "TAIL"

        prompt = service.build_summary_prompt(transcript, "Title")

        assert "a" * 10000 in prompt
        assert "TAIL" not in prompt
        assert TRUNCATION_MARKER in prompt

    def test_prompt_keeps_short_transcript(self, service: SummarizationService) -> None:
        """Test transcripts at the limit are not marked."""
        prompt = service.build_summary_prompt("b" * 10000, "My Title")

        assert TRUNCATION_MARKER not in prompt
        assert "Video Title: My Title" in prompt

    @pytest.mark.asyncio
    async def test_summarize_success(
        self, service: SummarizationService, mock_provider: MagicMock
    ) -> None:
        """Test parsed summary is returned with the expected call options."""
        mock_provider.generate.return_value = json.dumps(
            {
                "quickSummary": "Short",
                "detailedSummary": "Long form",
                "keyPoints": ["one", "two", "three"],
            }
        )

        summary = await service.summarize("transcript text", "Title")

        assert summary.quick_summary == "Short"
        assert summary.detailed_summary == "Long form"
        assert summary.key_points == ["one", "two", "three"]
        kwargs = mock_provider.generate.call_args.kwargs
        assert kwargs["temperature"] == 0.5
        assert kwargs["max_tokens"] == 1500

    @pytest.mark.asyncio
    async def test_summarize_unparseable_response(
        self, service: SummarizationService, mock_provider: MagicMock
    ) -> None:
        """Test non-JSON output degrades to a summary built from the raw text."""
        raw = "Here is a summary: " + "x" * 300
        mock_provider.generate.return_value = raw

        summary = await service.summarize("transcript text", "Title")

        assert summary.quick_summary == raw[:200]
        assert summary.detailed_summary == raw
        assert summary.key_points == ["Summary generated but format parsing failed"]

    @pytest.mark.asyncio
    async def test_summarize_missing_field_is_parse_failure(
        self, service: SummarizationService, mock_provider: MagicMock
    ) -> None:
        """Test JSON missing keyPoints is treated as unparseable."""
        mock_provider.generate.return_value = '{"quickSummary": "Q", "detailedSummary": "D"}'

        summary = await service.summarize("transcript text", "Title")

        assert summary.key_points == ["Summary generated but format parsing failed"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [ProviderError("quota exceeded"), ProviderNotConfigured("quota exceeded")],
    )
    async def test_summarize_provider_failure(
        self, service: SummarizationService, mock_provider: MagicMock, error: Exception
    ) -> None:
        """Test provider failures degrade instead of raising."""
        mock_provider.generate.side_effect = error

        summary = await service.summarize("transcript text", "Title")

        assert summary.quick_summary == "Summary generation failed"
        assert summary.detailed_summary == "Error: quota exceeded"
        assert summary.key_points == ["Unable to generate summary at this time"]

    @pytest.mark.asyncio
    async def test_extract_topics(
        self, service: SummarizationService, mock_provider: MagicMock
    ) -> None:
        """Test topics come from the first 8000 characters."""
        mock_provider.generate.return_value = '["closures", "scope"]'

        topics = await service.extract_topics("c" * 8000 + "TAIL")

        assert topics == ["closures", "scope"]
        prompt = mock_provider.generate.call_args.args[0]
        assert "TAIL" not in prompt

    @pytest.mark.asyncio
    async def test_extract_topics_failure_returns_empty(
        self, service: SummarizationService, mock_provider: MagicMock
    ) -> None:
        """Test parse and provider failures give no topics."""
        mock_provider.generate.return_value = "closures and scope"
        assert await service.extract_topics("text") == []

        mock_provider.generate.side_effect = ProviderError("down")
        assert await service.extract_topics("text") == []

    @pytest.mark.asyncio
    async def test_generate_highlights(
        self, service: SummarizationService, mock_provider: MagicMock
    ) -> None:
        """Test windows of 60 segments, first five only, failures skipped."""
        segments = [
            TranscriptSegment(text=f"s{i}", offset_ms=i * 2000, duration_ms=2000)
            for i in range(400)
        ]
        mock_provider.generate.side_effect = [
            '{"highlight": "Intro to closures", "important": true}',
            '{"highlight": null, "important": false}',
            "not json",
            ProviderError("timeout"),
            '{"highlight": "Scope rules", "important": true}',
        ]

        highlights = await service.generate_highlights(segments, "Closures", "dQw4w9WgXcQ")

        assert mock_provider.generate.call_count == 5
        assert [h.text for h in highlights] == ["Intro to closures", "Scope rules"]
        assert highlights[0].timestamp == 0
        assert highlights[1].timestamp == 480.0
        assert highlights[1].formatted_time == "8:00"
        assert highlights[1].youtube_link == "https://www.youtube.com/watch?v=dQw4w9WgXcQ&t=480s"

    @pytest.mark.asyncio
    async def test_generate_highlights_empty(
        self, service: SummarizationService, mock_provider: MagicMock
    ) -> None:
        """Test no segments means no provider calls."""
        assert await service.generate_highlights([], "Title", "dQw4w9WgXcQ") == []
        mock_provider.generate.assert_not_called()
