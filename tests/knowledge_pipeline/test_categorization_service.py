"""Unit tests for categorization service."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.knowledge_pipeline.categorization_service import (
    CategorizationService,
    analyze_distribution,
    get_fallback_categorization,
)
from src.knowledge_pipeline.errors import ProviderError
from src.knowledge_pipeline.schemas import Category, Video


def make_video(video_id: str, title: str, category_id: str | None = None, **kwargs) -> Video:
    return Video(
        id=video_id,
        youtube_id=f"yt{video_id:0>9}"[:11],
        url=f"https://www.youtube.com/watch?v={video_id}",
        title=title,
        category_id=category_id,
        **kwargs,
    )


@pytest.mark.unit
class TestFallbackCategorization:
    """Test suite for keyword-based fallback categorization."""

    def test_programming_keywords(self) -> None:
        """Test a programming title matches with its keyword tags."""
        suggestion = get_fallback_categorization("Python Tutorial for Beginners")

        assert suggestion.suggested_category == "Programming"
        assert suggestion.tags == ["python", "tutorial"]
        assert suggestion.confidence == 0.5
        assert suggestion.is_new_category is False
        assert suggestion.reason == "Keyword-based fallback categorization"

    def test_first_category_in_table_order_wins(self) -> None:
        """Test a title matching several categories picks the earliest."""
        suggestion = get_fallback_categorization("Physics simulation code")

        assert suggestion.suggested_category == "Programming"

    def test_substring_matching(self) -> None:
        """Test keywords match as substrings, not whole words."""
        assert get_fallback_categorization("Building a UI kit").suggested_category == "Design"

    def test_no_match_returns_general(self) -> None:
        """Test unmatched titles fall back to General without tags."""
        suggestion = get_fallback_categorization("My holiday vlog")

        assert suggestion.suggested_category == "General"
        assert suggestion.tags == []

    def test_tags_capped_at_five(self) -> None:
        """Test at most five keyword tags are returned."""
        suggestion = get_fallback_categorization(
            "code programming javascript python java tutorial development"
        )

        assert len(suggestion.tags) == 5


@pytest.mark.unit
class TestAnalyzeDistribution:
    """Test suite for category distribution analysis."""

    def test_distribution(self) -> None:
        """Test counts per category name and uncategorized ids."""
        categories = [Category(id="c1", name="Programming"), Category(id="c2", name="Math")]
        videos = [
            make_video("v1", "A", "c1"),
            make_video("v2", "B", "c1"),
            make_video("v3", "C", "c2"),
            make_video("v4", "D"),
            make_video("v5", "E", "deleted"),
        ]

        result = analyze_distribution(videos, categories)

        assert result.distribution == {
            "Programming": {"count": 2, "videos": ["v1", "v2"]},
            "Math": {"count": 1, "videos": ["v3"]},
        }
        assert result.uncategorized == ["v4", "v5"]
        assert result.total_categories == 2
        assert result.uncategorized_count == 2

    def test_empty(self) -> None:
        """Test no videos gives an empty distribution."""
        result = analyze_distribution([], [])

        assert result.distribution == {}
        assert result.uncategorized_count == 0


@pytest.mark.unit
class TestCategorizationService:
    """Test suite for CategorizationService class."""

    @pytest.fixture
    def mock_provider(self) -> MagicMock:
        """Create mock completion provider."""
        provider = MagicMock()
        provider.generate = AsyncMock()
        return provider

    @pytest.fixture
    def service(self, mock_provider: MagicMock) -> CategorizationService:
        """Create categorization service with mocked provider."""
        return CategorizationService(mock_provider)

    def test_build_prompt_placeholders(self, service: CategorizationService) -> None:
        """Test missing description and transcript use placeholders."""
        prompt = service.build_prompt(make_video("v1", "Closures"), [])

        assert "Video Title: Closures" in prompt
        assert "Description: Not available" in prompt
        assert "Transcript Preview: Not available" in prompt
        assert "Existing Categories: No existing categories" in prompt

    def test_build_prompt_with_content(self, service: CategorizationService) -> None:
        """Test transcript preview is capped and categories are listed."""
        video = make_video("v1", "Closures", description="About JS", transcription="t" * 1500)

        prompt = service.build_prompt(
            video, [Category(id="c1", name="Programming"), Category(id="c2", name="Math")]
        )

        assert "Description: About JS" in prompt
        assert "t" * 1000 in prompt
        assert "t" * 1001 not in prompt
        assert "Existing Categories: Programming, Math" in prompt

    @pytest.mark.asyncio
    async def test_suggest_success(
        self, service: CategorizationService, mock_provider: MagicMock
    ) -> None:
        """Test provider suggestion is parsed and returned."""
        mock_provider.generate.return_value = (
            '{"suggestedCategory": "Programming", "isNewCategory": false, '
            '"tags": ["javascript", "closures"], "confidence": 0.92, "reason": "JS lesson"}'
        )

        suggestion = await service.suggest(make_video("v1", "Closures"), [])

        assert suggestion.suggested_category == "Programming"
        assert suggestion.confidence == 0.92
        kwargs = mock_provider.generate.call_args.kwargs
        assert kwargs["temperature"] == 0.3
        assert kwargs["max_tokens"] == 500

    @pytest.mark.asyncio
    async def test_suggest_parse_failure_uses_fallback(
        self, service: CategorizationService, mock_provider: MagicMock
    ) -> None:
        """Test unparseable output falls back to keywords."""
        mock_provider.generate.return_value = "Programming, probably"

        suggestion = await service.suggest(make_video("v1", "Learn Python fast"), [])

        assert suggestion.suggested_category == "Programming"
        assert suggestion.confidence == 0.5

    @pytest.mark.asyncio
    async def test_suggest_provider_failure_uses_fallback(
        self, service: CategorizationService, mock_provider: MagicMock
    ) -> None:
        """Test provider errors fall back to keywords."""
        mock_provider.generate.side_effect = ProviderError("down")

        suggestion = await service.suggest(make_video("v1", "Piano basics"), [])

        assert suggestion.suggested_category == "Music"
        assert suggestion.tags == ["piano"]

    @pytest.mark.asyncio
    async def test_fallback_is_deterministic(
        self, service: CategorizationService, mock_provider: MagicMock
    ) -> None:
        """Test repeated fallbacks for the same video give identical suggestions."""
        mock_provider.generate.side_effect = ProviderError("down")
        video = make_video("v1", "Python Tutorial for Beginners")

        suggestions = [await service.suggest(video, []) for _ in range(3)]

        first = suggestions[0]
        assert first.suggested_category == "Programming"
        for suggestion in suggestions[1:]:
            assert suggestion.suggested_category == first.suggested_category
            assert suggestion.tags == first.tags
            assert suggestion.confidence == first.confidence

    @pytest.mark.asyncio
    async def test_batch_categorize(
        self, service: CategorizationService, mock_provider: MagicMock
    ) -> None:
        """Test each video gets a suggestion tagged with its id, in order."""
        mock_provider.generate.side_effect = [
            '{"suggestedCategory": "Math", "isNewCategory": true, '
            '"tags": ["algebra"], "confidence": 0.8, "reason": "Algebra"}',
            ProviderError("down"),
        ]
        videos = [make_video("v1", "Algebra 101"), make_video("v2", "Cooking pasta")]

        results = await service.batch_categorize(videos, [])

        assert [r.video_id for r in results] == ["v1", "v2"]
        assert results[0].suggested_category == "Math"
        assert results[0].is_new_category is True
        assert results[1].suggested_category == "General"
