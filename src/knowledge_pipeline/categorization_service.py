"""Categorization service suggesting categories and tags for videos."""

from src.utils.logging import get_logger

from .errors import ParseFailure, UpstreamUnavailable
from .llm_service import CompletionProvider
from .response_parsing import parse_category_suggestion
from .schemas import BatchCategorySuggestion, Category, CategoryDistribution, CategorySuggestion, Video

logger = get_logger(__name__)

CATEGORIZATION_SYSTEM_PROMPT = (
    "You are an expert at categorizing educational content. Always respond with valid JSON."
)

TRANSCRIPT_PREVIEW_CHARS = 1000
FALLBACK_MAX_TAGS = 5
FALLBACK_CONFIDENCE = 0.5
FALLBACK_REASON = "Keyword-based fallback categorization"
DEFAULT_CATEGORY = "General"

# Checked in order; the first category with any hit wins
FALLBACK_KEYWORDS: dict[str, list[str]] = {
    "Programming": ["code", "programming", "javascript", "python", "java", "tutorial", "development"],
    "Science": ["science", "physics", "chemistry", "biology", "research"],
    "Math": ["math", "mathematics", "calculus", "algebra", "geometry"],
    "Business": ["business", "marketing", "finance", "startup", "entrepreneurship"],
    "Design": ["design", "ui", "ux", "graphic", "photoshop", "figma"],
    "Music": ["music", "guitar", "piano", "singing", "production"],
    "Language": ["language", "english", "spanish", "learning", "grammar"],
}

CATEGORIZATION_PROMPT_TEMPLATE = """
Analyze this YouTube video and suggest:
1. The most appropriate category from the existing list (or suggest a new one)
2. 5-7 relevant tags

Video Title: {title}
Description: {description}
Transcript Preview: {transcript_preview}

Existing Categories: {category_list}

Respond in JSON format:
{{
  "suggestedCategory": "category name",
  "isNewCategory": true/false,
  "tags": ["tag1", "tag2", ...],
  "confidence": 0.0-1.0,
  "reason": "brief explanation"
}}
"""


def get_fallback_categorization(title: str) -> CategorySuggestion:
    """Categorize a video from keywords in its title.

    Args:
        title: Video title.

    Returns:
        Suggestion for the first keyword category with a case-insensitive
        substring hit, or "General" with no tags.
    """
    title_lower = (title or "").lower()

    for category, terms in FALLBACK_KEYWORDS.items():
        matches = [term for term in terms if term in title_lower]
        if matches:
            return CategorySuggestion(
                suggested_category=category,
                is_new_category=False,
                tags=matches[:FALLBACK_MAX_TAGS],
                confidence=FALLBACK_CONFIDENCE,
                reason=FALLBACK_REASON,
            )

    return CategorySuggestion(
        suggested_category=DEFAULT_CATEGORY,
        is_new_category=False,
        tags=[],
        confidence=FALLBACK_CONFIDENCE,
        reason=FALLBACK_REASON,
    )


def analyze_distribution(videos: list[Video], categories: list[Category]) -> CategoryDistribution:
    """Count videos per category name and collect uncategorized video ids.

    Videos pointing at a category id that no longer exists count as
    uncategorized.
    """
    names = {category.id: category.name for category in categories}
    distribution: dict[str, dict] = {}
    uncategorized: list[str] = []

    for video in videos:
        name = names.get(video.category_id) if video.category_id else None
        if name is None:
            uncategorized.append(video.id)
            continue

        entry = distribution.setdefault(name, {"count": 0, "videos": []})
        entry["count"] += 1
        entry["videos"].append(video.id)

    return CategoryDistribution(
        distribution=distribution,
        uncategorized=uncategorized,
        total_categories=len(distribution),
        uncategorized_count=len(uncategorized),
    )


class CategorizationService:
    """Service for suggesting a category and tags for videos.

    Suggestions always succeed: provider and parse failures fall back to the
    keyword table.
    """

    def __init__(self, provider: CompletionProvider):
        self.provider = provider

    def build_prompt(self, video: Video, existing_categories: list[Category]) -> str:
        """Build the categorization prompt for a video."""
        category_list = (
            ", ".join(category.name for category in existing_categories)
            if existing_categories
            else "No existing categories"
        )
        transcript_preview = (
            video.transcription[:TRANSCRIPT_PREVIEW_CHARS] if video.transcription else "Not available"
        )

        return CATEGORIZATION_PROMPT_TEMPLATE.format(
            title=video.title,
            description=video.description or "Not available",
            transcript_preview=transcript_preview,
            category_list=category_list,
        )

    async def suggest(self, video: Video, existing_categories: list[Category]) -> CategorySuggestion:
        """Suggest a category and tags for a video.

        Args:
            video: Video with title, optional description and transcript.
            existing_categories: Categories the provider should prefer.

        Returns:
            Provider suggestion, or the keyword fallback when the provider
            call or parsing fails.
        """
        logger.info("categorization_started", video_id=video.id, title=video.title)

        try:
            response = await self.provider.generate(
                self.build_prompt(video, existing_categories),
                system_prompt=CATEGORIZATION_SYSTEM_PROMPT,
                temperature=0.3,
                max_tokens=500,
            )
            suggestion = parse_category_suggestion(response)
        except (UpstreamUnavailable, ParseFailure) as e:
            logger.warning(
                "categorization_fallback",
                video_id=video.id,
                error_type=type(e).__name__,
                error=e.message,
            )
            return get_fallback_categorization(video.title)

        logger.info(
            "categorization_completed",
            video_id=video.id,
            category=suggestion.suggested_category,
            confidence=suggestion.confidence,
        )
        return suggestion

    async def batch_categorize(
        self, videos: list[Video], categories: list[Category]
    ) -> list[BatchCategorySuggestion]:
        """Suggest categories for several videos, one after another."""
        suggestions = []
        for video in videos:
            suggestion = await self.suggest(video, categories)
            suggestions.append(
                BatchCategorySuggestion(video_id=video.id, **suggestion.model_dump())
            )
        return suggestions
