"""Summarization service for multi-level transcript summaries."""

from src.utils.logging import get_logger

from .config import KnowledgeBaseConfig
from .errors import ParseFailure, UpstreamUnavailable
from .llm_service import CompletionProvider
from .response_parsing import parse_highlight, parse_summary, parse_topics
from .schemas import Highlight, TranscriptSegment, VideoSummary
from .transcript_service import format_timestamp

logger = get_logger(__name__)

TRUNCATION_MARKER = "...(truncated)"

SUMMARY_SYSTEM_PROMPT = (
    "You are an expert at summarizing educational video content. "
    "Always respond with valid JSON."
)
TOPICS_SYSTEM_PROMPT = "You extract topics from text. Always respond with a valid JSON array."
HIGHLIGHT_SYSTEM_PROMPT = (
    "You identify key moments in video transcripts. Respond with valid JSON."
)

FALLBACK_QUICK_SUMMARY_CHARS = 200
TOPICS_MAX_CHARS = 8000
HIGHLIGHT_WINDOW_SEGMENTS = 60
HIGHLIGHT_MAX_WINDOWS = 5
HIGHLIGHT_WINDOW_CHARS = 1000

SUMMARY_PROMPT_TEMPLATE = """
Analyze the following YouTube video transcript and provide:

1. A quick summary (50 words max)
2. A detailed summary (300-500 words)
3. Key points (5-7 bullet points)

Video Title: {title}

Transcript:
{transcript}

Respond in JSON format:
{{
  "quickSummary": "...",
  "detailedSummary": "...",
  "keyPoints": ["...", "..."]
}}
"""

TOPICS_PROMPT_TEMPLATE = """
Analyze this video transcript and extract 5-10 main topics or themes.
Return only a JSON array of topics, for example: ["topic1", "topic2", ...]

Transcript:
{transcript}
"""

HIGHLIGHT_PROMPT_TEMPLATE = """
Analyze this segment from a YouTube video titled "{title}" and identify the most important highlight or key point.

Time Range: {start} - {end}

Transcript:
{text}

If there's a key point, respond with JSON:
{{
  "highlight": "brief description of the key point (max 100 chars)",
  "important": true
}}

If this segment doesn't contain important information, respond with:
{{
  "highlight": null,
  "important": false
}}
"""


def truncate_transcript(transcript: str, max_chars: int) -> str:
    """Cut a transcript to ``max_chars`` and mark it when anything was dropped."""
    if len(transcript) <= max_chars:
        return transcript
    return f"{transcript[:max_chars]} {TRUNCATION_MARKER}"


class SummarizationService:
    """Service for generating summaries, topics and highlights with an LLM.

    Summaries are always returned: unparseable responses and provider
    failures both degrade to a well-formed VideoSummary so video processing
    never stops at this step once a transcript exists.
    """

    def __init__(self, config: KnowledgeBaseConfig, provider: CompletionProvider):
        """Initialize summarization service.

        Args:
            config: Configuration with the transcript character limit.
            provider: Completion provider used for all generation calls.
        """
        self.config = config
        self.provider = provider

    def build_summary_prompt(self, transcript: str, title: str) -> str:
        """Build the summary prompt for a transcript.

        Transcripts longer than the configured limit (10,000 characters by
        default) are cut and followed by a truncation marker.
        """
        return SUMMARY_PROMPT_TEMPLATE.format(
            title=title,
            transcript=truncate_transcript(transcript, self.config.summary_max_chars),
        )

    async def summarize(self, transcript: str, title: str) -> VideoSummary:
        """Generate a quick summary, a detailed summary and key points.

        Args:
            transcript: Full transcript text.
            title: Video title.

        Returns:
            VideoSummary parsed from the provider, or a degraded summary when
            parsing or the provider call fails.
        """
        logger.info("summary_generation_started", title=title, transcript_length=len(transcript))

        try:
            response = await self.provider.generate(
                self.build_summary_prompt(transcript, title),
                system_prompt=SUMMARY_SYSTEM_PROMPT,
                temperature=0.5,
                max_tokens=1500,
            )
        except UpstreamUnavailable as e:
            logger.warning(
                "summary_generation_failed",
                title=title,
                error_type=type(e).__name__,
                error=e.message,
            )
            return VideoSummary(
                quick_summary="Summary generation failed",
                detailed_summary=f"Error: {e.message}",
                key_points=["Unable to generate summary at this time"],
            )

        try:
            summary = parse_summary(response)
        except ParseFailure as e:
            logger.warning("summary_parse_failed", title=title, error=e.message)
            return VideoSummary(
                quick_summary=response[:FALLBACK_QUICK_SUMMARY_CHARS],
                detailed_summary=response,
                key_points=["Summary generated but format parsing failed"],
            )

        logger.info("summary_generation_completed", title=title, key_points=len(summary.key_points))
        return summary

    async def extract_topics(self, transcript: str) -> list[str]:
        """Extract the main topics of a transcript, or an empty list on failure."""
        prompt = TOPICS_PROMPT_TEMPLATE.format(transcript=transcript[:TOPICS_MAX_CHARS])

        try:
            response = await self.provider.generate(
                prompt,
                system_prompt=TOPICS_SYSTEM_PROMPT,
                temperature=0.5,
                max_tokens=300,
            )
            topics = parse_topics(response)
        except (UpstreamUnavailable, ParseFailure) as e:
            logger.warning("topic_extraction_failed", error_type=type(e).__name__, error=e.message)
            return []

        logger.info("topics_extracted", count=len(topics))
        return topics

    async def generate_highlights(
        self, segments: list[TranscriptSegment], title: str, youtube_id: str
    ) -> list[Highlight]:
        """Pick timestamped highlights from the first windows of a transcript.

        The transcript is grouped into windows of 60 segments and the first
        five windows are each sent to the provider once. Windows whose call or
        response fails are skipped.

        Args:
            segments: Ordered transcript segments.
            title: Video title.
            youtube_id: YouTube video id used for the timestamp links.

        Returns:
            Highlights in transcript order.
        """
        if not segments:
            return []

        windows = [
            segments[i : i + HIGHLIGHT_WINDOW_SEGMENTS]
            for i in range(0, len(segments), HIGHLIGHT_WINDOW_SEGMENTS)
        ][:HIGHLIGHT_MAX_WINDOWS]

        highlights: list[Highlight] = []
        for window in windows:
            start = window[0].offset_ms / 1000
            end = window[-1].offset_ms / 1000
            text = " ".join(segment.text for segment in window)

            prompt = HIGHLIGHT_PROMPT_TEMPLATE.format(
                title=title,
                start=format_timestamp(start),
                end=format_timestamp(end),
                text=text[:HIGHLIGHT_WINDOW_CHARS],
            )

            try:
                response = await self.provider.generate(
                    prompt,
                    system_prompt=HIGHLIGHT_SYSTEM_PROMPT,
                    temperature=0.3,
                    max_tokens=200,
                )
                candidate = parse_highlight(response)
            except (UpstreamUnavailable, ParseFailure) as e:
                logger.warning(
                    "highlight_window_failed",
                    youtube_id=youtube_id,
                    start=start,
                    error_type=type(e).__name__,
                )
                continue

            if candidate.important and candidate.highlight:
                highlights.append(
                    Highlight(
                        timestamp=start,
                        formatted_time=format_timestamp(start),
                        text=candidate.highlight,
                        youtube_link=f"https://www.youtube.com/watch?v={youtube_id}&t={int(start)}s",
                    )
                )

        logger.info("highlights_generated", youtube_id=youtube_id, count=len(highlights))
        return highlights
