"""Transcript service for fetching and normalizing captions via Supadata API."""

import math
import re

from supadata import Supadata

from src.utils.logging import get_logger

from .config import KnowledgeBaseConfig
from .errors import NoTranscript, UpstreamUnavailable
from .schemas import KeyTimestamp, TimestampedSegment, TranscriptResult, TranscriptSegment

logger = get_logger(__name__)

KEY_TIMESTAMP_SAMPLES = 10

# Error fragments the caption source uses when a video simply has no captions
UNAVAILABLE_MARKERS = (
    "transcript-unavailable",
    "transcript is disabled",
    "transcripts are disabled",
    "could not find",
    "no transcript",
    "206",
)

_WHITESPACE = re.compile(r"\s+")


def format_timestamp(seconds: float) -> str:
    """Format seconds as H:MM:SS, or M:SS for times under an hour.

    Args:
        seconds: Position in the video, in seconds. Fractions are dropped.

    Returns:
        Formatted timestamp string.

    Examples:
        >>> format_timestamp(65)
        '1:05'
        >>> format_timestamp(3725.9)
        '1:02:05'
    """
    total = int(math.floor(seconds))
    hours = total // 3600
    minutes = (total % 3600) // 60
    secs = total % 60

    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def extract_key_timestamps(segments: list[TranscriptSegment]) -> list[KeyTimestamp]:
    """Sample about ten evenly spaced moments from a transcript.

    Every ``max(1, len(segments) // 10)``-th segment is taken, starting with
    the first one.

    Args:
        segments: Ordered transcript segments.

    Returns:
        Key timestamps in transcript order.
    """
    if not segments:
        return []

    step = max(1, len(segments) // KEY_TIMESTAMP_SAMPLES)
    return [
        KeyTimestamp(
            time=segment.offset_ms / 1000,
            text=segment.text,
            formatted_time=format_timestamp(segment.offset_ms / 1000),
        )
        for segment in segments[::step]
    ]


def get_timestamped_transcript(segments: list[TranscriptSegment]) -> list[TimestampedSegment]:
    """Format every transcript segment with its display timestamp."""
    return [
        TimestampedSegment(
            timestamp=segment.offset_ms / 1000,
            formatted_time=format_timestamp(segment.offset_ms / 1000),
            text=segment.text,
            duration=segment.duration_ms / 1000,
        )
        for segment in segments
    ]


def normalize_transcript_text(segments: list[TranscriptSegment]) -> str:
    """Join segment texts and collapse all whitespace runs to single spaces."""
    joined = " ".join(segment.text for segment in segments)
    return _WHITESPACE.sub(" ", joined).strip()


class TranscriptService:
    """Service for acquiring YouTube captions.

    Missing captions are reported as ``NoTranscript`` so callers can tell the
    user exactly why a video could not be processed; any other caption source
    failure is reported as ``UpstreamUnavailable``.
    """

    def __init__(self, config: KnowledgeBaseConfig):
        """Initialize transcript service with configuration.

        Args:
            config: Configuration object with the Supadata API key.
        """
        self.config = config
        self.client = Supadata(api_key=config.supadata_api_key)
        logger.info(
            "transcript_service_initialized",
            api_key_present=bool(config.supadata_api_key),
        )

    async def fetch_segments(self, youtube_id: str) -> tuple[list[TranscriptSegment], str, list[str]]:
        """Fetch raw caption segments for a video.

        Args:
            youtube_id: YouTube video id.

        Returns:
            Tuple of (segments, reported language, available languages).

        Raises:
            NoTranscript: If captions are disabled or absent.
            UpstreamUnavailable: If the caption source request fails.
        """
        logger.info("fetching_transcript", youtube_id=youtube_id)

        try:
            response = self.client.youtube.transcript(
                video_id=youtube_id,
                text=False,  # Segments with timestamps instead of plain text
            )
        except Exception as e:
            error_str = str(e).lower()
            if any(marker in error_str for marker in UNAVAILABLE_MARKERS):
                logger.warning("transcript_unavailable", youtube_id=youtube_id, error=str(e))
                raise NoTranscript(
                    "No transcript available for this video",
                    details={"youtube_id": youtube_id},
                ) from e

            logger.exception(
                "transcript_fetch_error",
                youtube_id=youtube_id,
                error_type=type(e).__name__,
            )
            raise UpstreamUnavailable(f"Error fetching transcript: {e}") from e

        content = response.content if isinstance(response.content, list) else []
        segments = [
            TranscriptSegment(
                text=seg.text,
                offset_ms=int(seg.offset),
                duration_ms=int(seg.duration),
                lang=getattr(seg, "lang", None) or "unknown",
            )
            for seg in content
        ]
        lang = getattr(response, "lang", None) or (segments[0].lang if segments else "unknown")
        available_langs = list(getattr(response, "available_langs", None) or [])
        return segments, lang, available_langs

    async def get_transcript(self, youtube_id: str) -> TranscriptResult:
        """Fetch and normalize the transcript for a video.

        Args:
            youtube_id: YouTube video id.

        Returns:
            TranscriptResult with full text, segments, segment count and the
            language of the first segment.

        Raises:
            NoTranscript: If captions are disabled, absent or empty.
            UpstreamUnavailable: If the caption source request fails.
        """
        segments, _, available_langs = await self.fetch_segments(youtube_id)

        if not segments:
            logger.warning("transcript_empty", youtube_id=youtube_id)
            raise NoTranscript(
                "No transcript available for this video",
                details={"youtube_id": youtube_id},
            )

        full_text = normalize_transcript_text(segments)
        result = TranscriptResult(
            video_id=youtube_id,
            full_text=full_text,
            segments=segments,
            segment_count=len(segments),
            language=segments[0].lang or "unknown",
            available_langs=available_langs,
        )

        logger.info(
            "transcript_fetched",
            youtube_id=youtube_id,
            segments=result.segment_count,
            language=result.language,
            characters=len(full_text),
        )
        return result
