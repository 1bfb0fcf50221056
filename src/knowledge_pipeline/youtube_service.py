"""YouTube service for video identity and metadata via Supadata API."""

import re
from datetime import datetime
from typing import Any

from supadata import Supadata

from src.utils.logging import get_logger

from .config import KnowledgeBaseConfig
from .schemas import VideoMetadata

logger = get_logger(__name__)

VIDEO_ID_LENGTH = 11

URL_PATTERNS = [
    re.compile(
        r"(?:youtube\.com/watch\?(?:.*&)?v=|youtu\.be/|youtube\.com/embed/|youtube\.com/shorts/)"
        r"([^&\n?#/]+)"
    ),
    re.compile(r"^([a-zA-Z0-9_-]{11})$"),
]


def build_watch_url(youtube_id: str) -> str:
    """Build the canonical watch URL for a YouTube video id."""
    return f"https://www.youtube.com/watch?v={youtube_id}"


class YouTubeService:
    """Service for resolving YouTube identifiers and fetching video metadata.

    Metadata lookups never fail the caller: when Supadata cannot describe a
    video, a placeholder record built from the id is returned instead.
    """

    def __init__(self, config: KnowledgeBaseConfig):
        """Initialize YouTube service with configuration.

        Args:
            config: Configuration object with the Supadata API key.
        """
        self.config = config
        self.client = Supadata(api_key=config.supadata_api_key)
        logger.info(
            "youtube_service_initialized",
            api_key_present=bool(config.supadata_api_key),
        )

    @staticmethod
    def extract_video_id(url_or_id: str) -> str | None:
        """Extract the YouTube video id from a URL or bare id.

        Args:
            url_or_id: Watch, short-link, embed or shorts URL, or an 11
                character video id.

        Returns:
            The video id, or None when the input is not recognized.

        Examples:
            >>> YouTubeService.extract_video_id("https://youtu.be/dQw4w9WgXcQ")
            'dQw4w9WgXcQ'
            >>> YouTubeService.extract_video_id("not a url") is None
            True
        """
        if not url_or_id:
            return None

        candidate = url_or_id.strip()
        if len(candidate) == VIDEO_ID_LENGTH and "/" not in candidate and "." not in candidate:
            return candidate

        for pattern in URL_PATTERNS:
            match = pattern.search(candidate)
            if match and match.group(1):
                return match.group(1)

        return None

    @classmethod
    def is_valid_youtube_url(cls, url_or_id: str) -> bool:
        """Check that a URL or id resolves to an 11 character video id."""
        video_id = cls.extract_video_id(url_or_id)
        return video_id is not None and len(video_id) == VIDEO_ID_LENGTH

    async def get_video_metadata(self, youtube_id: str) -> VideoMetadata:
        """Fetch title, author, duration and upload date for a video.

        Args:
            youtube_id: YouTube video id.

        Returns:
            VideoMetadata for the video. On lookup failure a fallback record
            with a generated title and the error message is returned.
        """
        logger.info("fetching_video_metadata", youtube_id=youtube_id)
        url = build_watch_url(youtube_id)

        try:
            video = self.client.youtube.video(id=youtube_id)

            channel = getattr(video, "channel", None) or {}
            author = channel.get("name") if isinstance(channel, dict) else getattr(channel, "name", None)

            metadata = VideoMetadata(
                youtube_id=youtube_id,
                url=url,
                title=video.title,
                author=author or "Unknown",
                duration=_to_int(getattr(video, "duration", None)),
                upload_date=_to_datetime(getattr(video, "upload_date", None)),
                thumbnail=getattr(video, "thumbnail", None),
                description=getattr(video, "description", None) or "",
            )

            logger.info(
                "video_metadata_fetched",
                youtube_id=youtube_id,
                title=metadata.title,
                duration=metadata.duration,
            )
            return metadata

        except Exception as e:
            logger.warning(
                "video_metadata_fallback",
                youtube_id=youtube_id,
                error_type=type(e).__name__,
                error=str(e),
            )
            return VideoMetadata(
                youtube_id=youtube_id,
                url=url,
                title=f"Video {youtube_id}",
                author="Unknown",
                thumbnail=f"https://img.youtube.com/vi/{youtube_id}/maxresdefault.jpg",
                error=str(e),
            )


def _to_int(value: Any) -> int | None:
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def _to_datetime(value: Any) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None
