"""Main pipeline orchestrator for adding, processing and categorizing videos."""

from typing import Any

from src.utils.logging import get_logger

from .categorization_service import CategorizationService
from .chunking_service import ChunkingService
from .config import KnowledgeBaseConfig, get_config
from .errors import Conflict, InvalidInput
from .llm_service import CompletionProvider, get_completion_provider
from .rag_service import RAGService
from .schemas import (
    BatchCategorySuggestion,
    CategorySuggestion,
    ProcessResult,
    RelationshipMetadata,
    Video,
)
from .storage_service import StorageService
from .summarization_service import SummarizationService
from .transcript_service import TranscriptService
from .youtube_service import YouTubeService

logger = get_logger(__name__)


class VideoPipeline:
    """Orchestrates the video processing pipeline.

    This class coordinates all services to register YouTube videos, fetch
    their transcripts, summarize them, index them for question answering and
    suggest categories. Steps for one video run strictly in sequence.
    """

    def __init__(
        self,
        config: KnowledgeBaseConfig | None = None,
        storage: StorageService | None = None,
        provider: CompletionProvider | None = None,
    ):
        """Initialize pipeline with all required services.

        Args:
            config: Configuration object. If None, loads from environment.
            storage: Storage service. If None, one is built from config.
            provider: Completion provider. If None, the configured one is built.
        """
        self.config = config or get_config()
        self.storage_service = storage or StorageService(self.config)
        self.provider = provider or get_completion_provider(self.config)

        self.youtube_service = YouTubeService(self.config)
        self.transcript_service = TranscriptService(self.config)
        self.chunking_service = ChunkingService(self.config)
        self.summarization_service = SummarizationService(self.config, self.provider)
        self.categorization_service = CategorizationService(self.provider)
        self.rag_service = RAGService(
            self.config,
            self.storage_service,
            self.provider,
            self.chunking_service,
        )

        logger.info(
            "pipeline_initialized",
            llm_provider=self.provider.name,
            chunk_size=self.config.chunk_size_words,
        )

    async def add_video(
        self,
        url: str,
        category_id: str | None = None,
        tags: list[str] | None = None,
    ) -> Video:
        """Register a YouTube video by URL or id.

        Args:
            url: YouTube URL or bare video id.
            category_id: Optional category to file the video under.
            tags: Optional initial tags.

        Returns:
            The stored video, unwatched and not yet processed.

        Raises:
            InvalidInput: If the URL is missing or not a YouTube video.
            Conflict: If the video was already added.
        """
        if not url or not url.strip():
            raise InvalidInput("URL is required")

        if not self.youtube_service.is_valid_youtube_url(url):
            raise InvalidInput("Invalid YouTube URL", details={"url": url})
        youtube_id = self.youtube_service.extract_video_id(url)

        existing = await self.storage_service.get_video_by_youtube_id(youtube_id)
        if existing is not None:
            raise Conflict(
                "Video already exists",
                details={"video": existing.model_dump(mode="json", by_alias=True)},
            )

        metadata = await self.youtube_service.get_video_metadata(youtube_id)
        video = await self.storage_service.create_video(
            metadata,
            category_id=category_id or None,
            tags=tags or [],
        )

        logger.info("video_added", video_id=video.id, youtube_id=youtube_id, title=video.title)
        return video

    async def process_video(self, video_id: str) -> ProcessResult:
        """Fetch the transcript, summarize it, persist both and index the video.

        This method:
        1. Loads the stored video
        2. Fetches and normalizes its transcript
        3. Generates the multi-level summary (degrades instead of failing)
        4. Stores transcript and summary on the video
        5. Records the indexing metadata

        Args:
            video_id: Stored video id.

        Returns:
            ProcessResult with the updated video, its summary and index result.

        Raises:
            NotFound: If the video does not exist.
            NoTranscript: If the video has no captions.
            UpstreamUnavailable: If the caption source fails.
        """
        video = await self.storage_service.require_video(video_id)
        logger.info("processing_video", video_id=video_id, youtube_id=video.youtube_id)

        try:
            transcript = await self.transcript_service.get_transcript(video.youtube_id)

            summary = await self.summarization_service.summarize(transcript.full_text, video.title)

            updated = await self.storage_service.update_video(
                video_id,
                {"transcription": transcript.full_text, "summary_json": summary},
            )

            index_result = await self.rag_service.index(
                video_id,
                transcript.full_text,
                RelationshipMetadata(title=video.title, author=video.author),
            )

        except Exception as e:
            logger.exception(
                "video_processing_failed",
                video_id=video_id,
                error_type=type(e).__name__,
            )
            raise

        logger.info(
            "video_processed",
            video_id=video_id,
            segments=transcript.segment_count,
            chunk_count=index_result.chunk_count,
        )
        return ProcessResult(video=updated, summary=summary, index=index_result)

    async def auto_categorize(self, video_id: str) -> CategorySuggestion:
        """Suggest a category and tags for a stored video.

        Raises:
            NotFound: If the video does not exist.
        """
        video = await self.storage_service.require_video(video_id)
        categories = await self.storage_service.list_categories()
        return await self.categorization_service.suggest(video, categories)

    async def bulk_categorize(self, video_ids: list[str]) -> list[BatchCategorySuggestion]:
        """Suggest categories for several stored videos; unknown ids are skipped."""
        videos = await self.storage_service.get_videos_by_ids(video_ids)
        categories = await self.storage_service.list_categories()

        suggestions = await self.categorization_service.batch_categorize(videos, categories)
        logger.info("bulk_categorize_completed", requested=len(video_ids), suggested=len(suggestions))
        return suggestions

    async def close(self) -> None:
        """Release network resources held by the completion provider."""
        await self.provider.aclose()

    def describe(self) -> dict[str, Any]:
        """Summarize the active configuration for health output."""
        return {
            "llmProvider": self.provider.name,
            "chunkSize": self.config.chunk_size_words,
            "environment": self.config.environment,
        }
