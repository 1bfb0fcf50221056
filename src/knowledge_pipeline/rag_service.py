"""RAG service for indexing transcripts and answering questions over them.

Retrieval is deliberately naive: the candidate set is either the videos the
caller names or the most recent transcribed videos, and each candidate's
transcript prefix is placed in the prompt. No embeddings are computed.
"""

from datetime import datetime, timezone

from src.utils.logging import get_logger

from .chunking_service import ChunkingService
from .config import KnowledgeBaseConfig
from .llm_service import CompletionProvider
from .schemas import (
    IndexingMetadata,
    IndexResult,
    KnowledgeGraphEntry,
    QueryResult,
    RelatedVideo,
    RelationshipMetadata,
    SourceReference,
    Video,
)
from .storage_service import StorageService

logger = get_logger(__name__)

CONTEXT_SEPARATOR = "\n\n---\n\n"
NO_CANDIDATES_MESSAGE = "No indexed videos found"
ANSWER_SYSTEM_PROMPT = "You are a helpful assistant that answers questions based on video content."
RELATED_VIDEOS_LIMIT = 5
RELATED_SIMILARITY = 0.75
RELATED_REASON = "Same category"

ANSWER_PROMPT_TEMPLATE = """
Based on the following video content, answer this question:

Question: {question}

Context:
{context}

Provide a clear and concise answer based only on the information in the context.
"""


def build_context(videos: list[Video], max_chars: int = 2000) -> str:
    """Assemble the answer context from candidate videos.

    Each video contributes ``[<title>]`` followed by the first ``max_chars``
    characters of its transcript; blocks are joined by a ``---`` separator.
    """
    return CONTEXT_SEPARATOR.join(
        f"[{video.title}]\n{(video.transcription or '')[:max_chars]}" for video in videos
    )


class RAGService:
    """Service for indexing transcripts and answering questions over them."""

    def __init__(
        self,
        config: KnowledgeBaseConfig,
        storage: StorageService,
        provider: CompletionProvider,
        chunking_service: ChunkingService | None = None,
    ):
        """Initialize RAG service.

        Args:
            config: Configuration with chunk and context sizes.
            storage: Storage service for videos and index entries.
            provider: Completion provider used to answer questions.
            chunking_service: Chunker used when indexing (default: new instance).
        """
        self.config = config
        self.storage = storage
        self.provider = provider
        self.chunking_service = chunking_service or ChunkingService(config)

    async def index(self, video_id: str, transcript: str, metadata: RelationshipMetadata) -> IndexResult:
        """Chunk a transcript and record the indexing metadata for its video.

        Re-indexing a video overwrites its previous entry.

        Args:
            video_id: Stored video id.
            transcript: Full transcript text.
            metadata: Title and author of the video.

        Returns:
            IndexResult with the chunk count.
        """
        chunks = self.chunking_service.split_into_chunks(transcript)

        entry = KnowledgeGraphEntry(
            video_id=video_id,
            embeddings=IndexingMetadata(
                chunk_count=len(chunks),
                indexed=True,
                timestamp=datetime.now(timezone.utc),
            ),
            relationships=RelationshipMetadata(
                title=metadata.title,
                author=metadata.author,
                topics=[],
            ),
            rag_index_ref=f"index_{video_id}",
        )
        await self.storage.upsert_knowledge_graph_entry(entry)

        logger.info("video_indexed", video_id=video_id, chunk_count=len(chunks))
        return IndexResult(video_id=video_id, chunk_count=len(chunks), indexed=True)

    async def get_candidates(self, video_ids: list[str] | None) -> list[Video]:
        """Pick the videos whose transcripts will form the answer context."""
        if video_ids:
            return await self.storage.get_videos_by_ids(video_ids)
        return await self.storage.get_recent_transcribed_videos(self.config.rag_max_candidates)

    async def query(self, question: str, video_ids: list[str] | None = None) -> QueryResult:
        """Answer a question from stored transcripts.

        Args:
            question: User question.
            video_ids: Restrict the context to these videos. When empty, the
                most recent transcribed videos are used.

        Returns:
            QueryResult with the answer and every candidate as a source, or
            ``success=False`` when there is nothing to answer from.

        Raises:
            UpstreamUnavailable: If the completion provider fails.
        """
        candidates = await self.get_candidates(video_ids)

        if not candidates:
            logger.info("rag_query_no_candidates", requested=len(video_ids or []))
            return QueryResult(success=False, answer=None, message=NO_CANDIDATES_MESSAGE)

        context = build_context(candidates, self.config.rag_context_chars)
        logger.info(
            "rag_query_started",
            candidates=len(candidates),
            context_length=len(context),
        )

        answer = await self.provider.generate(
            ANSWER_PROMPT_TEMPLATE.format(question=question, context=context),
            system_prompt=ANSWER_SYSTEM_PROMPT,
            temperature=0.3,
            max_tokens=500,
        )

        return QueryResult(
            success=True,
            answer=answer,
            sources=[
                SourceReference(id=video.id, title=video.title, url=video.url)
                for video in candidates
            ],
        )

    async def related_videos(self, video_id: str) -> list[RelatedVideo]:
        """List up to five other videos from the same category.

        Unknown or uncategorized videos have no related videos.
        """
        video = await self.storage.get_video(video_id)
        if video is None or not video.category_id:
            return []

        others = await self.storage.list_videos_in_category(
            video.category_id, exclude_id=video_id, limit=RELATED_VIDEOS_LIMIT
        )
        return [
            RelatedVideo(
                id=other.id,
                title=other.title,
                similarity=RELATED_SIMILARITY,
                reason=RELATED_REASON,
            )
            for other in others
        ]
