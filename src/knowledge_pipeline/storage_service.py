"""Storage service for videos, categories, index entries and chat sessions in Supabase."""

from collections import Counter
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from supabase import Client

from src.utils.clients import get_supabase_client
from src.utils.logging import get_logger

from .config import KnowledgeBaseConfig
from .errors import NotFound
from .schemas import (
    Category,
    ChatMessage,
    ChatSession,
    KnowledgeGraphEntry,
    Video,
    VideoMetadata,
    VideoSummary,
)

logger = get_logger(__name__)

VIDEOS_TABLE = "videos"
CATEGORIES_TABLE = "categories"
KNOWLEDGE_GRAPH_TABLE = "knowledge_graph"
CHAT_SESSIONS_TABLE = "chat_sessions"

# Fields a caller may change through update_video / bulk_update_videos
VIDEO_UPDATE_FIELDS = {"category_id", "tags", "watch_status", "transcription", "summary_json"}
CATEGORY_UPDATE_FIELDS = {"name", "parent_id", "color", "icon"}


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _is_uuid(value: str | None) -> bool:
    # Ids are uuid columns; PostgREST rejects anything else with a 22P02 error
    try:
        UUID(str(value))
    except ValueError:
        return False
    return True


def _check_category_ref(category_id: str | None) -> None:
    if category_id is not None and not _is_uuid(category_id):
        raise NotFound("Category not found", details={"category_id": category_id})


def _video_update_row(updates: dict[str, Any]) -> dict[str, Any]:
    row = {key: value for key, value in updates.items() if key in VIDEO_UPDATE_FIELDS}
    summary = row.get("summary_json")
    if isinstance(summary, VideoSummary):
        row["summary_json"] = summary.model_dump(mode="json", by_alias=True)
    return row


class StorageService:
    """Service for persisting knowledge base records in Supabase.

    This service handles all database operations: video CRUD with filtering
    and pagination, categories, the per-video knowledge graph entry and chat
    sessions. JSON-shaped fields are stored in ``jsonb`` columns using their
    camelCase keys.
    """

    def __init__(self, config: KnowledgeBaseConfig, client: Client | None = None):
        """Initialize storage service with configuration.

        Args:
            config: Configuration object with Supabase credentials.
            client: Optional pre-built Supabase client.
        """
        self.config = config
        self.client: Client = client or get_supabase_client(
            config.supabase_url,
            config.supabase_key,
        )
        logger.info(
            "storage_service_initialized",
            supabase_url=config.supabase_url,
        )

    # ==========================================================================
    # Videos
    # ==========================================================================

    async def create_video(
        self,
        metadata: VideoMetadata,
        category_id: str | None = None,
        tags: list[str] | None = None,
    ) -> Video:
        """Insert a new video record.

        Args:
            metadata: Metadata fetched for the video.
            category_id: Optional category to file the video under.
            tags: Optional initial tags.

        Returns:
            The stored video.

        Raises:
            NotFound: If category_id cannot name a category.
            Exception: If database operation fails.
        """
        _check_category_ref(category_id)

        try:
            data = {
                "youtube_id": metadata.youtube_id,
                "url": metadata.url,
                "title": metadata.title,
                "author": metadata.author,
                "description": metadata.description,
                "duration": metadata.duration,
                "upload_date": metadata.upload_date.isoformat() if metadata.upload_date else None,
                "thumbnail": metadata.thumbnail,
                "category_id": category_id,
                "tags": tags or [],
                "watch_status": "unwatched",
            }

            response = self.client.table(VIDEOS_TABLE).insert(data).execute()
            video = Video.model_validate(response.data[0])
            logger.info("video_created", video_id=video.id, youtube_id=video.youtube_id)
            return video

        except Exception as e:
            logger.exception(
                "video_create_failed",
                youtube_id=metadata.youtube_id,
                error_type=type(e).__name__,
            )
            raise

    async def get_video(self, video_id: str) -> Video | None:
        """Fetch a video by id, or None if it does not exist."""
        if not _is_uuid(video_id):
            return None
        response = self.client.table(VIDEOS_TABLE).select("*").eq("id", video_id).execute()
        return Video.model_validate(response.data[0]) if response.data else None

    async def require_video(self, video_id: str) -> Video:
        """Fetch a video by id.

        Raises:
            NotFound: If the video does not exist.
        """
        video = await self.get_video(video_id)
        if video is None:
            raise NotFound("Video not found", details={"video_id": video_id})
        return video

    async def get_video_by_youtube_id(self, youtube_id: str) -> Video | None:
        """Fetch a video by its YouTube id, or None if it does not exist."""
        response = (
            self.client.table(VIDEOS_TABLE).select("*").eq("youtube_id", youtube_id).execute()
        )
        return Video.model_validate(response.data[0]) if response.data else None

    async def list_videos(
        self,
        category_id: str | None = None,
        watch_status: str | None = None,
        search: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Video], int]:
        """List videos, newest first, with optional filters.

        Args:
            category_id: Only videos in this category.
            watch_status: Only videos with this watch status.
            search: Case-insensitive substring matched against title or author.
            limit: Page size.
            offset: Number of matching videos to skip.

        Returns:
            Tuple of (page of videos, total number of matching videos).
        """
        if category_id and not _is_uuid(category_id):
            return [], 0

        query = self.client.table(VIDEOS_TABLE).select("*", count="exact")

        if category_id:
            query = query.eq("category_id", category_id)
        if watch_status:
            query = query.eq("watch_status", watch_status)
        if search:
            # PostgREST or-filter values cannot contain commas or parentheses
            term = search.replace(",", " ").replace("(", " ").replace(")", " ")
            query = query.or_(f"title.ilike.%{term}%,author.ilike.%{term}%")

        response = (
            query.order("created_at", desc=True).range(offset, offset + limit - 1).execute()
        )

        videos = [Video.model_validate(row) for row in response.data]
        total = response.count if response.count is not None else len(videos)
        logger.debug("videos_listed", count=len(videos), total=total)
        return videos, total

    async def list_all_videos(self) -> list[Video]:
        """List every video, oldest first."""
        response = self.client.table(VIDEOS_TABLE).select("*").order("created_at").execute()
        return [Video.model_validate(row) for row in response.data]

    async def get_videos_by_ids(self, video_ids: list[str]) -> list[Video]:
        """Fetch the videos with the given ids, in the order the ids were given.

        Malformed ids cannot match a stored video and are skipped.
        """
        lookup_ids = [video_id for video_id in video_ids if _is_uuid(video_id)]
        if not lookup_ids:
            return []

        response = self.client.table(VIDEOS_TABLE).select("*").in_("id", lookup_ids).execute()
        by_id = {row["id"]: Video.model_validate(row) for row in response.data}
        return [by_id[video_id] for video_id in video_ids if video_id in by_id]

    async def get_recent_transcribed_videos(self, limit: int) -> list[Video]:
        """Fetch the most recently created videos that have a transcript."""
        response = (
            self.client.table(VIDEOS_TABLE)
            .select("*")
            .not_.is_("transcription", "null")
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        return [Video.model_validate(row) for row in response.data]

    async def list_videos_in_category(
        self, category_id: str, exclude_id: str | None = None, limit: int | None = None
    ) -> list[Video]:
        """List videos filed under a category, optionally excluding one video."""
        if not _is_uuid(category_id):
            return []

        query = self.client.table(VIDEOS_TABLE).select("*").eq("category_id", category_id)
        if exclude_id and _is_uuid(exclude_id):
            query = query.neq("id", exclude_id)
        query = query.order("created_at")
        if limit is not None:
            query = query.limit(limit)

        response = query.execute()
        return [Video.model_validate(row) for row in response.data]

    async def update_video(self, video_id: str, updates: dict[str, Any]) -> Video:
        """Apply a partial update to a video.

        Only category, tags, watch status, transcript and summary can change.

        Raises:
            NotFound: If the video does not exist.
            Exception: If database operation fails.
        """
        data = _video_update_row(updates)
        if not data:
            return await self.require_video(video_id)
        if not _is_uuid(video_id):
            raise NotFound("Video not found", details={"video_id": video_id})
        _check_category_ref(data.get("category_id"))

        data["updated_at"] = _now()

        try:
            response = self.client.table(VIDEOS_TABLE).update(data).eq("id", video_id).execute()
        except Exception as e:
            logger.exception(
                "video_update_failed",
                video_id=video_id,
                error_type=type(e).__name__,
            )
            raise

        if not response.data:
            raise NotFound("Video not found", details={"video_id": video_id})

        logger.info("video_updated", video_id=video_id, fields=sorted(data))
        return Video.model_validate(response.data[0])

    async def bulk_update_videos(self, video_ids: list[str], updates: dict[str, Any]) -> list[Video]:
        """Apply the same partial update to several videos."""
        data = _video_update_row(updates)
        _check_category_ref(data.get("category_id"))
        lookup_ids = [video_id for video_id in video_ids if _is_uuid(video_id)]
        if data and lookup_ids:
            data["updated_at"] = _now()
            self.client.table(VIDEOS_TABLE).update(data).in_("id", lookup_ids).execute()
            logger.info("videos_bulk_updated", count=len(video_ids), fields=sorted(data))

        return await self.get_videos_by_ids(video_ids)

    async def delete_video(self, video_id: str) -> None:
        """Delete a video and, first, its knowledge graph entry.

        Raises:
            NotFound: If the video does not exist.
        """
        await self.require_video(video_id)

        try:
            self.client.table(KNOWLEDGE_GRAPH_TABLE).delete().eq("video_id", video_id).execute()
            self.client.table(VIDEOS_TABLE).delete().eq("id", video_id).execute()
            logger.info("video_deleted", video_id=video_id)

        except Exception as e:
            logger.exception(
                "video_delete_failed",
                video_id=video_id,
                error_type=type(e).__name__,
            )
            raise

    async def bulk_delete_videos(self, video_ids: list[str]) -> int:
        """Delete several videos and their knowledge graph entries.

        Returns:
            Number of videos deleted.
        """
        lookup_ids = [video_id for video_id in video_ids if _is_uuid(video_id)]
        if not lookup_ids:
            return 0

        self.client.table(KNOWLEDGE_GRAPH_TABLE).delete().in_("video_id", lookup_ids).execute()
        response = self.client.table(VIDEOS_TABLE).delete().in_("id", lookup_ids).execute()

        count = len(response.data or [])
        logger.info("videos_bulk_deleted", requested=len(video_ids), deleted=count)
        return count

    async def count_videos(self) -> int:
        response = self.client.table(VIDEOS_TABLE).select("id", count="exact").limit(1).execute()
        return response.count or 0

    # ==========================================================================
    # Categories
    # ==========================================================================

    async def create_category(
        self,
        name: str,
        parent_id: str | None = None,
        color: str | None = None,
        icon: str | None = None,
    ) -> Category:
        """Insert a new category."""
        _check_category_ref(parent_id)

        try:
            data = {"name": name, "parent_id": parent_id, "color": color, "icon": icon}
            response = self.client.table(CATEGORIES_TABLE).insert(data).execute()
            category = Category.model_validate(response.data[0])
            logger.info("category_created", category_id=category.id, name=name)
            return category

        except Exception as e:
            logger.exception(
                "category_create_failed",
                name=name,
                error_type=type(e).__name__,
            )
            raise

    async def count_videos_by_category(self) -> dict[str, int]:
        """Count videos per category id."""
        response = (
            self.client.table(VIDEOS_TABLE)
            .select("category_id")
            .not_.is_("category_id", "null")
            .execute()
        )
        return dict(Counter(row["category_id"] for row in response.data))

    async def list_categories(self) -> list[Category]:
        """List every category ordered by name, with derived video counts."""
        response = self.client.table(CATEGORIES_TABLE).select("*").order("name").execute()
        counts = await self.count_videos_by_category()
        return [
            Category.model_validate({**row, "video_count": counts.get(row["id"], 0)})
            for row in response.data
        ]

    async def get_category(self, category_id: str) -> Category:
        """Fetch a category with its video count.

        Raises:
            NotFound: If the category does not exist.
        """
        if not _is_uuid(category_id):
            raise NotFound("Category not found", details={"category_id": category_id})

        response = (
            self.client.table(CATEGORIES_TABLE).select("*").eq("id", category_id).execute()
        )
        if not response.data:
            raise NotFound("Category not found", details={"category_id": category_id})

        videos = await self.list_videos_in_category(category_id)
        return Category.model_validate({**response.data[0], "video_count": len(videos)})

    async def list_subcategories(self, category_id: str) -> list[Category]:
        """List the direct children of a category ordered by name."""
        if not _is_uuid(category_id):
            return []

        response = (
            self.client.table(CATEGORIES_TABLE)
            .select("*")
            .eq("parent_id", category_id)
            .order("name")
            .execute()
        )
        counts = await self.count_videos_by_category()
        return [
            Category.model_validate({**row, "video_count": counts.get(row["id"], 0)})
            for row in response.data
        ]

    async def update_category(self, category_id: str, updates: dict[str, Any]) -> Category:
        """Apply a partial update to a category.

        Raises:
            NotFound: If the category does not exist.
        """
        data = {key: value for key, value in updates.items() if key in CATEGORY_UPDATE_FIELDS}
        if not data:
            return await self.get_category(category_id)
        if not _is_uuid(category_id):
            raise NotFound("Category not found", details={"category_id": category_id})
        _check_category_ref(data.get("parent_id"))

        response = (
            self.client.table(CATEGORIES_TABLE).update(data).eq("id", category_id).execute()
        )
        if not response.data:
            raise NotFound("Category not found", details={"category_id": category_id})

        logger.info("category_updated", category_id=category_id, fields=sorted(data))
        return Category.model_validate(response.data[0])

    async def delete_category(self, category_id: str) -> None:
        """Delete a category after unassigning its videos.

        Raises:
            NotFound: If the category does not exist.
        """
        await self.get_category(category_id)

        try:
            self.client.table(VIDEOS_TABLE).update(
                {"category_id": None, "updated_at": _now()}
            ).eq("category_id", category_id).execute()
            self.client.table(CATEGORIES_TABLE).delete().eq("id", category_id).execute()
            logger.info("category_deleted", category_id=category_id)

        except Exception as e:
            logger.exception(
                "category_delete_failed",
                category_id=category_id,
                error_type=type(e).__name__,
            )
            raise

    async def count_categories(self) -> int:
        response = (
            self.client.table(CATEGORIES_TABLE).select("id", count="exact").limit(1).execute()
        )
        return response.count or 0

    # ==========================================================================
    # Knowledge graph entries
    # ==========================================================================

    async def upsert_knowledge_graph_entry(self, entry: KnowledgeGraphEntry) -> None:
        """Create or replace the indexing record for a video.

        Raises:
            Exception: If database operation fails.
        """
        try:
            data = {
                "video_id": entry.video_id,
                "embeddings": entry.embeddings.model_dump(mode="json", by_alias=True),
                "relationships": entry.relationships.model_dump(mode="json", by_alias=True),
                "rag_index_ref": entry.rag_index_ref,
                "updated_at": _now(),
            }

            self.client.table(KNOWLEDGE_GRAPH_TABLE).upsert(data, on_conflict="video_id").execute()
            logger.info(
                "knowledge_graph_entry_saved",
                video_id=entry.video_id,
                chunk_count=entry.embeddings.chunk_count,
            )

        except Exception as e:
            logger.exception(
                "knowledge_graph_entry_save_failed",
                video_id=entry.video_id,
                error_type=type(e).__name__,
            )
            raise

    # ==========================================================================
    # Chat sessions
    # ==========================================================================

    async def create_chat_session(self, video_ids: list[str]) -> ChatSession:
        """Create an empty chat session over a set of videos."""
        data = {"video_ids": video_ids, "messages": [], "context_summary": None}
        response = self.client.table(CHAT_SESSIONS_TABLE).insert(data).execute()

        session = ChatSession.model_validate(response.data[0])
        logger.info("chat_session_created", session_id=session.id, videos=len(video_ids))
        return session

    async def get_chat_session(self, session_id: str) -> ChatSession:
        """Fetch a chat session.

        Raises:
            NotFound: If the session does not exist.
        """
        if not _is_uuid(session_id):
            raise NotFound("Chat session not found", details={"session_id": session_id})

        response = (
            self.client.table(CHAT_SESSIONS_TABLE).select("*").eq("id", session_id).execute()
        )
        if not response.data:
            raise NotFound("Chat session not found", details={"session_id": session_id})
        return ChatSession.model_validate(response.data[0])

    async def update_chat_messages(self, session_id: str, messages: list[ChatMessage]) -> ChatSession:
        """Replace the message history of a chat session."""
        if not _is_uuid(session_id):
            raise NotFound("Chat session not found", details={"session_id": session_id})

        data = {
            "messages": [message.model_dump(mode="json", by_alias=True) for message in messages]
        }
        response = (
            self.client.table(CHAT_SESSIONS_TABLE).update(data).eq("id", session_id).execute()
        )
        if not response.data:
            raise NotFound("Chat session not found", details={"session_id": session_id})
        return ChatSession.model_validate(response.data[0])

    async def list_chat_sessions(self, limit: int = 20) -> list[ChatSession]:
        """List the most recent chat sessions."""
        response = (
            self.client.table(CHAT_SESSIONS_TABLE)
            .select("*")
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        return [ChatSession.model_validate(row) for row in response.data]

    # ==========================================================================
    # Health
    # ==========================================================================

    async def ping(self) -> None:
        """Issue a trivial query to check the database is reachable.

        Raises:
            Exception: If the database cannot be reached.
        """
        self.client.table(CATEGORIES_TABLE).select("id").limit(1).execute()
