"""Video endpoints: CRUD, processing, categorization and transcript insights."""

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from pydantic import Field

from src.knowledge_pipeline.errors import InvalidInput
from src.knowledge_pipeline.schemas import (
    CamelModel,
    CategorySuggestion,
    ProcessResult,
    Video,
    WatchStatus,
)
from src.knowledge_pipeline.transcript_service import (
    extract_key_timestamps,
    get_timestamped_transcript,
)
from src.utils.logging import get_logger

from ..deps import AppServices, get_services

logger = get_logger(__name__)

router = APIRouter(prefix="/api/videos", tags=["videos"])


# ==============================================================================
# Request Models
# ==============================================================================


class AddVideoRequest(CamelModel):
    url: str | None = None
    category_id: str | None = None
    tags: list[str] = Field(default_factory=list)


class VideoUpdate(CamelModel):
    """Partial video update; only fields present in the body are applied."""

    category_id: str | None = None
    tags: list[str] | None = None
    watch_status: WatchStatus | None = None


class VideoIdsRequest(CamelModel):
    video_ids: list[str] | None = None

    def require_ids(self) -> list[str]:
        if self.video_ids is None:
            raise InvalidInput("Video IDs array is required")
        return self.video_ids


class BulkUpdateRequest(VideoIdsRequest):
    updates: VideoUpdate = Field(default_factory=VideoUpdate)


class BatchImportRequest(CamelModel):
    playlist_id: str | None = None


# ==============================================================================
# Collection endpoints
# ==============================================================================


@router.post("", status_code=201)
async def add_video(body: AddVideoRequest, services: AppServices = Depends(get_services)) -> Video:
    """Add a video by YouTube URL or id."""
    return await services.pipeline.add_video(body.url or "", body.category_id, body.tags)


@router.get("")
async def list_videos(
    category_id: str | None = Query(None, alias="categoryId"),
    watch_status: WatchStatus | None = Query(None, alias="watchStatus"),
    search: str | None = None,
    limit: int = Query(50, ge=1),
    offset: int = Query(0, ge=0),
    services: AppServices = Depends(get_services),
):
    """List videos, newest first, with filters and pagination."""
    videos, total = await services.storage.list_videos(
        category_id=category_id,
        watch_status=watch_status,
        search=search,
        limit=limit,
        offset=offset,
    )
    return {"videos": videos, "total": total, "limit": limit, "offset": offset}


@router.post("/batch")
async def batch_import(body: BatchImportRequest):
    """Playlist import is not available."""
    if not body.playlist_id:
        raise InvalidInput("Playlist ID is required")

    return JSONResponse(
        status_code=501,
        content={
            "error": "Playlist import not yet implemented",
            "message": "This feature requires YouTube Data API key",
        },
    )


@router.post("/bulk/categorize")
async def bulk_categorize(body: VideoIdsRequest, services: AppServices = Depends(get_services)):
    suggestions = await services.pipeline.bulk_categorize(body.require_ids())
    return {"suggestions": suggestions}


@router.put("/bulk/update")
async def bulk_update(body: BulkUpdateRequest, services: AppServices = Depends(get_services)):
    updated = await services.storage.bulk_update_videos(
        body.require_ids(),
        body.updates.model_dump(exclude_unset=True),
    )
    return {"updated": updated}


@router.delete("/bulk/delete")
async def bulk_delete(body: VideoIdsRequest, services: AppServices = Depends(get_services)):
    count = await services.storage.bulk_delete_videos(body.require_ids())
    return {"message": "Videos deleted successfully", "count": count}


# ==============================================================================
# Single video endpoints
# ==============================================================================


@router.get("/{video_id}")
async def get_video(video_id: str, services: AppServices = Depends(get_services)) -> Video:
    return await services.storage.require_video(video_id)


@router.put("/{video_id}")
async def update_video(
    video_id: str, body: VideoUpdate, services: AppServices = Depends(get_services)
) -> Video:
    """Update category, tags or watch status of a video."""
    return await services.storage.update_video(video_id, body.model_dump(exclude_unset=True))


@router.delete("/{video_id}")
async def delete_video(video_id: str, services: AppServices = Depends(get_services)):
    await services.storage.delete_video(video_id)
    return {"message": "Video deleted successfully"}


@router.post("/{video_id}/process")
async def process_video(video_id: str, services: AppServices = Depends(get_services)) -> ProcessResult:
    """Fetch the transcript, summarize and index a video."""
    return await services.pipeline.process_video(video_id)


@router.post("/{video_id}/auto-categorize")
async def auto_categorize(
    video_id: str, services: AppServices = Depends(get_services)
) -> CategorySuggestion:
    return await services.pipeline.auto_categorize(video_id)


@router.get("/{video_id}/transcript")
async def get_transcript(video_id: str, services: AppServices = Depends(get_services)):
    """Return every transcript segment with its display timestamp."""
    video = await services.storage.require_video(video_id)
    transcript = await services.pipeline.transcript_service.get_transcript(video.youtube_id)
    return {
        "videoId": video_id,
        "language": transcript.language,
        "availableLangs": transcript.available_langs,
        "segments": get_timestamped_transcript(transcript.segments),
    }


@router.get("/{video_id}/key-timestamps")
async def get_key_timestamps(video_id: str, services: AppServices = Depends(get_services)):
    video = await services.storage.require_video(video_id)
    transcript = await services.pipeline.transcript_service.get_transcript(video.youtube_id)
    return {"videoId": video_id, "keyTimestamps": extract_key_timestamps(transcript.segments)}


@router.get("/{video_id}/highlights")
async def get_highlights(video_id: str, services: AppServices = Depends(get_services)):
    """Pick key moments from the start of the video's transcript."""
    video = await services.storage.require_video(video_id)
    transcript = await services.pipeline.transcript_service.get_transcript(video.youtube_id)
    highlights = await services.pipeline.summarization_service.generate_highlights(
        transcript.segments, video.title, video.youtube_id
    )
    return {"videoId": video_id, "highlights": highlights}


@router.get("/{video_id}/topics")
async def get_topics(video_id: str, services: AppServices = Depends(get_services)):
    """Extract main topics, from the stored transcript when there is one."""
    video = await services.storage.require_video(video_id)

    text = video.transcription
    if not text:
        transcript = await services.pipeline.transcript_service.get_transcript(video.youtube_id)
        text = transcript.full_text

    topics = await services.pipeline.summarization_service.extract_topics(text)
    return {"videoId": video_id, "topics": topics}
