"""Knowledge graph endpoints."""

from fastapi import APIRouter, Depends, Query

from src.knowledge_pipeline.errors import InvalidInput
from src.knowledge_pipeline.schemas import KnowledgeGraph

from ..deps import AppServices, get_services

router = APIRouter(prefix="/api/graph", tags=["graph"])


@router.get("")
async def get_graph(services: AppServices = Depends(get_services)) -> KnowledgeGraph:
    """Return every video as a node, linked to others in its category."""
    return await services.graph_service.build_graph()


@router.get("/relationships")
async def get_relationships(
    video_id: str | None = Query(None, alias="videoId"),
    services: AppServices = Depends(get_services),
):
    """List videos related to one video."""
    if not video_id:
        raise InvalidInput("Video ID is required")

    relationships = await services.pipeline.rag_service.related_videos(video_id)
    return {"videoId": video_id, "relationships": relationships}
