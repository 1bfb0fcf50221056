"""Chat session endpoints."""

from fastapi import APIRouter, Depends

from src.knowledge_pipeline.errors import InvalidInput
from src.knowledge_pipeline.schemas import CamelModel, ChatSession

from ..deps import AppServices, get_services

router = APIRouter(prefix="/api/chat", tags=["chat"])


class StartSessionRequest(CamelModel):
    video_ids: list[str] | None = None


class MessageRequest(CamelModel):
    message: str | None = None


@router.post("", status_code=201)
async def start_session(
    body: StartSessionRequest, services: AppServices = Depends(get_services)
) -> ChatSession:
    if body.video_ids is None:
        raise InvalidInput("Video IDs array is required")
    return await services.chat_service.start_session(body.video_ids)


@router.get("")
async def list_sessions(services: AppServices = Depends(get_services)):
    """List the 20 most recent sessions with their message counts."""
    sessions = await services.chat_service.list_sessions()
    return [
        {
            "id": session.id,
            "videoIds": session.video_ids,
            "messageCount": len(session.messages),
            "contextSummary": session.context_summary,
            "createdAt": session.created_at,
        }
        for session in sessions
    ]


@router.get("/{session_id}")
async def get_session(session_id: str, services: AppServices = Depends(get_services)) -> ChatSession:
    return await services.chat_service.get_session(session_id)


@router.post("/{session_id}/message")
async def send_message(
    session_id: str, body: MessageRequest, services: AppServices = Depends(get_services)
) -> ChatSession:
    """Ask a question in a session and return the updated history."""
    return await services.chat_service.send_message(session_id, body.message or "")
