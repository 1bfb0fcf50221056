"""Chat sessions answering questions over a fixed set of videos."""

from datetime import datetime, timezone

from src.utils.logging import get_logger

from .errors import InvalidInput
from .rag_service import RAGService
from .schemas import ChatMessage, ChatSession
from .storage_service import StorageService

logger = get_logger(__name__)

NO_ANSWER_REPLY = "Sorry, I could not find relevant information."
SESSION_LIST_LIMIT = 20


class ChatService:
    """Service for chat sessions backed by the RAG query engine."""

    def __init__(self, storage: StorageService, rag_service: RAGService):
        self.storage = storage
        self.rag_service = rag_service

    async def start_session(self, video_ids: list[str]) -> ChatSession:
        """Create an empty session over the given videos."""
        return await self.storage.create_chat_session(list(video_ids))

    async def get_session(self, session_id: str) -> ChatSession:
        return await self.storage.get_chat_session(session_id)

    async def list_sessions(self, limit: int = SESSION_LIST_LIMIT) -> list[ChatSession]:
        return await self.storage.list_chat_sessions(limit=limit)

    async def send_message(self, session_id: str, message: str) -> ChatSession:
        """Append a user message and the assistant's answer to a session.

        The answer is produced from the session's videos. When nothing can be
        answered the assistant replies with a fixed apology.

        Args:
            session_id: Chat session id.
            message: User message.

        Returns:
            The session with both new messages appended.

        Raises:
            InvalidInput: If the message is empty.
            NotFound: If the session does not exist.
            UpstreamUnavailable: If the completion provider fails.
        """
        if not message or not message.strip():
            raise InvalidInput("Message is required")

        session = await self.storage.get_chat_session(session_id)
        messages = list(session.messages)
        messages.append(
            ChatMessage(role="user", content=message, timestamp=datetime.now(timezone.utc))
        )

        result = await self.rag_service.query(message, session.video_ids)

        messages.append(
            ChatMessage(
                role="assistant",
                content=result.answer or NO_ANSWER_REPLY,
                sources=result.sources,
                timestamp=datetime.now(timezone.utc),
            )
        )

        updated = await self.storage.update_chat_messages(session_id, messages)
        logger.info(
            "chat_message_answered",
            session_id=session_id,
            answered=result.success,
            sources=len(result.sources),
        )
        return updated
