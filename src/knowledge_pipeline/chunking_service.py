"""Chunking service for word-based transcript segmentation."""

from src.utils.logging import get_logger

from .config import KnowledgeBaseConfig
from .errors import InvalidInput

logger = get_logger(__name__)


class ChunkingService:
    """Service for splitting transcripts into fixed-size word chunks.

    Chunks are only counted for indexing metadata; nothing is embedded or
    stored per chunk.
    """

    def __init__(self, config: KnowledgeBaseConfig):
        """Initialize chunking service with configuration.

        Args:
            config: Configuration object with the default chunk size.
        """
        self.config = config
        logger.info("chunking_service_initialized", chunk_size=config.chunk_size_words)

    def split_into_chunks(self, text: str, chunk_size: int | None = None) -> list[str]:
        """Split text into consecutive groups of ``chunk_size`` words.

        Words are separated by any run of whitespace and rejoined with single
        spaces, so joining the chunks with a space reproduces the
        whitespace-normalized input.

        Args:
            text: Full transcript text.
            chunk_size: Words per chunk. Defaults to the configured size.

        Returns:
            Ordered list of chunk strings. Empty when the text has no words.

        Raises:
            InvalidInput: If chunk_size is smaller than 1.
        """
        size = chunk_size if chunk_size is not None else self.config.chunk_size_words
        if size < 1:
            raise InvalidInput(f"Chunk size must be at least 1, got {size}")

        words = text.split()
        chunks = [" ".join(words[i : i + size]) for i in range(0, len(words), size)]

        logger.debug("text_chunked", words=len(words), chunk_size=size, chunks=len(chunks))
        return chunks
