"""Pydantic schemas for the YouTube knowledge base pipeline."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

WatchStatus = Literal["unwatched", "watching", "watched"]


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys.

    Fields are populated either by their Python name (database rows) or by
    their camelCase alias (API payloads and LLM responses).
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ==============================================================================
# Transcripts
# ==============================================================================


class VideoMetadata(CamelModel):
    """YouTube video metadata fetched when a video is added."""

    youtube_id: str
    url: str
    title: str
    author: str
    duration: int | None = None  # Seconds
    upload_date: datetime | None = None
    thumbnail: str | None = None
    description: str = ""
    error: str | None = None


class TranscriptSegment(BaseModel):
    """Single caption segment with timing in milliseconds."""

    text: str
    offset_ms: int  # Start time in milliseconds
    duration_ms: int  # Duration in milliseconds
    lang: str = "en"


class TranscriptResult(BaseModel):
    """Normalized transcript for a video.

    Holds the whitespace-collapsed full text alongside the original timed
    segments so downstream features can still work with timestamps.
    """

    video_id: str
    full_text: str
    segments: list[TranscriptSegment]
    segment_count: int
    language: str
    available_langs: list[str] = Field(default_factory=list)


class KeyTimestamp(CamelModel):
    """Evenly sampled transcript moment."""

    time: float  # Seconds
    text: str
    formatted_time: str


class TimestampedSegment(CamelModel):
    """Transcript segment formatted for display."""

    timestamp: float  # Seconds
    formatted_time: str
    text: str
    duration: float  # Seconds


class Highlight(CamelModel):
    """LLM-selected key moment linked to its position in the video."""

    timestamp: float  # Seconds
    formatted_time: str
    text: str
    youtube_link: str


# ==============================================================================
# LLM results
# ==============================================================================


class VideoSummary(CamelModel):
    """Three-level summary of a video transcript."""

    quick_summary: str
    detailed_summary: str
    key_points: list[str]


class CategorySuggestion(CamelModel):
    """Suggested category and tags for a video."""

    suggested_category: str
    is_new_category: bool
    tags: list[str]
    confidence: float = Field(ge=0.0, le=1.0)
    reason: str


class BatchCategorySuggestion(CategorySuggestion):
    """Category suggestion tagged with the video it belongs to."""

    video_id: str


class HighlightCandidate(BaseModel):
    """Raw per-window highlight answer from the provider."""

    highlight: str | None = None
    important: bool


# ==============================================================================
# Stored entities
# ==============================================================================


class Category(CamelModel):
    """Video category, optionally nested under a parent category."""

    id: str
    name: str
    parent_id: str | None = None
    color: str | None = None
    icon: str | None = None
    video_count: int = 0
    created_at: datetime | None = None


class CategoryNode(Category):
    """Category with its resolved children."""

    children: list["CategoryNode"] = Field(default_factory=list)


class Video(CamelModel):
    """Stored video record."""

    id: str
    youtube_id: str
    url: str
    title: str
    author: str | None = None
    description: str | None = None
    duration: int | None = None
    upload_date: datetime | None = None
    thumbnail: str | None = None
    category_id: str | None = None
    tags: list[str] = Field(default_factory=list)
    watch_status: WatchStatus = "unwatched"
    transcription: str | None = None
    summary_json: VideoSummary | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class IndexingMetadata(CamelModel):
    """Bookkeeping recorded when a transcript is indexed."""

    chunk_count: int
    indexed: bool = True
    timestamp: datetime


class RelationshipMetadata(CamelModel):
    """Descriptive metadata stored next to the indexing record."""

    title: str
    author: str | None = None
    topics: list[str] = Field(default_factory=list)


class KnowledgeGraphEntry(CamelModel):
    """Per-video indexing record, one-to-one with a video."""

    video_id: str
    embeddings: IndexingMetadata
    relationships: RelationshipMetadata
    rag_index_ref: str


class SourceReference(CamelModel):
    """Video used as context for an answer."""

    id: str
    title: str
    url: str


class ChatMessage(CamelModel):
    """Single message in a chat session."""

    role: Literal["user", "assistant"]
    content: str
    sources: list[SourceReference] | None = None
    timestamp: datetime


class ChatSession(CamelModel):
    """Conversation over a fixed set of videos."""

    id: str
    video_ids: list[str] = Field(default_factory=list)
    messages: list[ChatMessage] = Field(default_factory=list)
    context_summary: str | None = None
    created_at: datetime | None = None


# ==============================================================================
# Pipeline results
# ==============================================================================


class IndexResult(CamelModel):
    """Result of indexing a transcript."""

    video_id: str
    chunk_count: int
    indexed: bool = True


class QueryResult(CamelModel):
    """Answer to a question over stored transcripts."""

    success: bool
    answer: str | None = None
    sources: list[SourceReference] = Field(default_factory=list)
    message: str | None = None


class RelatedVideo(CamelModel):
    """Video related to another video."""

    id: str
    title: str
    similarity: float
    reason: str


class GraphNode(CamelModel):
    """Graph node for a single video."""

    id: str
    label: str
    category: str
    watch_status: WatchStatus


class GraphEdge(BaseModel):
    """Edge between two videos of the same category."""

    model_config = ConfigDict(populate_by_name=True)

    source: str = Field(alias="from")
    target: str = Field(alias="to")
    type: str = "same_category"


class GraphStats(CamelModel):
    """Summary counts for a built graph."""

    video_count: int
    edge_count: int
    categories: int


class KnowledgeGraph(BaseModel):
    """Nodes, edges and stats for the knowledge graph view."""

    nodes: list[GraphNode]
    edges: list[GraphEdge]
    stats: GraphStats


class ProcessResult(CamelModel):
    """Outcome of processing a video end to end."""

    video: Video
    summary: VideoSummary
    index: IndexResult


class CategoryDistribution(CamelModel):
    """How videos are spread across categories."""

    distribution: dict[str, dict[str, Any]]
    uncategorized: list[str]
    total_categories: int
    uncategorized_count: int
