"""Strict parsers for JSON-shaped LLM responses.

Provider output is untrusted text. Each expected shape has one parser that
either returns a validated model or raises ``ParseFailure``; callers decide
what the degraded result looks like.
"""

import re
from typing import TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError

from .errors import ParseFailure
from .schemas import CategorySuggestion, HighlightCandidate, VideoSummary

_CODE_FENCE = re.compile(r"^```[a-zA-Z0-9_-]*\s*\n(?P<body>.*)\n\s*```$", re.DOTALL)

_TOPICS_ADAPTER = TypeAdapter(list[str])

ModelT = TypeVar("ModelT", bound=BaseModel)


def strip_code_fence(text: str) -> str:
    """Remove a single Markdown code fence wrapping the whole response."""
    stripped = text.strip()
    match = _CODE_FENCE.match(stripped)
    return match.group("body").strip() if match else stripped


def _parse_model(raw: str, model: type[ModelT], shape: str) -> ModelT:
    if not isinstance(raw, str) or not raw.strip():
        raise ParseFailure(f"Empty {shape} response", raw_response=raw or "")

    try:
        return model.model_validate_json(strip_code_fence(raw), strict=True)
    except ValidationError as e:
        raise ParseFailure(
            f"Invalid {shape} response: {e.error_count()} validation error(s)",
            raw_response=raw,
        ) from e


def parse_summary(raw: str) -> VideoSummary:
    """Parse a ``{quickSummary, detailedSummary, keyPoints}`` response."""
    return _parse_model(raw, VideoSummary, "summary")


def parse_category_suggestion(raw: str) -> CategorySuggestion:
    """Parse a categorization suggestion response."""
    return _parse_model(raw, CategorySuggestion, "categorization")


def parse_highlight(raw: str) -> HighlightCandidate:
    """Parse a ``{highlight, important}`` response for one transcript window."""
    return _parse_model(raw, HighlightCandidate, "highlight")


def parse_topics(raw: str) -> list[str]:
    """Parse a JSON array of topic strings."""
    if not isinstance(raw, str) or not raw.strip():
        raise ParseFailure("Empty topics response", raw_response=raw or "")

    try:
        return _TOPICS_ADAPTER.validate_json(strip_code_fence(raw), strict=True)
    except ValidationError as e:
        raise ParseFailure("Invalid topics response", raw_response=raw) from e
