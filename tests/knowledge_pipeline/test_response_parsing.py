"""Unit tests for strict LLM response parsers."""

import pytest

from src.knowledge_pipeline.errors import ParseFailure
from src.knowledge_pipeline.response_parsing import (
    parse_category_suggestion,
    parse_highlight,
    parse_summary,
    parse_topics,
    strip_code_fence,
)

VALID_SUMMARY = '{"quickSummary": "Q", "detailedSummary": "D", "keyPoints": ["a", "b"]}'


@pytest.mark.unit
class TestResponseParsing:
    """Test suite for response parsers."""

    def test_parse_summary(self) -> None:
        """Test a well-formed summary parses into its three levels."""
        summary = parse_summary(VALID_SUMMARY)

        assert summary.quick_summary == "Q"
        assert summary.detailed_summary == "D"
        assert summary.key_points == ["a", "b"]

    def test_parse_summary_inside_code_fence(self) -> None:
        """Test one surrounding Markdown fence is stripped."""
        summary = parse_summary(f"```json\n{VALID_SUMMARY}\n```")

        assert summary.quick_summary == "Q"

    @pytest.mark.parametrize(
        "raw",
        [
            "",
            "Here is your summary: it was great",
            '{"quickSummary": "Q", "detailedSummary": "D"}',
            '{"quickSummary": "Q", "detailedSummary": "D", "keyPoints": "not a list"}',
            '{"quickSummary": 5, "detailedSummary": "D", "keyPoints": []}',
            '["Q", "D"]',
        ],
    )
    def test_parse_summary_rejects_wrong_shape(self, raw: str) -> None:
        """Test anything but the exact summary shape raises ParseFailure."""
        with pytest.raises(ParseFailure):
            parse_summary(raw)

    def test_parse_failure_keeps_raw_response(self) -> None:
        """Test the raw text is attached to the failure."""
        with pytest.raises(ParseFailure) as exc_info:
            parse_summary("not json")

        assert exc_info.value.raw_response == "not json"

    def test_parse_category_suggestion(self) -> None:
        """Test a suggestion parses with confidence in range."""
        suggestion = parse_category_suggestion(
            '{"suggestedCategory": "Programming", "isNewCategory": false, '
            '"tags": ["python"], "confidence": 0.9, "reason": "Python content"}'
        )

        assert suggestion.suggested_category == "Programming"
        assert suggestion.is_new_category is False
        assert suggestion.confidence == 0.9

    @pytest.mark.parametrize(
        "raw",
        [
            '{"suggestedCategory": "X", "isNewCategory": false, "tags": [], "confidence": 1.5, "reason": "r"}',
            '{"suggestedCategory": "X", "isNewCategory": "no", "tags": [], "confidence": 0.5, "reason": "r"}',
            '{"suggestedCategory": "X", "tags": [], "confidence": 0.5, "reason": "r"}',
        ],
    )
    def test_parse_category_suggestion_rejects_wrong_shape(self, raw: str) -> None:
        """Test out-of-range confidence, wrong types and missing fields fail."""
        with pytest.raises(ParseFailure):
            parse_category_suggestion(raw)

    def test_parse_highlight(self) -> None:
        """Test both highlight answers parse."""
        assert parse_highlight('{"highlight": "Key idea", "important": true}').important is True
        skipped = parse_highlight('{"highlight": null, "important": false}')
        assert skipped.highlight is None
        assert skipped.important is False

    def test_parse_topics(self) -> None:
        """Test a JSON array of strings parses to a list."""
        assert parse_topics('["closures", "scope"]') == ["closures", "scope"]

    @pytest.mark.parametrize("raw", ['{"topics": ["a"]}', "[1, 2]", "closures, scope"])
    def test_parse_topics_rejects_wrong_shape(self, raw: str) -> None:
        """Test non-array or non-string topics fail."""
        with pytest.raises(ParseFailure):
            parse_topics(raw)

    def test_strip_code_fence_leaves_plain_text(self) -> None:
        """Test text without a fence is only trimmed."""
        assert strip_code_fence("  [1]  ") == "[1]"
        assert strip_code_fence("```\n[1]\n```") == "[1]"
