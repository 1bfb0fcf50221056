"""Unit tests for knowledge graph building."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.knowledge_pipeline.graph_service import GraphService, build_graph
from src.knowledge_pipeline.schemas import Category, Video


def make_video(video_id: str, category_id: str | None = None) -> Video:
    return Video(
        id=video_id,
        youtube_id="dQw4w9WgXcQ",
        url="https://www.youtube.com/watch?v=dQw4w9WgXcQ",
        title=f"Video {video_id}",
        category_id=category_id,
    )


@pytest.mark.unit
class TestBuildGraph:
    """Test suite for build_graph."""

    @pytest.fixture
    def categories(self) -> list[Category]:
        """Create test categories."""
        return [Category(id="a", name="Alpha"), Category(id="b", name="Beta")]

    def test_chains_videos_per_category(self, categories: list[Category]) -> None:
        """Test uncategorized videos form their own chained group."""
        videos = [
            make_video("v1", "a"),
            make_video("v2", "a"),
            make_video("v3", "b"),
            make_video("v4"),
            make_video("v5"),
        ]

        graph = build_graph(videos, categories)

        assert [(e.source, e.target) for e in graph.edges] == [("v1", "v2"), ("v4", "v5")]
        assert graph.stats.video_count == 5
        assert graph.stats.edge_count == 2
        assert graph.stats.categories == 3

    def test_two_science_one_math(self) -> None:
        """Test two Science videos and one Math video give one edge."""
        categories = [Category(id="s", name="Science"), Category(id="m", name="Math")]
        videos = [make_video("v1", "s"), make_video("v2", "m"), make_video("v3", "s")]

        graph = build_graph(videos, categories)

        assert len(graph.nodes) == 3
        assert [(e.source, e.target) for e in graph.edges] == [("v1", "v3")]
        assert graph.stats.categories == 2

    def test_distinct_categories_have_no_edges(self) -> None:
        """Test videos each in their own category are not linked."""
        categories = [Category(id=c, name=c.upper()) for c in "xyz"]

        graph = build_graph([make_video(f"v{c}", c) for c in "xyz"], categories)

        assert graph.edges == []

    def test_edge_count_is_videos_minus_groups(self, categories: list[Category]) -> None:
        """Test edges equal node count minus non-empty group count."""
        videos = [make_video(f"v{i}", "a") for i in range(4)] + [make_video("x", "b")]

        graph = build_graph(videos, categories)

        assert graph.stats.edge_count == 5 - 2
        assert [(e.source, e.target) for e in graph.edges] == [
            ("v0", "v1"),
            ("v1", "v2"),
            ("v2", "v3"),
        ]
        assert all(e.type == "same_category" for e in graph.edges)

    def test_node_labels(self, categories: list[Category]) -> None:
        """Test nodes carry title, category name and watch status."""
        graph = build_graph([make_video("v1", "a"), make_video("v2")], categories)

        assert graph.nodes[0].label == "Video v1"
        assert graph.nodes[0].category == "Alpha"
        assert graph.nodes[1].category == "Uncategorized"
        assert graph.nodes[0].watch_status == "unwatched"

    def test_edges_serialize_with_from_and_to(self, categories: list[Category]) -> None:
        """Test edge JSON uses from/to keys."""
        graph = build_graph([make_video("v1", "a"), make_video("v2", "a")], categories)

        assert graph.model_dump(by_alias=True)["edges"] == [
            {"from": "v1", "to": "v2", "type": "same_category"}
        ]

    def test_empty(self) -> None:
        """Test no videos gives an empty graph."""
        graph = build_graph([], [])

        assert graph.nodes == []
        assert graph.edges == []
        assert graph.stats.categories == 0


@pytest.mark.unit
class TestGraphService:
    """Test suite for GraphService class."""

    @pytest.mark.asyncio
    async def test_build_graph_from_storage(self) -> None:
        """Test all videos and categories are loaded from storage."""
        storage = MagicMock()
        storage.list_all_videos = AsyncMock(
            return_value=[make_video("v1", "a"), make_video("v2", "a")]
        )
        storage.list_categories = AsyncMock(return_value=[Category(id="a", name="Alpha")])

        graph = await GraphService(storage).build_graph()

        assert graph.stats.edge_count == 1
        storage.list_all_videos.assert_called_once()
        storage.list_categories.assert_called_once()
