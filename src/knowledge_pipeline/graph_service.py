"""Knowledge graph builder linking videos that share a category."""

from src.utils.logging import get_logger

from .schemas import Category, GraphEdge, GraphNode, GraphStats, KnowledgeGraph, Video
from .storage_service import StorageService

logger = get_logger(__name__)

UNCATEGORIZED_LABEL = "Uncategorized"
UNCATEGORIZED_GROUP = "none"


def build_graph(videos: list[Video], categories: list[Category]) -> KnowledgeGraph:
    """Build graph nodes and same-category edges for a set of videos.

    Videos are grouped by category id, with uncategorized videos forming
    their own group. Within a group, consecutive videos (in input order) are
    chained, so a group of n videos yields n - 1 edges.

    Args:
        videos: Videos to place in the graph.
        categories: Categories used to label nodes.

    Returns:
        KnowledgeGraph with nodes, edges and stats.
    """
    names = {category.id: category.name for category in categories}

    nodes = [
        GraphNode(
            id=video.id,
            label=video.title,
            category=names.get(video.category_id, UNCATEGORIZED_LABEL)
            if video.category_id
            else UNCATEGORIZED_LABEL,
            watch_status=video.watch_status,
        )
        for video in videos
    ]

    groups: dict[str, list[str]] = {}
    for video in videos:
        groups.setdefault(video.category_id or UNCATEGORIZED_GROUP, []).append(video.id)

    edges = [
        GraphEdge(source=group[i], target=group[i + 1])
        for group in groups.values()
        for i in range(len(group) - 1)
    ]

    return KnowledgeGraph(
        nodes=nodes,
        edges=edges,
        stats=GraphStats(video_count=len(nodes), edge_count=len(edges), categories=len(groups)),
    )


class GraphService:
    """Service building the knowledge graph from stored videos."""

    def __init__(self, storage: StorageService):
        self.storage = storage

    async def build_graph(self) -> KnowledgeGraph:
        """Load every video and category and build the graph."""
        videos = await self.storage.list_all_videos()
        categories = await self.storage.list_categories()

        graph = build_graph(videos, categories)
        logger.info(
            "knowledge_graph_built",
            videos=graph.stats.video_count,
            edges=graph.stats.edge_count,
            groups=graph.stats.categories,
        )
        return graph
