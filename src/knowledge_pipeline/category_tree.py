"""Build a nested category tree from flat category rows."""

from .schemas import Category, CategoryNode


def _closes_loop(category_id: str, parents: dict[str, str | None]) -> bool:
    seen = {category_id}
    current = parents.get(category_id)
    while current is not None:
        if current == category_id:
            return True
        if current in seen:
            # Loop higher up the chain; it is cut at one of its own nodes
            return False
        seen.add(current)
        current = parents.get(current)
    return False


def build_category_tree(
    categories: list[Category], video_counts: dict[str, int] | None = None
) -> list[CategoryNode]:
    """Arrange categories into a forest ordered by name.

    The first pass indexes every category by id. The second pass links each
    node under its parent. A node is promoted to a root when its parent does
    not exist, when it is its own parent, or when its parent chain leads
    back to it. Nodes below a loop stay under their parents.

    Args:
        categories: Flat category rows.
        video_counts: Optional number of videos per category id.

    Returns:
        Root nodes with their children resolved.
    """
    video_counts = video_counts or {}

    nodes: dict[str, CategoryNode] = {}
    for category in categories:
        data = category.model_dump()
        data["video_count"] = video_counts.get(category.id, category.video_count)
        nodes[category.id] = CategoryNode(**data)

    parents = {
        node_id: node.parent_id if node.parent_id in nodes else None
        for node_id, node in nodes.items()
    }

    roots: list[CategoryNode] = []
    for node_id, node in nodes.items():
        parent_id = parents[node_id]
        if parent_id is None or parent_id == node_id:
            parents[node_id] = None
            roots.append(node)
        elif _closes_loop(node_id, parents):
            # Cut the loop here so the remaining nodes hang off this one
            parents[node_id] = None
            roots.append(node)
        else:
            nodes[parent_id].children.append(node)

    def sort_children(node: CategoryNode) -> None:
        node.children.sort(key=lambda child: child.name.lower())
        for child in node.children:
            sort_children(child)

    roots.sort(key=lambda root: root.name.lower())
    for root in roots:
        sort_children(root)
    return roots
