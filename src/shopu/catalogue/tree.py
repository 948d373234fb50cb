"""Category hierarchy helpers operating on already-loaded categories."""

from collections import defaultdict


def children_index(categories) -> dict[str | None, list]:
    index = defaultdict(list)
    for category in categories:
        index[str(category.parent_id) if category.parent_id else None].append(category)
    return index


def descendant_ids(categories, root_id: str) -> set[str]:
    """Ids of every category below `root_id` (excluding the root itself)."""
    index = children_index(categories)
    found: set[str] = set()
    stack = [str(root_id)]
    while stack:
        current = stack.pop()
        for child in index.get(current, []):
            child_id = str(child.id)
            if child_id not in found:
                found.add(child_id)
                stack.append(child_id)
    return found


def build_tree(categories, product_counts: dict[str, int] | None = None) -> list[dict]:
    """Nest categories under their parents.

    Each node carries `product_count` (its own products) and
    `total_product_count` (its whole subtree). Categories whose parent is not
    in `categories` are promoted to roots.
    """
    product_counts = product_counts or {}
    known = {str(c.id) for c in categories}
    index = defaultdict(list)
    for category in categories:
        parent = str(category.parent_id) if category.parent_id else None
        index[parent if parent in known else None].append(category)

    def node(category) -> dict:
        data = category.to_dict()
        children = [node(child) for child in sorted(index.get(str(category.id), []), key=lambda c: c.name)]
        own = product_counts.get(str(category.id), 0)
        data["product_count"] = own
        data["total_product_count"] = own + sum(child["total_product_count"] for child in children)
        data["children"] = children
        return data

    return [node(root) for root in sorted(index.get(None, []), key=lambda c: c.name)]
