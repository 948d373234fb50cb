import math


def paginate(items: list, page: int = 1, limit: int = 10) -> tuple[list, dict]:
    """Slice `items` for the 1-based `page` and describe the result."""
    page = max(int(page or 1), 1)
    limit = max(int(limit or 10), 1)
    total = len(items)
    start = (page - 1) * limit
    return items[start : start + limit], {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": math.ceil(total / limit) if total else 0,
    }
