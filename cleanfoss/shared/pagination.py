"""Page/limit pagination for list endpoints"""

import math

from sqlalchemy.orm import Query

MAX_PAGE_SIZE = 100


def paginate(query: Query, page: int, limit: int) -> tuple[list, dict]:
    """
    Apply ``page``/``limit`` to an ordered query.

    Returns the page's rows and the pagination block sent to clients.
    """
    page = max(page, 1)
    limit = min(max(limit, 1), MAX_PAGE_SIZE)
    total_count = query.order_by(None).count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    return items, {
        "page": page,
        "limit": limit,
        "totalCount": total_count,
        "totalPages": math.ceil(total_count / limit),
        "hasMore": (page - 1) * limit + len(items) < total_count,
    }
