from typing import Callable, Optional

from sqlalchemy import func
from sqlmodel import select

MAX_PAGE_SIZE = 50


def paginate(
    *,
    session,
    query,
    page: int = 1,
    limit: int = 10,
    transform: Optional[Callable] = None,
):
    """Run ``query`` one page at a time.

    ``limit`` is clamped to MAX_PAGE_SIZE. ``transform`` maps each row,
    e.g. ``OrderOut.model_validate``.
    """
    page = max(page, 1)
    limit = min(limit if limit >= 1 else 10, MAX_PAGE_SIZE)

    # count ignores ordering
    total = session.exec(
        select(func.count()).select_from(query.order_by(None).subquery())
    ).one()

    rows = session.exec(query.offset((page - 1) * limit).limit(limit)).all()

    return {
        "total_items": total,
        "total_pages": (total + limit - 1) // limit,
        "current_page": page,
        "limit": limit,
        "results": [transform(row) for row in rows] if transform else rows,
    }
