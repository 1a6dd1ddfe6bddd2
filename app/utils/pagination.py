"""
Pagination over SQLAlchemy queries
"""
import math
from typing import Any, Callable

from sqlalchemy.orm import Query

from app.utils.validation import validate_and_normalize_page


def paginate(query: Query, page: int, page_size: int, serialize: Callable[[Any], Any] = lambda row: row) -> dict:
    """
    Run a count plus one page of ``query``.

    Returns:
        {"items", "total_count", "current_page", "total_pages"}
    """
    page, page_size = validate_and_normalize_page(page, page_size)
    total_count = query.order_by(None).count()
    rows = query.offset((page - 1) * page_size).limit(page_size).all()
    return {
        "items": [serialize(row) for row in rows],
        "total_count": total_count,
        "current_page": page,
        "total_pages": math.ceil(total_count / page_size) if total_count else 0,
    }
