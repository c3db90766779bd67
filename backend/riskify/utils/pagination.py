"""
Pagination helpers shared by the list endpoints.
"""
from typing import Any, List, Optional, Tuple
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

MAX_PAGE_SIZE = 100


def clamp_page(page: int, page_size: int) -> Tuple[int, int, int]:
    """Return (page, page_size, offset) with page >= 1 and page_size in 1..100"""
    page = max(1, page)
    page_size = max(1, min(MAX_PAGE_SIZE, page_size))
    return page, page_size, (page - 1) * page_size


def page_meta(total: int, page: int, page_size: int) -> dict:
    total_pages = (total + page_size - 1) // page_size if total > 0 else 1
    return {
        "total": total,
        "page": page,
        "page_size": page_size,
        "total_pages": total_pages,
        "has_next": page < total_pages,
        "has_previous": page > 1,
    }


async def paginate(
    db: AsyncSession,
    query: Select,
    page: int = 1,
    page_size: int = 20,
    count_query: Optional[Select] = None,
    scalars: bool = True
) -> Tuple[List[Any], dict]:
    """
    Run ``query`` for one page.

    Returns:
        (items, meta) where meta has total, page, page_size, total_pages,
        has_next and has_previous. With ``scalars=False`` items are rows
        (for multi-entity selects).
    """
    page, page_size, offset = clamp_page(page, page_size)

    if count_query is None:
        count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total = await db.scalar(count_query) or 0

    result = await db.execute(query.offset(offset).limit(page_size))
    items = list(result.scalars().all()) if scalars else list(result.all())
    return items, page_meta(total, page, page_size)
