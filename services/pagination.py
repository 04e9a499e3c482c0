"""
Pagination and search helpers shared by the repositories.
"""

import math
from typing import Dict, List, Optional, Tuple

from sqlalchemy import or_

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 25
MAX_LIMIT = 100
LIKE_ESCAPE = '\\'


def normalize_page(page, limit) -> Tuple[int, int]:
    """Coerce page to >= 1 and limit to 1..100, falling back to the defaults."""
    try:
        page = int(page)
    except (TypeError, ValueError):
        page = DEFAULT_PAGE
    try:
        limit = int(limit)
    except (TypeError, ValueError):
        limit = DEFAULT_LIMIT
    page = max(page, 1)
    limit = min(max(limit, 1), MAX_LIMIT)
    return page, limit


def escape_like(text: str) -> str:
    """Make % and _ in user input match literally."""
    for char in (LIKE_ESCAPE, '%', '_'):
        text = text.replace(char, LIKE_ESCAPE + char)
    return text


def search_filter(search: Optional[str], *columns):
    """Case-insensitive substring match across columns, or None for no search."""
    if not search or not search.strip():
        return None
    pattern = f"%{escape_like(search.strip())}%"
    return or_(*[column.ilike(pattern, escape=LIKE_ESCAPE) for column in columns])


def paginate(query, page, limit, serializer) -> Dict:
    """
    Run a paginated query.

    Args:
        query: Filtered and ordered SQLAlchemy query
        page: Requested page (1-based)
        limit: Page size
        serializer: Callable turning a model into a dict

    Returns:
        {'success', 'data', 'pagination': {page, limit, total, pages}}
    """
    page, limit = normalize_page(page, limit)
    total = query.order_by(None).count()
    records: List = query.offset((page - 1) * limit).limit(limit).all()
    return {
        'success': True,
        'data': [serializer(record) for record in records],
        'pagination': {
            'page': page,
            'limit': limit,
            'total': total,
            'pages': math.ceil(total / limit) if total else 0
        }
    }
