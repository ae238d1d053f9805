"""Pagination helper for list queries."""

import math


def paginate(cursor, query: str, count_query: str, params: list,
             order_by: str, page: int = 1, per_page: int = 10) -> dict:
    """
    Run a filtered list query with LIMIT/OFFSET.

    Args:
        cursor: Database cursor
        query: SELECT with filters applied, without ORDER BY
        count_query: Matching COUNT(*) AS total query with the same filters
        params: Filter parameters shared by both queries
        order_by: ORDER BY clause body
        page: 1-based page number
        per_page: Items per page

    Returns:
        dict: {items: list, total: int, page: int, per_page: int, pages: int}
    """
    page = max(page or 1, 1)
    per_page = max(per_page or 1, 1)

    cursor.execute(count_query, params)
    total = cursor.fetchone()['total']

    cursor.execute(
        f'{query} ORDER BY {order_by} LIMIT ? OFFSET ?',
        [*params, per_page, (page - 1) * per_page]
    )
    items = [dict(row) for row in cursor.fetchall()]

    return {
        'items': items,
        'total': total,
        'page': page,
        'per_page': per_page,
        'pages': math.ceil(total / per_page) if total else 0
    }


def search_param(search: str) -> str:
    """LIKE pattern for a substring search."""
    return f'%{search.strip()}%'
