"""Statistics Resources - Circulation Analytics

Resources:
- library://stats/summary - Counters plus catalog totals
- library://stats/popular/{limit} - Most borrowed books and most active users
"""

import logging
from typing import Any

from fastmcp.exceptions import ResourceError

from ..catalog.store import get_store

logger = logging.getLogger(__name__)


async def get_summary_handler() -> dict[str, Any]:
    """Returns the statistics counters with user, book and record totals."""
    try:
        store = get_store()
        return {"statistics": store.get_statistics_json(), **store.get_totals()}
    except Exception as e:
        logger.exception("Error in stats/summary resource")
        raise ResourceError(f"Failed to calculate statistics: {e!s}") from e


async def get_popular_handler(limit: str) -> dict[str, Any]:
    """Returns the top ``limit`` books and users by borrow count.

    Client requests library://stats/popular/{limit} to discover trending
    books. Ties are ordered by ascending id.
    """
    try:
        try:
            limit_int = int(limit)
        except ValueError as e:
            raise ResourceError(f"limit must be an integer, got {limit!r}") from e

        if not 1 <= limit_int <= 50:
            raise ResourceError("limit must be between 1 and 50")

        logger.debug("MCP Resource Request - stats/popular: limit=%d", limit_int)

        store = get_store()
        statistics = store.get_statistics()

        books = []
        for book_id, borrows in statistics.get_most_popular_books(limit_int):
            book = store.find_book(book_id)
            books.append(
                {"bookId": book_id, "title": book.title if book else None, "borrows": borrows}
            )

        users = []
        for user_id, borrows in statistics.get_most_active_users(limit_int):
            user = store.find_user(user_id)
            users.append(
                {"userId": user_id, "name": user.name if user else None, "borrows": borrows}
            )

        return {
            "limit": limit_int,
            "popularBooks": books,
            "activeUsers": users,
            "monthlyTrends": statistics.get_monthly_trends(),
        }

    except ResourceError:
        raise
    except Exception as e:
        logger.exception("Error in stats/popular resource")
        raise ResourceError(f"Failed to calculate popular books: {e!s}") from e


stats_resources: list[dict[str, Any]] = [
    {
        "uri": "library://stats/summary",
        "name": "Circulation Summary",
        "description": "Book popularity, user activity and monthly borrow counters with totals",
        "mime_type": "application/json",
        "handler": get_summary_handler,
    },
    {
        "uri_template": "library://stats/popular/{limit}",
        "name": "Popular Books",
        "description": "Most borrowed books and most active users (limit 1-50)",
        "mime_type": "application/json",
        "handler": get_popular_handler,
    },
]
