"""Book Resources - Catalog Access

Exposes book data via read-only resources.

Resources:
- library://books/list - Every book in the catalog with availability
- library://books/{book_id} - One book plus its borrow records
"""

import logging
from typing import Any

from fastmcp.exceptions import ResourceError

from ..catalog.store import get_store

logger = logging.getLogger(__name__)


def _parse_id(value: str, kind: str) -> int:
    try:
        parsed = int(value)
    except (TypeError, ValueError) as e:
        raise ResourceError(f"Invalid {kind} id: {value}") from e
    if parsed < 1:
        raise ResourceError(f"Invalid {kind} id: {value}")
    return parsed


async def list_books_handler() -> dict[str, Any]:
    """Returns the full book catalog.

    Client requests library://books/list to browse every book.
    """
    try:
        books = get_store().get_all_books()
        logger.debug("MCP Resource Request - books/list: %d books", len(books))
        return {
            "books": [book.to_json_dict() for book in books],
            "total": len(books),
            "available": sum(1 for book in books if book.is_available),
        }
    except Exception as e:
        logger.exception("Error in books/list resource")
        raise ResourceError(f"Failed to retrieve book list: {e!s}") from e


async def get_book_handler(book_id: str) -> dict[str, Any]:
    """Returns one book with its borrow records.

    Client requests library://books/{book_id} to see who holds a book and
    everyone who borrowed it before.
    """
    try:
        parsed = _parse_id(book_id, "book")
        logger.debug("MCP Resource Request - books/%d", parsed)

        store = get_store()
        book = store.find_book(parsed)
        if book is None:
            raise ResourceError(f"Book not found: {parsed}")

        return {
            "book": book.to_json_dict(),
            "records": [record.to_json_dict() for record in store.get_book_borrow_history(parsed)],
        }

    except ResourceError:
        raise
    except Exception as e:
        logger.exception("Error in books/{book_id} resource")
        raise ResourceError(f"Failed to retrieve book details: {e!s}") from e


book_resources: list[dict[str, Any]] = [
    {
        "uri": "library://books/list",
        "name": "Book Catalog",
        "description": "Every book in the catalog with its availability and current borrower",
        "mime_type": "application/json",
        "handler": list_books_handler,
    },
    {
        "uri_template": "library://books/{book_id}",
        "name": "Book Details",
        "description": "One book by id, with all borrow records for it",
        "mime_type": "application/json",
        "handler": get_book_handler,
    },
]
