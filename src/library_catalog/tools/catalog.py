"""Catalog Tools - Users, Books and Search

Lets clients grow the catalog and look things up in it.

Tools:
- add_user: Register a new reader
- add_book: Add a new book to the shelf
- search_catalog: Keyword search over books or users
"""

import logging
from typing import Any, Literal

from pydantic import BaseModel, Field

from ..catalog.exceptions import InvalidInputError, PersistenceError
from ..catalog.store import get_store
from .circulation import _format_error_response, _log_operation

logger = logging.getLogger(__name__)


class AddUserInput(BaseModel):
    """Input schema for registering a user."""

    name: str = Field(..., description="Full name of the user", examples=["Alice Martin"])
    email: str = Field(..., description="Contact email address", examples=["alice@example.com"])
    phone: str = Field(default="", description="Contact phone number", examples=["555-0100"])
    max_borrow_count: int | None = Field(
        default=None,
        description="Borrow limit for this user. Uses the server default when omitted",
        ge=0,
        examples=[5],
    )


class AddBookInput(BaseModel):
    """Input schema for adding a book."""

    title: str = Field(..., description="Title of the book", examples=["Computer Networks"])
    author: str = Field(..., description="Author name(s)", examples=["Xie Xiren"])
    category: str = Field(default="", description="Shelf category", examples=["Computing"])
    keywords: str = Field(
        default="", description="Comma separated keywords", examples=["networking,tcp"]
    )
    description: str = Field(default="", description="Short description of the book")


class SearchCatalogInput(BaseModel):
    """Input schema for catalog search."""

    query: str = Field(
        ...,
        description="Substring to look for",
        min_length=1,
        examples=["network", "alice"],
    )
    target: Literal["books", "users"] = Field(
        default="books",
        description="Which collection to search",
    )


async def add_user_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """Register a user and return the assigned id.

    Client calls: tool.call("add_user", {"name": "...", "email": "..."})
    """
    try:
        try:
            params = AddUserInput.model_validate(arguments)
        except Exception as e:
            logger.warning("Invalid add_user parameters: %s", e)
            return _format_error_response("Invalid parameters", str(e))

        try:
            user_id = get_store().add_user(
                params.name, params.email, params.phone, params.max_borrow_count
            )
        except InvalidInputError as e:
            return _format_error_response("Invalid input", str(e))
        except PersistenceError as e:
            return _format_error_response("Storage error", str(e))

        _log_operation("add_user_success", user_id=user_id, name=params.name)

        return {
            "content": [{"type": "text", "text": f"Added user '{params.name}' with id {user_id}."}],
            "data": {"userId": user_id},
        }

    except Exception as e:
        logger.exception("Unexpected error in add_user tool")
        return _format_error_response("Unexpected error", str(e))


async def add_book_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """Add a book and return the assigned id."""
    try:
        try:
            params = AddBookInput.model_validate(arguments)
        except Exception as e:
            logger.warning("Invalid add_book parameters: %s", e)
            return _format_error_response("Invalid parameters", str(e))

        try:
            book_id = get_store().add_book(
                params.title,
                params.author,
                params.category,
                params.keywords,
                params.description,
            )
        except InvalidInputError as e:
            return _format_error_response("Invalid input", str(e))
        except PersistenceError as e:
            return _format_error_response("Storage error", str(e))

        _log_operation("add_book_success", book_id=book_id, title=params.title)

        return {
            "content": [
                {"type": "text", "text": f"Added book '{params.title}' with id {book_id}."}
            ],
            "data": {"bookId": book_id},
        }

    except Exception as e:
        logger.exception("Unexpected error in add_book tool")
        return _format_error_response("Unexpected error", str(e))


async def search_catalog_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """Search books (title, author, category, keywords) or users (name, email).

    Client calls: tool.call("search_catalog", {"query": "network", "target": "books"})
    """
    try:
        try:
            params = SearchCatalogInput.model_validate(arguments)
        except Exception as e:
            logger.warning("Invalid search parameters: %s", e)
            return _format_error_response("Invalid parameters", str(e))

        store = get_store()
        if params.target == "users":
            matches = [user.to_json_dict() for user in store.search_users(params.query)]
            lines = [f"- [{u['id']}] {u['name']} <{u['email']}>" for u in matches]
        else:
            matches = [book.to_json_dict() for book in store.search_books(params.query)]
            lines = [
                f"- [{b['id']}] {b['title']} by {b['author']}"
                + ("" if b["isAvailable"] else " (borrowed)")
                for b in matches
            ]

        logger.debug(
            "search_catalog: target=%s query=%r matches=%d",
            params.target,
            params.query,
            len(matches),
        )

        if matches:
            text = f"Found {len(matches)} {params.target} matching '{params.query}':\n" + "\n".join(
                lines
            )
        else:
            text = f"No {params.target} match '{params.query}'."

        return {
            "content": [{"type": "text", "text": text}],
            "data": {params.target: matches, "total": len(matches)},
        }

    except Exception as e:
        logger.exception("Unexpected error in search_catalog tool")
        return _format_error_response("Unexpected error", str(e))


add_user = {
    "name": "add_user",
    "description": (
        "Register a library user. Name and email are required and limited to "
        "255 characters. Returns the new user id."
    ),
    "inputSchema": AddUserInput.model_json_schema(),
    "handler": add_user_handler,
}

add_book = {
    "name": "add_book",
    "description": (
        "Add a book to the catalog. Title and author are required; category, "
        "keywords and description are optional. Returns the new book id."
    ),
    "inputSchema": AddBookInput.model_json_schema(),
    "handler": add_book_handler,
}

search_catalog = {
    "name": "search_catalog",
    "description": (
        "Search the catalog by keyword. Books match case-insensitively on title, "
        "author, category and keywords. Users match on name (case-insensitive) or email."
    ),
    "inputSchema": SearchCatalogInput.model_json_schema(),
    "handler": search_catalog_handler,
}
