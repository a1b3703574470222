"""Circulation Tools - Borrow and Return

Modifies catalog state through the two circulation transactions.
Clients use these tools to lend books to users and take them back.

Tools:
- borrow_book: Lend an available book to a user below their borrow limit
- return_book: Take a book back from the user currently holding it
"""

import logging
from typing import Any

from pydantic import BaseModel, Field

from ..catalog.exceptions import BusinessRuleError, NotFoundError, PersistenceError
from ..catalog.store import get_store

logger = logging.getLogger(__name__)


def _format_error_response(error_type: str, details: str) -> dict[str, Any]:
    """Format error responses consistently across all tools."""
    return {"isError": True, "content": [{"type": "text", "text": f"{error_type}: {details}"}]}


def _log_operation(operation: str, **kwargs) -> None:
    """Log operation details for audit trail."""
    logger.info(
        "Operation: %s | Details: %s", operation, " | ".join(f"{k}={v}" for k, v in kwargs.items())
    )


class BorrowBookInput(BaseModel):
    """Input schema for borrow operations."""

    user_id: int = Field(..., description="Id of the borrowing user", ge=1, examples=[1, 3])
    book_id: int = Field(..., description="Id of the book to borrow", ge=1, examples=[2, 5])


class ReturnBookInput(BaseModel):
    """Input schema for return operations."""

    user_id: int = Field(..., description="Id of the user returning the book", ge=1, examples=[1])
    book_id: int = Field(..., description="Id of the book being returned", ge=1, examples=[2])


async def borrow_book_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """Process a borrow request.

    Checks that both ids exist, the user is under their borrow limit and the
    book is on the shelf, then records the loan.

    Client calls: tool.call("borrow_book", {"user_id": 1, "book_id": 2})
    """
    try:
        try:
            params = BorrowBookInput.model_validate(arguments)
        except Exception as e:
            logger.warning("Invalid borrow parameters: %s", e)
            return _format_error_response("Invalid parameters", str(e))

        _log_operation("borrow_book_start", user_id=params.user_id, book_id=params.book_id)

        store = get_store()
        try:
            record = store.checkout(params.user_id, params.book_id)
        except (NotFoundError, BusinessRuleError) as e:
            _log_operation(
                "borrow_book_failed",
                user_id=params.user_id,
                book_id=params.book_id,
                error_details=str(e),
            )
            return _format_error_response("Borrow failed", str(e))
        except PersistenceError:
            return _format_error_response(
                "Borrow failed", "The catalog could not record the loan"
            )

        _log_operation(
            "borrow_book_success",
            record_id=record.record_id,
            user_id=params.user_id,
            book_id=params.book_id,
        )

        book = store.find_book(params.book_id)
        title = book.title if book else f"#{params.book_id}"
        return {
            "content": [
                {
                    "type": "text",
                    "text": f"Successfully lent '{title}' to user {params.user_id}.",
                }
            ],
            "data": {"record": record.to_json_dict()},
        }

    except Exception as e:
        logger.exception("Unexpected error in borrow_book tool")
        return _format_error_response("Unexpected error", str(e))


async def return_book_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """Process a return request.

    Only the user currently holding the book can return it. The matching
    open borrow record is closed with the current time.

    Client calls: tool.call("return_book", {"user_id": 1, "book_id": 2})
    """
    try:
        try:
            params = ReturnBookInput.model_validate(arguments)
        except Exception as e:
            logger.warning("Invalid return parameters: %s", e)
            return _format_error_response("Invalid parameters", str(e))

        _log_operation("return_book_start", user_id=params.user_id, book_id=params.book_id)

        try:
            record = get_store().checkin(params.user_id, params.book_id)
        except (NotFoundError, BusinessRuleError) as e:
            _log_operation(
                "return_book_failed",
                user_id=params.user_id,
                book_id=params.book_id,
                error_details=str(e),
            )
            return _format_error_response("Return failed", str(e))
        except PersistenceError:
            return _format_error_response(
                "Return failed", "The catalog could not record the return"
            )

        _log_operation("return_book_success", user_id=params.user_id, book_id=params.book_id)

        return {
            "content": [
                {
                    "type": "text",
                    "text": f"User {params.user_id} returned book {params.book_id}.",
                }
            ],
            "data": {"record": record.to_json_dict() if record else None},
        }

    except Exception as e:
        logger.exception("Unexpected error in return_book tool")
        return _format_error_response("Unexpected error", str(e))


borrow_book = {
    "name": "borrow_book",
    "description": (
        "Lend a book to a user. Fails if either id is unknown, the user already "
        "holds as many books as their borrow limit allows, or the book is out. "
        "Creates an open borrow record and updates the circulation statistics."
    ),
    "inputSchema": BorrowBookInput.model_json_schema(),
    "handler": borrow_book_handler,
}

return_book = {
    "name": "return_book",
    "description": (
        "Return a borrowed book. Only the user currently holding the book can "
        "return it. Puts the book back on the shelf and closes the open borrow record."
    ),
    "inputSchema": ReturnBookInput.model_json_schema(),
    "handler": return_book_handler,
}
