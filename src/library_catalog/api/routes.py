"""REST API for the Library Catalog.

The browser dashboards and scripts talk to the catalog over plain JSON
endpoints served next to the MCP transport on the same HTTP app:

- /api/users, /api/users/{user_id}, /api/users/{user_id}/history
- /api/books, /api/books/{book_id}, /api/books/{book_id}/history
- /api/borrow, /api/return
- /api/statistics, /api/records
- /api/login
- /health

Request bodies may be JSON or ``application/x-www-form-urlencoded``. Every
error body has the shape ``{"error": true, "message": ...}``, except failed
borrows and returns which answer ``{"success": false, "message": ...}``.
"""

import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from fastmcp import FastMCP
from starlette.requests import Request
from starlette.responses import JSONResponse

from ..catalog.exceptions import (
    BusinessRuleError,
    InvalidInputError,
    NotFoundError,
    PersistenceError,
)
from ..catalog.store import get_store
from ..config import get_config

logger = logging.getLogger(__name__)

Handler = Callable[[Request], Awaitable[JSONResponse]]

_ALL_METHODS = ["GET", "POST", "PUT", "DELETE", "PATCH"]


class BadRequest(Exception):
    """Raised while decoding a request that cannot be served."""


# =============================================================================
# REQUEST / RESPONSE HELPERS
# =============================================================================


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse({"error": True, "message": message}, status_code=status_code)


def _ok(message: str, **extra: Any) -> JSONResponse:
    return JSONResponse({"success": True, **extra, "message": message})


def _refused(message: str) -> JSONResponse:
    return JSONResponse({"success": False, "message": message}, status_code=400)


async def _read_params(request: Request) -> dict[str, Any]:
    """Decode the request body as JSON or form data."""
    content_type = request.headers.get("content-type", "")

    if "application/json" in content_type:
        body = await request.body()
        if not body.strip():
            return {}
        try:
            data = json.loads(body)
        except json.JSONDecodeError as e:
            raise BadRequest(f"Invalid JSON body: {e.msg}") from e
        if not isinstance(data, dict):
            raise BadRequest("JSON body must be an object")
        return data

    form = await request.form()
    return dict(form)


def _require(params: dict[str, Any], *names: str) -> None:
    missing = [name for name in names if params.get(name) is None]
    if missing:
        raise BadRequest(f"Missing required fields: {', '.join(missing)}")


def _text(params: dict[str, Any], name: str, default: str = "") -> str:
    value = params.get(name)
    if value is None:
        return default
    if isinstance(value, (dict, list)):
        raise BadRequest(f"Field {name} must be a string")
    return str(value)


def _parse_id(value: Any, label: str) -> int:
    """Accept an integer or a string of digits as an entity id."""
    if isinstance(value, bool):
        raise BadRequest(f"Invalid {label}")
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError as e:
        raise BadRequest(f"Invalid {label}") from e


def _endpoint(methods: dict[str, Handler]) -> Handler:
    """Dispatch on method, answer 405 for the rest and map catalog errors to JSON."""

    async def endpoint(request: Request) -> JSONResponse:
        handler = methods.get(request.method)
        if handler is None:
            return _error(405, "Method Not Allowed")
        try:
            return await handler(request)
        except BadRequest as e:
            return _error(400, str(e))
        except InvalidInputError as e:
            return _error(400, str(e))
        except PersistenceError:
            logger.exception("Storage failure serving %s %s", request.method, request.url.path)
            return _error(500, "Failed to save the catalog")

    return endpoint


# =============================================================================
# USERS
# =============================================================================


async def list_users(request: Request) -> JSONResponse:
    store = get_store()
    search = request.query_params.get("search")
    users = store.search_users(search) if search else store.get_all_users()
    return JSONResponse([user.to_json_dict() for user in users])


async def create_user(request: Request) -> JSONResponse:
    params = await _read_params(request)
    _require(params, "name", "email", "phone")

    max_borrow_count = None
    if params.get("maxBorrowCount") is not None:
        max_borrow_count = _parse_id(params["maxBorrowCount"], "maxBorrowCount")

    user_id = get_store().add_user(
        _text(params, "name"),
        _text(params, "email"),
        _text(params, "phone"),
        max_borrow_count,
    )
    return _ok("User added", userId=user_id)


async def update_user(request: Request) -> JSONResponse:
    user_id = _parse_id(request.path_params["user_id"], "user id")
    params = await _read_params(request)
    _require(params, "name", "email", "phone")

    max_borrow_count = None
    if params.get("maxBorrowCount") is not None:
        max_borrow_count = _parse_id(params["maxBorrowCount"], "maxBorrowCount")

    if not get_store().update_user(
        user_id,
        _text(params, "name"),
        _text(params, "email"),
        _text(params, "phone"),
        max_borrow_count,
    ):
        return _error(
            400, "Failed to update user: not found, invalid input or limit below books held"
        )
    return _ok("User updated")


async def delete_user(request: Request) -> JSONResponse:
    user_id = _parse_id(request.path_params["user_id"], "user id")
    if not get_store().delete_user(user_id):
        return _error(400, "Failed to delete user: not found or still holding books")
    return _ok("User deleted")


async def user_history(request: Request) -> JSONResponse:
    user_id = _parse_id(request.path_params["user_id"], "user id")
    store = get_store()
    if store.find_user(user_id) is None:
        return _error(400, f"User {user_id} not found")
    return JSONResponse([r.to_json_dict() for r in store.get_user_borrow_history(user_id)])


# =============================================================================
# BOOKS
# =============================================================================


def _book_fields(params: dict[str, Any]) -> dict[str, str]:
    return {
        "title": _text(params, "title"),
        "author": _text(params, "author"),
        "category": _text(params, "category"),
        "keywords": _text(params, "keywords"),
        "description": _text(params, "description"),
    }


async def list_books(request: Request) -> JSONResponse:
    store = get_store()
    search = request.query_params.get("search")
    books = store.search_books(search) if search else store.get_all_books()
    return JSONResponse([book.to_json_dict() for book in books])


async def create_book(request: Request) -> JSONResponse:
    params = await _read_params(request)
    _require(params, "title", "author")
    book_id = get_store().add_book(**_book_fields(params))
    return _ok("Book added", bookId=book_id)


async def update_book(request: Request) -> JSONResponse:
    book_id = _parse_id(request.path_params["book_id"], "book id")
    params = await _read_params(request)
    _require(params, "title", "author")
    if not get_store().update_book(book_id, **_book_fields(params)):
        return _error(400, "Failed to update book")
    return _ok("Book updated")


async def delete_book(request: Request) -> JSONResponse:
    book_id = _parse_id(request.path_params["book_id"], "book id")
    if not get_store().delete_book(book_id):
        return _error(400, "Failed to delete book: not found or currently borrowed")
    return _ok("Book deleted")


async def book_history(request: Request) -> JSONResponse:
    book_id = _parse_id(request.path_params["book_id"], "book id")
    store = get_store()
    if store.find_book(book_id) is None:
        return _error(400, f"Book {book_id} not found")
    return JSONResponse([r.to_json_dict() for r in store.get_book_borrow_history(book_id)])


# =============================================================================
# CIRCULATION
# =============================================================================


async def _circulation_ids(request: Request) -> tuple[int, int]:
    params = await _read_params(request)
    _require(params, "userId", "bookId")
    return (
        _parse_id(params["userId"], "user id or book id"),
        _parse_id(params["bookId"], "user id or book id"),
    )


async def borrow(request: Request) -> JSONResponse:
    user_id, book_id = await _circulation_ids(request)
    try:
        get_store().checkout(user_id, book_id)
    except (NotFoundError, BusinessRuleError) as e:
        return _refused(f"Borrow failed: {e}")
    except PersistenceError:
        return _refused("Borrow failed: could not save the loan")
    return _ok("Book borrowed")


async def give_back(request: Request) -> JSONResponse:
    user_id, book_id = await _circulation_ids(request)
    try:
        get_store().checkin(user_id, book_id)
    except (NotFoundError, BusinessRuleError) as e:
        return _refused(f"Return failed: {e}")
    except PersistenceError:
        return _refused("Return failed: could not save the return")
    return _ok("Book returned")


# =============================================================================
# REPORTING, LOGIN AND HEALTH
# =============================================================================


async def statistics(request: Request) -> JSONResponse:
    store = get_store()
    return JSONResponse({"statistics": store.get_statistics_json(), **store.get_totals()})


async def records(request: Request) -> JSONResponse:
    return JSONResponse([r.to_json_dict() for r in get_store().get_all_borrow_records()])


async def login(request: Request) -> JSONResponse:
    """Trivial credential check for the dashboards.

    The configured admin account logs in as ``admin``. Readers log in with
    their name or email and use their user id as the password.
    """
    params = await _read_params(request)
    if params.get("username") is None or params.get("password") is None:
        return _error(400, "Missing username or password")

    username = _text(params, "username")
    password = _text(params, "password")
    config = get_config()

    if username == config.admin_username and password == config.admin_password:
        logger.info("Admin login")
        return JSONResponse(
            {
                "success": True,
                "message": "Administrator login successful",
                "userType": "admin",
                "username": config.admin_username,
                "userId": 0,
            }
        )

    for user in get_store().get_all_users():
        if username in (user.name, user.email) and password == str(user.id):
            logger.info("Reader login for user %d", user.id)
            return JSONResponse(
                {
                    "success": True,
                    "message": "Login successful",
                    "userType": "reader",
                    "username": user.name,
                    "userId": user.id,
                }
            )

    logger.info("Failed login attempt for %r", username)
    return JSONResponse({"success": False, "message": "Invalid username or password"})


async def health(request: Request) -> JSONResponse:
    totals = get_store().get_totals()
    return JSONResponse(
        {"status": "ok", "totalUsers": totals["totalUsers"], "totalBooks": totals["totalBooks"]}
    )


# =============================================================================
# REGISTRATION
# =============================================================================

ROUTES: dict[str, dict[str, Handler]] = {
    "/api/users": {"GET": list_users, "POST": create_user},
    "/api/users/{user_id}": {"PUT": update_user, "DELETE": delete_user},
    "/api/users/{user_id}/history": {"GET": user_history},
    "/api/books": {"GET": list_books, "POST": create_book},
    "/api/books/{book_id}": {"PUT": update_book, "DELETE": delete_book},
    "/api/books/{book_id}/history": {"GET": book_history},
    "/api/borrow": {"POST": borrow},
    "/api/return": {"POST": give_back},
    "/api/statistics": {"GET": statistics},
    "/api/records": {"GET": records},
    "/api/login": {"POST": login},
    "/health": {"GET": health},
}


def register_routes(mcp: FastMCP) -> None:
    """Attach every REST endpoint to ``mcp``'s HTTP app."""
    for path, methods in ROUTES.items():
        mcp.custom_route(path, methods=_ALL_METHODS, name=path)(_endpoint(methods))
        logger.debug("Registered route %s (%s)", path, ", ".join(methods))

    logger.info("Registered %d REST routes", len(ROUTES))
