"""User Resources - Reader Records

Resources:
- library://users/list - Every registered user
- library://users/{user_id}/history - A user's borrow records, newest first
"""

import logging
from typing import Any

from fastmcp.exceptions import ResourceError

from ..catalog.store import get_store
from .books import _parse_id

logger = logging.getLogger(__name__)


async def list_users_handler() -> dict[str, Any]:
    """Returns all users with their current borrow counts."""
    try:
        users = get_store().get_all_users()
        logger.debug("MCP Resource Request - users/list: %d users", len(users))
        return {
            "users": [
                {**user.to_json_dict(), "currentBorrowCount": user.current_borrow_count}
                for user in users
            ],
            "total": len(users),
        }
    except Exception as e:
        logger.exception("Error in users/list resource")
        raise ResourceError(f"Failed to retrieve user list: {e!s}") from e


async def get_user_history_handler(user_id: str) -> dict[str, Any]:
    """Returns a user's borrow records.

    Client requests library://users/{user_id}/history to see what a reader
    holds now and what they returned before.
    """
    try:
        parsed = _parse_id(user_id, "user")
        logger.debug("MCP Resource Request - users/%d/history", parsed)

        store = get_store()
        user = store.find_user(parsed)
        if user is None:
            raise ResourceError(f"User not found: {parsed}")

        records = store.get_user_borrow_history(parsed)
        records.sort(key=lambda r: (r.borrow_time, r.record_id), reverse=True)

        return {
            "user": user.to_json_dict(),
            "records": [record.to_json_dict() for record in records],
            "openLoans": sum(1 for record in records if record.is_open),
            "totalLoans": len(records),
        }

    except ResourceError:
        raise
    except Exception as e:
        logger.exception("Error in users/{user_id}/history resource")
        raise ResourceError(f"Failed to retrieve borrow history: {e!s}") from e


user_resources: list[dict[str, Any]] = [
    {
        "uri": "library://users/list",
        "name": "User Directory",
        "description": "Every registered user with their borrow limit and books held",
        "mime_type": "application/json",
        "handler": list_users_handler,
    },
    {
        "uri_template": "library://users/{user_id}/history",
        "name": "User Borrow History",
        "description": "All borrow records of one user, newest first",
        "mime_type": "application/json",
        "handler": get_user_history_handler,
    },
]
