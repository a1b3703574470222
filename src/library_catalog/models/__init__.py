"""
Library Catalog Models.

Pydantic models for the three catalog entities. They provide:

1. Validation of persisted and incoming data
2. Serialization to/from the camelCase JSON documents on disk
3. The small state transitions each entity owns (check out, check in,
   mark returned)

The models represent:
- User: a reader who can hold up to ``max_borrow_count`` books at once
- Book: a catalog item with a single copy and a permanent borrower history
- BorrowRecord: one borrow transaction, closed when the book comes back
"""

from .base import MAX_FIELD_LENGTH, CatalogModel, epoch_now
from .book import Book
from .borrow_record import BorrowRecord
from .user import User

__all__ = [
    "MAX_FIELD_LENGTH",
    "Book",
    "BorrowRecord",
    "CatalogModel",
    "User",
    "epoch_now",
]
