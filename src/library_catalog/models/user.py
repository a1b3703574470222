"""
User model for the Library Catalog.

A user is a reader who borrows books. ``borrow_history`` holds the ids of
the books the user currently has out: a book id is added on borrow and
removed on return, so its length is the user's current borrow count.

Users are exposed via:
- GET /api/users, library://users/list
- library://users/{user_id}/history
"""

from pydantic import Field, field_validator, model_validator

from .base import MAX_FIELD_LENGTH, CatalogModel, epoch_now


class User(CatalogModel):
    """
    Represents a library user.

    The borrow limit (``max_borrow_count``) caps how many books the user may
    hold at the same time; it is checked before every borrow.
    """

    id: int = Field(
        ...,
        description="Unique user id assigned by the catalog store",
        ge=1,
        examples=[1, 42],
    )

    name: str = Field(
        ...,
        description="Full name of the user",
        min_length=1,
        max_length=MAX_FIELD_LENGTH,
        examples=["Alice Martin", "Bob Chen"],
    )

    email: str = Field(
        ...,
        description="Contact email address",
        min_length=1,
        max_length=MAX_FIELD_LENGTH,
        examples=["alice@example.com"],
    )

    phone: str = Field(
        default="",
        description="Contact phone number",
        max_length=MAX_FIELD_LENGTH,
        examples=["555-0100"],
    )

    max_borrow_count: int = Field(
        default=5,
        description="Maximum number of books the user can hold at once",
        ge=0,
        examples=[5, 1],
    )

    borrow_history: list[int] = Field(
        default_factory=list,
        description="Ids of the books the user currently holds",
    )

    create_time: int = Field(
        default_factory=epoch_now,
        description="Creation time in Unix epoch seconds",
        ge=0,
    )

    @field_validator("borrow_history")
    @classmethod
    def deduplicate_history(cls, v: list[int]) -> list[int]:
        """Drop repeated book ids while preserving order."""
        return list(dict.fromkeys(v))

    @model_validator(mode="after")
    def validate_borrow_limit(self) -> "User":
        if len(self.borrow_history) > self.max_borrow_count:
            raise ValueError(
                f"User {self.id} holds {len(self.borrow_history)} books, "
                f"more than the limit of {self.max_borrow_count}"
            )
        return self

    @property
    def current_borrow_count(self) -> int:
        """Number of books the user currently holds."""
        return len(self.borrow_history)

    @property
    def can_borrow(self) -> bool:
        """Check if the user is below the borrow limit."""
        return self.current_borrow_count < self.max_borrow_count

    def add_borrowed_book(self, book_id: int) -> None:
        """Record that the user now holds ``book_id`` (duplicates are ignored)."""
        if book_id not in self.borrow_history:
            self.borrow_history.append(book_id)

    def remove_borrowed_book(self, book_id: int) -> None:
        """Record that the user gave ``book_id`` back."""
        if book_id in self.borrow_history:
            self.borrow_history.remove(book_id)

    def __str__(self) -> str:
        return (
            f"User[ID:{self.id}, Name:{self.name}, Email:{self.email}, "
            f"Phone:{self.phone}, Borrowed:{self.current_borrow_count}]"
        )
