"""
Book model for the Library Catalog.

Each book is a single copy: it is either on the shelf (``is_available``) or
held by exactly one user (``borrower_id``). ``borrow_history`` is the
append-only list of every user id that has ever borrowed the book.
"""

from pydantic import Field, model_validator

from .base import MAX_FIELD_LENGTH, CatalogModel, epoch_now


class Book(CatalogModel):
    """
    Represents a book in the catalog.

    ``is_available`` and ``borrower_id`` always agree: a book is available
    exactly when nobody holds it (``borrower_id == 0``).
    """

    id: int = Field(
        ...,
        description="Unique book id assigned by the catalog store",
        ge=1,
        examples=[1, 17],
    )

    title: str = Field(
        ...,
        description="Title of the book",
        min_length=1,
        max_length=MAX_FIELD_LENGTH,
        examples=["The Go Programming Language"],
    )

    author: str = Field(
        ...,
        description="Author name(s)",
        min_length=1,
        max_length=MAX_FIELD_LENGTH,
        examples=["Alan Donovan, Brian Kernighan"],
    )

    category: str = Field(default="", description="Shelf category", examples=["Computing"])

    keywords: str = Field(
        default="",
        description="Free-form comma separated keywords",
        examples=["programming,go"],
    )

    description: str = Field(default="", description="Short description of the book")

    is_available: bool = Field(default=True, description="Whether the book is on the shelf")

    borrower_id: int = Field(
        default=0,
        description="Id of the user holding the book, 0 when available",
        ge=0,
    )

    borrow_history: list[int] = Field(
        default_factory=list,
        description="Every user id that has borrowed this book, in borrow order",
    )

    create_time: int = Field(
        default_factory=epoch_now,
        description="Creation time in Unix epoch seconds",
        ge=0,
    )

    @model_validator(mode="after")
    def validate_availability(self) -> "Book":
        """Availability must match the absence of a borrower."""
        if self.is_available != (self.borrower_id == 0):
            raise ValueError(
                f"Book {self.id} is inconsistent: isAvailable={self.is_available} "
                f"with borrowerId={self.borrower_id}"
            )
        return self

    def check_out(self, user_id: int) -> None:
        """
        Lend the book to ``user_id`` and append them to the borrow history.

        Raises:
            ValueError: If the book is already out
        """
        if not self.is_available:
            raise ValueError(f"Book {self.id} is already borrowed by user {self.borrower_id}")

        self.is_available = False
        self.borrower_id = user_id
        self.borrow_history.append(user_id)

    def check_in(self) -> None:
        """Put the book back on the shelf. The borrow history is kept."""
        self.is_available = True
        self.borrower_id = 0

    def matches_keyword(self, keyword: str) -> bool:
        """Case-insensitive substring match on title, author, category or keywords."""
        needle = keyword.lower()
        return any(
            needle in field.lower()
            for field in (self.title, self.author, self.category, self.keywords)
        )

    def __str__(self) -> str:
        available = "Yes" if self.is_available else "No"
        return (
            f"Book[ID:{self.id}, Title:{self.title}, Author:{self.author}, "
            f"Category:{self.category}, Available:{available}]"
        )
