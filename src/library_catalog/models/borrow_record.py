"""
Borrow record model for the Library Catalog.

One record is written per successful borrow. Records are never deleted;
the only transition is from open (``is_returned`` false, ``return_time`` 0)
to returned, and it happens at most once.
"""

from pydantic import Field, model_validator

from .base import CatalogModel, epoch_now


class BorrowRecord(CatalogModel):
    """Represents one borrow transaction."""

    record_id: int = Field(
        ...,
        description="Unique, monotonically increasing record id",
        ge=1,
    )

    user_id: int = Field(..., description="Id of the borrowing user", ge=1)

    book_id: int = Field(..., description="Id of the borrowed book", ge=1)

    borrow_time: int = Field(
        default_factory=epoch_now,
        description="Borrow time in Unix epoch seconds",
        ge=0,
    )

    return_time: int = Field(
        default=0,
        description="Return time in Unix epoch seconds, 0 while open",
        ge=0,
    )

    is_returned: bool = Field(default=False, description="Whether the book came back")

    @model_validator(mode="after")
    def validate_return_state(self) -> "BorrowRecord":
        if not self.is_returned and self.return_time != 0:
            raise ValueError(f"Open record {self.record_id} cannot have a return time")
        if self.is_returned and self.return_time < self.borrow_time:
            raise ValueError(f"Record {self.record_id} returned before it was borrowed")
        return self

    @property
    def is_open(self) -> bool:
        return not self.is_returned

    def mark_returned(self, at: int | None = None) -> None:
        """
        Close the record. Calling it on a returned record changes nothing.

        Args:
            at: Return time in epoch seconds (defaults to now). It is clamped
                so the return never precedes the borrow.
        """
        if self.is_returned:
            return

        returned_at = epoch_now() if at is None else at
        self.return_time = max(returned_at, self.borrow_time)
        self.is_returned = True

    def __str__(self) -> str:
        status = "Returned" if self.is_returned else "Borrowed"
        return (
            f"BorrowRecord[ID:{self.record_id}, User:{self.user_id}, "
            f"Book:{self.book_id}, Status:{status}]"
        )
