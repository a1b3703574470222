"""
Catalog store for the Library Catalog.

The store is the single authority over users, books and borrow records:

1. **Entities**: creating, updating, deleting and searching users and books
2. **Borrowing**: lending a book to a user and recording the transaction
3. **Returns**: taking a book back and closing its borrow record
4. **History**: borrow records per user, per book and overall
5. **Statistics**: popularity, activity and monthly counters

Every public method runs under one re-entrant lock, including the snapshot
write, so request threads never interleave inside the store. Entities handed
out are deep copies; nothing outside the store holds a live reference.

Mutations are transactional: the in-memory state is snapshotted first and
restored if writing the JSON documents fails, so memory and disk never
diverge after an I/O error.
"""

import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

from ..config import CatalogConfig, get_config
from ..models import MAX_FIELD_LENGTH, Book, BorrowRecord, User, epoch_now
from .exceptions import (
    BusinessRuleError,
    CatalogError,
    InvalidInputError,
    NotFoundError,
    PersistenceError,
)
from .persistence import JsonPersistence
from .statistics import CatalogStatistics

logger = logging.getLogger(__name__)


@dataclass
class _Snapshot:
    users: dict[int, User]
    books: dict[int, Book]
    records: list[BorrowRecord]
    next_user_id: int
    next_book_id: int
    next_record_id: int
    statistics: CatalogStatistics


class CatalogStore:
    """
    Owns the catalog collections and the next-id counters.

    Operations that return ``bool`` report every failure (unknown id,
    invalid input, broken circulation rule, failed write) as ``False`` and
    never raise. ``checkout`` / ``checkin`` run the same transactions but
    raise ``NotFoundError`` or ``BusinessRuleError`` with the reason, and
    ``check_borrow`` / ``check_return`` explain a refusal without mutating.
    """

    def __init__(
        self,
        persistence: JsonPersistence,
        *,
        default_max_borrow_count: int = 5,
        max_field_length: int = MAX_FIELD_LENGTH,
        clock: Callable[[], int] = epoch_now,
    ):
        if not 1 <= max_field_length <= MAX_FIELD_LENGTH:
            raise ValueError(
                f"max_field_length must be between 1 and {MAX_FIELD_LENGTH}: {max_field_length}"
            )

        self._persistence = persistence
        self.default_max_borrow_count = default_max_borrow_count
        self.max_field_length = max_field_length
        self._clock = clock
        self._lock = threading.RLock()

        self._users: dict[int, User] = {}
        self._books: dict[int, Book] = {}
        self._records: list[BorrowRecord] = []
        self._statistics = CatalogStatistics()
        self._next_user_id = 1
        self._next_book_id = 1
        self._next_record_id = 1

    @classmethod
    def from_config(cls, config: CatalogConfig) -> "CatalogStore":
        """Build a store over the configured data directory (not loaded yet)."""
        return cls(
            JsonPersistence.from_config(config),
            default_max_borrow_count=config.default_max_borrow_count,
            max_field_length=config.max_field_length,
        )

    # ------------------------------------------------------------------
    # Validation and transactions
    # ------------------------------------------------------------------

    def _require_text(self, value: Any, field_name: str) -> None:
        if not isinstance(value, str) or not value:
            raise InvalidInputError(f"{field_name} must not be empty")
        self._limit_length(value, field_name)

    def _optional_text(self, value: Any, field_name: str, *, limited: bool = False) -> None:
        if not isinstance(value, str):
            raise InvalidInputError(f"{field_name} must be a string")
        if limited:
            self._limit_length(value, field_name)

    def _limit_length(self, value: str, field_name: str) -> None:
        if len(value) > self.max_field_length:
            raise InvalidInputError(
                f"{field_name} must be at most {self.max_field_length} characters"
            )

    def _validate_user_fields(self, name: Any, email: Any, phone: Any) -> None:
        self._require_text(name, "name")
        self._require_text(email, "email")
        self._optional_text(phone, "phone", limited=True)

    def _validate_book_fields(
        self, title: Any, author: Any, category: Any, keywords: Any, description: Any
    ) -> None:
        self._require_text(title, "title")
        self._require_text(author, "author")
        self._optional_text(category, "category")
        self._optional_text(keywords, "keywords")
        self._optional_text(description, "description")

    def _limit_fits(self, user: User, max_borrow_count: Any) -> bool:
        if (
            isinstance(max_borrow_count, int)
            and not isinstance(max_borrow_count, bool)
            and max_borrow_count >= user.current_borrow_count
        ):
            return True
        logger.info(
            "Borrow limit %s rejected for user %d holding %d books",
            max_borrow_count,
            user.id,
            user.current_borrow_count,
        )
        return False

    def _snapshot(self) -> _Snapshot:
        return _Snapshot(
            users={user_id: user.model_copy(deep=True) for user_id, user in self._users.items()},
            books={book_id: book.model_copy(deep=True) for book_id, book in self._books.items()},
            records=[record.model_copy(deep=True) for record in self._records],
            next_user_id=self._next_user_id,
            next_book_id=self._next_book_id,
            next_record_id=self._next_record_id,
            statistics=self._statistics.copy(),
        )

    def _restore(self, snapshot: _Snapshot) -> None:
        self._users = snapshot.users
        self._books = snapshot.books
        self._records = snapshot.records
        self._next_user_id = snapshot.next_user_id
        self._next_book_id = snapshot.next_book_id
        self._next_record_id = snapshot.next_record_id
        self._statistics = snapshot.statistics

    @contextmanager
    def _mutation(self, action: str) -> Iterator[None]:
        """
        Apply a change and persist it, or roll everything back.

        Must be entered with the lock held.

        Raises:
            PersistenceError: If the snapshot could not be written; the
                in-memory state is back to what it was before ``action``
        """
        snapshot = self._snapshot()
        try:
            yield
            self._persistence.save(self._users.values(), self._books.values(), self._records)
        except PersistenceError:
            self._restore(snapshot)
            logger.exception("Persisting catalog failed during %s, change rolled back", action)
            raise
        except Exception:
            self._restore(snapshot)
            raise

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self) -> None:
        """
        Write the full snapshot of all three collections.

        Raises:
            PersistenceError: If a document cannot be written
        """
        with self._lock:
            self._persistence.save(self._users.values(), self._books.values(), self._records)

    def load(self) -> None:
        """
        Replace the in-memory catalog with the snapshot on disk.

        Counters are recomputed from the stored ids and statistics are
        rebuilt from the borrow records.

        Raises:
            PersistenceError: If a document is unreadable or corrupt
        """
        loaded = self._persistence.load()
        with self._lock:
            self._users = {user.id: user for user in loaded.users}
            self._books = {book.id: book for book in loaded.books}
            self._records = loaded.records
            self._next_user_id = loaded.next_user_id
            self._next_book_id = loaded.next_book_id
            self._next_record_id = loaded.next_record_id
            self._statistics = loaded.statistics
            self._warn_inconsistencies()

    def _warn_inconsistencies(self) -> None:
        for book in self._books.values():
            if book.is_available:
                continue
            borrower = self._users.get(book.borrower_id)
            if borrower is None:
                logger.warning(
                    "Book %d is held by unknown user %d", book.id, book.borrower_id
                )
            elif book.id not in borrower.borrow_history:
                logger.warning(
                    "Book %d is held by user %d but missing from their borrow list",
                    book.id,
                    borrower.id,
                )

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def add_user(
        self, name: str, email: str, phone: str, max_borrow_count: int | None = None
    ) -> int:
        """
        Create a user and return the new user id.

        Raises:
            InvalidInputError: If name or email is empty, or a field is too long
            PersistenceError: If the snapshot could not be written
        """
        self._validate_user_fields(name, email, phone)
        limit = self.default_max_borrow_count if max_borrow_count is None else max_borrow_count
        if not isinstance(limit, int) or limit < 0:
            raise InvalidInputError("max_borrow_count must be a non-negative integer")

        with self._lock, self._mutation("add user"):
            user = User(
                id=self._next_user_id,
                name=name,
                email=email,
                phone=phone,
                max_borrow_count=limit,
                create_time=self._clock(),
            )
            self._next_user_id += 1
            self._users[user.id] = user

        logger.info("Added user %d (%s)", user.id, user.name)
        return user.id

    def delete_user(self, user_id: int) -> bool:
        """Delete a user who holds no books."""
        with self._lock:
            user = self._users.get(user_id)
            if user is None:
                logger.info("Delete rejected: user %s not found", user_id)
                return False
            if user.current_borrow_count > 0:
                logger.info(
                    "Delete rejected: user %d still holds %d books",
                    user_id,
                    user.current_borrow_count,
                )
                return False

            try:
                with self._mutation("delete user"):
                    del self._users[user_id]
            except PersistenceError:
                return False

        logger.info("Deleted user %d", user_id)
        return True

    def update_user(
        self,
        user_id: int,
        name: str,
        email: str,
        phone: str,
        max_borrow_count: int | None = None,
    ) -> bool:
        """
        Overwrite a user's name, email and phone, and optionally the borrow limit.

        Everything is checked before anything changes: a limit below the
        number of books the user holds rejects the whole update.
        """
        try:
            self._validate_user_fields(name, email, phone)
        except InvalidInputError as e:
            logger.info("Update of user %s rejected: %s", user_id, e)
            return False

        with self._lock:
            user = self._users.get(user_id)
            if user is None:
                logger.info("Update rejected: user %s not found", user_id)
                return False
            if max_borrow_count is not None and not self._limit_fits(user, max_borrow_count):
                return False

            try:
                with self._mutation("update user"):
                    user.name = name
                    user.email = email
                    user.phone = phone
                    if max_borrow_count is not None:
                        user.max_borrow_count = max_borrow_count
            except PersistenceError:
                return False

        logger.info("Updated user %d", user_id)
        return True

    def set_max_borrow_count(self, user_id: int, max_borrow_count: int) -> bool:
        """Change a user's borrow limit. It cannot drop below the books they hold."""
        with self._lock:
            user = self._users.get(user_id)
            if user is None:
                return False
            if not self._limit_fits(user, max_borrow_count):
                return False

            try:
                with self._mutation("set borrow limit"):
                    user.max_borrow_count = max_borrow_count
            except PersistenceError:
                return False

        logger.info("User %d borrow limit set to %d", user_id, max_borrow_count)
        return True

    def find_user(self, user_id: int) -> User | None:
        with self._lock:
            user = self._users.get(user_id)
            return user.model_copy(deep=True) if user is not None else None

    def search_users(self, keyword: str) -> list[User]:
        """
        Users whose name contains ``keyword`` (case-insensitive) or whose
        email contains it (case-sensitive).
        """
        needle = keyword.lower()
        with self._lock:
            return [
                user.model_copy(deep=True)
                for user in self._users.values()
                if needle in user.name.lower() or keyword in user.email
            ]

    def get_all_users(self) -> list[User]:
        with self._lock:
            return [user.model_copy(deep=True) for user in self._users.values()]

    # ------------------------------------------------------------------
    # Books
    # ------------------------------------------------------------------

    def add_book(
        self,
        title: str,
        author: str,
        category: str = "",
        keywords: str = "",
        description: str = "",
    ) -> int:
        """
        Create a book and return the new book id.

        Raises:
            InvalidInputError: If title or author is empty or too long
            PersistenceError: If the snapshot could not be written
        """
        self._validate_book_fields(title, author, category, keywords, description)

        with self._lock, self._mutation("add book"):
            book = Book(
                id=self._next_book_id,
                title=title,
                author=author,
                category=category,
                keywords=keywords,
                description=description,
                create_time=self._clock(),
            )
            self._next_book_id += 1
            self._books[book.id] = book

        logger.info("Added book %d (%s)", book.id, book.title)
        return book.id

    def delete_book(self, book_id: int) -> bool:
        """Delete a book that is not currently borrowed."""
        with self._lock:
            book = self._books.get(book_id)
            if book is None:
                logger.info("Delete rejected: book %s not found", book_id)
                return False
            if not book.is_available:
                logger.info(
                    "Delete rejected: book %d is borrowed by user %d", book_id, book.borrower_id
                )
                return False

            try:
                with self._mutation("delete book"):
                    del self._books[book_id]
            except PersistenceError:
                return False

        logger.info("Deleted book %d", book_id)
        return True

    def update_book(
        self,
        book_id: int,
        title: str,
        author: str,
        category: str = "",
        keywords: str = "",
        description: str = "",
    ) -> bool:
        """Overwrite a book's descriptive fields. Circulation state is untouched."""
        try:
            self._validate_book_fields(title, author, category, keywords, description)
        except InvalidInputError as e:
            logger.info("Update of book %s rejected: %s", book_id, e)
            return False

        with self._lock:
            book = self._books.get(book_id)
            if book is None:
                logger.info("Update rejected: book %s not found", book_id)
                return False

            try:
                with self._mutation("update book"):
                    book.title = title
                    book.author = author
                    book.category = category
                    book.keywords = keywords
                    book.description = description
            except PersistenceError:
                return False

        logger.info("Updated book %d", book_id)
        return True

    def find_book(self, book_id: int) -> Book | None:
        with self._lock:
            book = self._books.get(book_id)
            return book.model_copy(deep=True) if book is not None else None

    def search_books(self, keyword: str) -> list[Book]:
        """Books whose title, author, category or keywords contain ``keyword``."""
        with self._lock:
            return [
                book.model_copy(deep=True)
                for book in self._books.values()
                if book.matches_keyword(keyword)
            ]

    def get_all_books(self) -> list[Book]:
        with self._lock:
            return [book.model_copy(deep=True) for book in self._books.values()]

    # ------------------------------------------------------------------
    # Circulation
    # ------------------------------------------------------------------

    def _find_open_record(self, user_id: int, book_id: int) -> BorrowRecord | None:
        # First match in stored order
        for record in self._records:
            if record.user_id == user_id and record.book_id == book_id and record.is_open:
                return record
        return None

    def _borrow_refusal(self, user_id: int, book_id: int) -> CatalogError | None:
        user = self._users.get(user_id)
        if user is None:
            return NotFoundError(f"User {user_id} not found")
        book = self._books.get(book_id)
        if book is None:
            return NotFoundError(f"Book {book_id} not found")
        if not user.can_borrow:
            return BusinessRuleError(
                f"User {user_id} has reached the borrow limit of {user.max_borrow_count}"
            )
        if not book.is_available:
            return BusinessRuleError(f"Book {book_id} is not available")
        if self._find_open_record(user_id, book_id) is not None:
            return BusinessRuleError(
                f"User {user_id} already has an open borrow record for book {book_id}"
            )
        return None

    def _return_refusal(self, user_id: int, book_id: int) -> CatalogError | None:
        if user_id not in self._users:
            return NotFoundError(f"User {user_id} not found")
        book = self._books.get(book_id)
        if book is None:
            return NotFoundError(f"Book {book_id} not found")
        if book.is_available:
            return BusinessRuleError(f"Book {book_id} is not borrowed")
        if book.borrower_id != user_id:
            return BusinessRuleError(
                f"Book {book_id} is borrowed by user {book.borrower_id}, not user {user_id}"
            )
        return None

    def check_borrow(self, user_id: int, book_id: int) -> str | None:
        """Return why ``borrow_book(user_id, book_id)`` would fail, or None."""
        with self._lock:
            error = self._borrow_refusal(user_id, book_id)
            return str(error) if error is not None else None

    def check_return(self, user_id: int, book_id: int) -> str | None:
        """Return why ``return_book(user_id, book_id)`` would fail, or None."""
        with self._lock:
            error = self._return_refusal(user_id, book_id)
            return str(error) if error is not None else None

    def checkout(self, user_id: int, book_id: int) -> BorrowRecord:
        """
        Lend a book to a user and return the new borrow record.

        On success the book is marked unavailable with ``borrower_id =
        user_id``, the user is appended to the book's history, the book id
        joins the user's borrow list, a new open record is created and the
        statistics are bumped.

        Raises:
            NotFoundError: If the user or the book does not exist
            BusinessRuleError: If the user is at their limit or the book is out
            PersistenceError: If the snapshot could not be written
        """
        with self._lock:
            error = self._borrow_refusal(user_id, book_id)
            if error is not None:
                logger.info("Borrow rejected: %s", error)
                raise error

            user = self._users[user_id]
            book = self._books[book_id]
            with self._mutation("borrow book"):
                book.check_out(user_id)
                user.add_borrowed_book(book_id)
                record = BorrowRecord(
                    record_id=self._next_record_id,
                    user_id=user_id,
                    book_id=book_id,
                    borrow_time=self._clock(),
                )
                self._next_record_id += 1
                self._records.append(record)
                self._statistics.record_borrow(record)

            logger.info(
                "Borrowed book %d to user %d (record %d)", book_id, user_id, record.record_id
            )
            return record.model_copy(deep=True)

    def checkin(self, user_id: int, book_id: int) -> BorrowRecord | None:
        """
        Take a book back from the user holding it.

        The book becomes available, leaves the user's borrow list, and the
        first open record for the pair is closed with the current time and
        returned. ``None`` means no open record existed for the pair.

        Raises:
            NotFoundError: If the user or the book does not exist
            BusinessRuleError: If the book is on the shelf or held by someone else
            PersistenceError: If the snapshot could not be written
        """
        with self._lock:
            error = self._return_refusal(user_id, book_id)
            if error is not None:
                logger.info("Return rejected: %s", error)
                raise error

            user = self._users[user_id]
            book = self._books[book_id]
            with self._mutation("return book"):
                book.check_in()
                user.remove_borrowed_book(book_id)
                record = self._find_open_record(user_id, book_id)
                if record is not None:
                    record.mark_returned(self._clock())
                else:
                    logger.warning(
                        "No open borrow record for user %d and book %d", user_id, book_id
                    )

            logger.info("User %d returned book %d", user_id, book_id)
            return record.model_copy(deep=True) if record is not None else None

    def borrow_book(self, user_id: int, book_id: int) -> bool:
        """Lend a book to a user. See ``checkout``."""
        try:
            self.checkout(user_id, book_id)
        except CatalogError:
            return False
        return True

    def return_book(self, user_id: int, book_id: int) -> bool:
        """Take a book back. Returning a book held by someone else is refused."""
        try:
            self.checkin(user_id, book_id)
        except CatalogError:
            return False
        return True

    def get_user_borrow_history(self, user_id: int) -> list[BorrowRecord]:
        with self._lock:
            return [
                record.model_copy(deep=True)
                for record in self._records
                if record.user_id == user_id
            ]

    def get_book_borrow_history(self, book_id: int) -> list[BorrowRecord]:
        with self._lock:
            return [
                record.model_copy(deep=True)
                for record in self._records
                if record.book_id == book_id
            ]

    def get_all_borrow_records(self) -> list[BorrowRecord]:
        with self._lock:
            return [record.model_copy(deep=True) for record in self._records]

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def get_statistics(self) -> CatalogStatistics:
        """A detached copy of the current counters."""
        with self._lock:
            return self._statistics.copy()

    def get_statistics_json(self) -> dict[str, dict[str, int]]:
        with self._lock:
            return self._statistics.serialize()

    def get_totals(self) -> dict[str, int]:
        with self._lock:
            return {
                "totalUsers": len(self._users),
                "totalBooks": len(self._books),
                "totalRecords": len(self._records),
            }

    def is_empty(self) -> bool:
        with self._lock:
            return not self._users and not self._books


# Global store instance, built from configuration on first use
_store: CatalogStore | None = None
_store_lock = threading.Lock()


def open_store(config: CatalogConfig) -> CatalogStore:
    """
    Build a store for ``config``, load it from disk and seed sample data.

    Raises:
        PersistenceError: If the snapshot on disk is unreadable or corrupt
    """
    from .sample_data import load_sample_data

    store = CatalogStore.from_config(config)
    store.load()
    if config.load_sample_data:
        load_sample_data(store)
    return store


def get_store() -> CatalogStore:
    """Get the global catalog store, opening it on first call."""
    global _store  # noqa: PLW0603 - Singleton pattern for the catalog store

    with _store_lock:
        if _store is None:
            _store = open_store(get_config())
        return _store


def reset_store() -> None:
    """Drop the global store (useful for testing)."""
    global _store  # noqa: PLW0603 - Singleton pattern for the catalog store

    with _store_lock:
        _store = None
