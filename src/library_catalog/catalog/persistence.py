"""
JSON snapshot persistence for the Library Catalog.

The catalog is stored as three independent JSON documents, one array per
entity kind (users, books, borrow records). Every mutation rewrites all
three in full; there is no append log and no embedded database.

Each document is written to a temporary sibling file and moved into place
with ``os.replace``, so a crash mid-write leaves the previous version of
that document intact. The three files are not written as one unit.

On load the next-id counters are recomputed from the data (never read from
disk) and the statistics are rebuilt by replaying every borrow record.
"""

import logging
import os
import tempfile
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pydantic import TypeAdapter, ValidationError

from ..config import CatalogConfig
from ..models import Book, BorrowRecord, User
from .exceptions import PersistenceError
from .statistics import CatalogStatistics

logger = logging.getLogger(__name__)

_USERS = TypeAdapter(list[User])
_BOOKS = TypeAdapter(list[Book])
_RECORDS = TypeAdapter(list[BorrowRecord])


@dataclass
class LoadedCatalog:
    """Everything the store needs to resume from disk."""

    users: list[User] = field(default_factory=list)
    books: list[Book] = field(default_factory=list)
    records: list[BorrowRecord] = field(default_factory=list)
    next_user_id: int = 1
    next_book_id: int = 1
    next_record_id: int = 1
    statistics: CatalogStatistics = field(default_factory=CatalogStatistics)


def _next_id(ids: Iterable[int]) -> int:
    return max(ids, default=0) + 1


class JsonPersistence:
    """Reads and writes the three snapshot documents."""

    def __init__(self, users_path: Path, books_path: Path, records_path: Path):
        self.users_path = Path(users_path)
        self.books_path = Path(books_path)
        self.records_path = Path(records_path)

    @classmethod
    def from_config(cls, config: CatalogConfig) -> "JsonPersistence":
        return cls(config.users_path, config.books_path, config.records_path)

    # ------------------------------------------------------------------ save

    def save(
        self,
        users: Iterable[User],
        books: Iterable[Book],
        records: Iterable[BorrowRecord],
    ) -> None:
        """
        Overwrite all three documents with the given collections.

        Raises:
            PersistenceError: If any document cannot be written
        """
        self._write(self.users_path, _USERS.dump_json(list(users), by_alias=True, indent=2))
        self._write(self.books_path, _BOOKS.dump_json(list(books), by_alias=True, indent=2))
        self._write(
            self.records_path, _RECORDS.dump_json(list(records), by_alias=True, indent=2)
        )
        logger.debug("Catalog snapshot written to %s", self.users_path.parent)

    def _write(self, path: Path, payload: bytes) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{path.name}.", suffix=".tmp", dir=path.parent
            )
            try:
                with os.fdopen(fd, "wb") as handle:
                    handle.write(payload)
                    handle.flush()
                    os.fsync(handle.fileno())
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise PersistenceError(f"Failed to write {path}: {e}") from e

    # ------------------------------------------------------------------ load

    def load(self) -> LoadedCatalog:
        """
        Read all three documents. A missing document is an empty collection.

        Raises:
            PersistenceError: If a document exists but cannot be read or parsed
        """
        users = self._read(self.users_path, _USERS)
        books = self._read(self.books_path, _BOOKS)
        records = self._read(self.records_path, _RECORDS)

        for kind, ids in (
            ("user", [user.id for user in users]),
            ("book", [book.id for book in books]),
            ("borrow record", [record.record_id for record in records]),
        ):
            if len(ids) != len(set(ids)):
                raise PersistenceError(f"Duplicate {kind} ids in snapshot")

        # Ids still referenced by history count as used, so a deleted
        # entity's id is not handed out again after a restart.
        user_ids = {user.id for user in users}
        user_ids.update(record.user_id for record in records)
        user_ids.update(user_id for book in books for user_id in book.borrow_history)

        book_ids = {book.id for book in books}
        book_ids.update(record.book_id for record in records)
        book_ids.update(book_id for user in users for book_id in user.borrow_history)

        loaded = LoadedCatalog(
            users=users,
            books=books,
            records=records,
            next_user_id=_next_id(user_ids),
            next_book_id=_next_id(book_ids),
            next_record_id=_next_id(record.record_id for record in records),
            statistics=CatalogStatistics.from_records(records),
        )

        logger.info(
            "Loaded %d users, %d books and %d borrow records",
            len(users),
            len(books),
            len(records),
        )
        return loaded

    def _read(self, path: Path, adapter: TypeAdapter[Any]) -> list[Any]:
        if not path.exists():
            logger.debug("No snapshot at %s, starting empty", path)
            return []

        try:
            raw = path.read_bytes()
        except OSError as e:
            raise PersistenceError(f"Failed to read {path}: {e}") from e

        if not raw.strip():
            return []

        try:
            return adapter.validate_json(raw)
        except ValidationError as e:
            raise PersistenceError(f"Corrupt snapshot {path}: {e}") from e
