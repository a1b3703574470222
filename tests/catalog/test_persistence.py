"""Tests for the JSON snapshot documents."""

import json
from pathlib import Path

import pytest

from library_catalog.catalog.exceptions import PersistenceError
from library_catalog.catalog.persistence import JsonPersistence
from library_catalog.models import Book, BorrowRecord, User


def write_json(path: Path, payload) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload), encoding="utf-8")


@pytest.fixture
def sample_catalog():
    users = [
        User(id=1, name="Alice", email="a@x.com", phone="555", borrow_history=[2], create_time=1),
        User(id=4, name="Bob", email="b@x.com", create_time=2),
    ]
    books = [
        Book(id=2, title="Go", author="Rob", is_available=False, borrower_id=1,
             borrow_history=[4, 1], create_time=3),
        Book(id=3, title="Rust", author="Steve", create_time=4),
    ]
    records = [
        BorrowRecord(record_id=1, user_id=4, book_id=2, borrow_time=100, return_time=150,
                     is_returned=True),
        BorrowRecord(record_id=2, user_id=1, book_id=2, borrow_time=200),
    ]
    return users, books, records


class TestSave:
    """Test writing the three documents."""

    def test_save_writes_camel_case_arrays(self, persistence: JsonPersistence, sample_catalog):
        persistence.save(*sample_catalog)

        users = json.loads(persistence.users_path.read_text(encoding="utf-8"))
        books = json.loads(persistence.books_path.read_text(encoding="utf-8"))
        records = json.loads(persistence.records_path.read_text(encoding="utf-8"))

        assert [u["id"] for u in users] == [1, 4]
        assert users[0]["maxBorrowCount"] == 5
        assert users[0]["borrowHistory"] == [2]
        assert books[0]["isAvailable"] is False
        assert books[0]["borrowerId"] == 1
        assert records[1] == {
            "recordId": 2,
            "userId": 1,
            "bookId": 2,
            "borrowTime": 200,
            "returnTime": 0,
            "isReturned": False,
        }

    def test_documents_are_indented(self, persistence: JsonPersistence, sample_catalog):
        persistence.save(*sample_catalog)

        assert persistence.users_path.read_text(encoding="utf-8").startswith('[\n  {\n    "id"')

    def test_no_temporary_files_left(self, persistence: JsonPersistence, sample_catalog):
        persistence.save(*sample_catalog)
        persistence.save(*sample_catalog)

        names = sorted(p.name for p in persistence.users_path.parent.iterdir())
        assert names == ["books.json", "records.json", "users.json"]

    def test_empty_collections(self, persistence: JsonPersistence):
        persistence.save([], [], [])

        assert json.loads(persistence.books_path.read_text(encoding="utf-8")) == []

    def test_write_failure_raises(self, tmp_path: Path):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("", encoding="utf-8")
        persistence = JsonPersistence(
            blocker / "users.json", blocker / "books.json", blocker / "records.json"
        )

        with pytest.raises(PersistenceError, match="Failed to write"):
            persistence.save([], [], [])


class TestLoad:
    """Test reading the documents back."""

    def test_missing_files_mean_empty_catalog(self, persistence: JsonPersistence):
        loaded = persistence.load()

        assert loaded.users == []
        assert loaded.books == []
        assert loaded.records == []
        assert (loaded.next_user_id, loaded.next_book_id, loaded.next_record_id) == (1, 1, 1)

    def test_blank_file_is_empty(self, persistence: JsonPersistence):
        write_json(persistence.books_path, [])
        persistence.users_path.write_text("  \n", encoding="utf-8")

        loaded = persistence.load()

        assert loaded.users == []
        assert loaded.books == []

    def test_round_trip(self, persistence: JsonPersistence, sample_catalog):
        users, books, records = sample_catalog
        persistence.save(users, books, records)

        loaded = persistence.load()

        assert loaded.users == users
        assert loaded.books == books
        assert loaded.records == records

    def test_next_ids_exceed_stored_ids(self, persistence: JsonPersistence, sample_catalog):
        persistence.save(*sample_catalog)

        loaded = persistence.load()

        assert loaded.next_user_id == 5
        assert loaded.next_book_id == 4
        assert loaded.next_record_id == 3

    def test_next_ids_count_referenced_ids(self, persistence: JsonPersistence):
        """A deleted user still named by a borrow record keeps its id reserved."""
        write_json(persistence.users_path, [{"id": 1, "name": "Alice", "email": "a@x.com"}])
        write_json(persistence.books_path, [{"id": 1, "title": "Go", "author": "Rob",
                                             "borrowHistory": [1, 6]}])
        write_json(persistence.records_path, [
            {"recordId": 1, "userId": 6, "bookId": 9, "borrowTime": 10, "returnTime": 20,
             "isReturned": True},
        ])

        loaded = persistence.load()

        assert loaded.next_user_id == 7
        assert loaded.next_book_id == 10

    def test_statistics_rebuilt_from_records(self, persistence: JsonPersistence,
                                             sample_catalog):
        persistence.save(*sample_catalog)

        loaded = persistence.load()

        assert loaded.statistics.book_popularity == {2: 2}
        assert loaded.statistics.user_activity == {4: 1, 1: 1}

    def test_missing_optional_fields_take_defaults(self, persistence: JsonPersistence):
        write_json(persistence.books_path, [{"id": 1, "title": "Go", "author": "Rob"}])

        (book,) = persistence.load().books

        assert book.is_available is True
        assert book.category == ""

    def test_invalid_json_raises(self, persistence: JsonPersistence):
        persistence.users_path.parent.mkdir(parents=True, exist_ok=True)
        persistence.users_path.write_text("[{not json", encoding="utf-8")

        with pytest.raises(PersistenceError, match="Corrupt snapshot"):
            persistence.load()

    def test_invalid_entity_raises(self, persistence: JsonPersistence):
        write_json(persistence.books_path, [
            {"id": 1, "title": "Go", "author": "Rob", "isAvailable": True, "borrowerId": 3},
        ])

        with pytest.raises(PersistenceError):
            persistence.load()

    def test_duplicate_ids_raise(self, persistence: JsonPersistence):
        write_json(persistence.users_path, [
            {"id": 1, "name": "Alice", "email": "a@x.com"},
            {"id": 1, "name": "Bob", "email": "b@x.com"},
        ])

        with pytest.raises(PersistenceError, match="Duplicate user ids"):
            persistence.load()
