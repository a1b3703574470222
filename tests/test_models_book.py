"""Tests for the Book model."""

import pytest
from pydantic import ValidationError

from library_catalog.models import Book


@pytest.fixture
def book() -> Book:
    return Book(
        id=1,
        title="The Go Programming Language",
        author="Alan Donovan",
        category="Computing",
        keywords="programming,golang",
        description="Concurrency with goroutines",
        create_time=10,
    )


class TestBookModel:
    """Test availability rules and keyword matching."""

    def test_defaults(self):
        book = Book(id=3, title="Go", author="Rob")

        assert book.is_available is True
        assert book.borrower_id == 0
        assert book.borrow_history == []
        assert book.category == ""

    def test_json_shape(self, book: Book):
        assert book.to_json_dict() == {
            "id": 1,
            "title": "The Go Programming Language",
            "author": "Alan Donovan",
            "category": "Computing",
            "keywords": "programming,golang",
            "description": "Concurrency with goroutines",
            "isAvailable": True,
            "borrowerId": 0,
            "borrowHistory": [],
            "createTime": 10,
        }

    @pytest.mark.parametrize(
        ("is_available", "borrower_id"),
        [(True, 4), (False, 0)],
    )
    def test_availability_must_match_borrower(self, is_available: bool, borrower_id: int):
        with pytest.raises(ValidationError, match="inconsistent"):
            Book(
                id=1,
                title="Go",
                author="Rob",
                is_available=is_available,
                borrower_id=borrower_id,
            )

    @pytest.mark.parametrize("field", ["title", "author"])
    def test_required_text_cannot_be_empty(self, field: str):
        data = {"id": 1, "title": "Go", "author": "Rob"}
        data[field] = ""

        with pytest.raises(ValidationError):
            Book(**data)

    def test_check_out_and_in(self, book: Book):
        book.check_out(5)

        assert book.is_available is False
        assert book.borrower_id == 5
        assert book.borrow_history == [5]

        book.check_in()

        assert book.is_available is True
        assert book.borrower_id == 0
        # History is permanent
        assert book.borrow_history == [5]

        book.check_out(6)
        assert book.borrow_history == [5, 6]

    def test_check_out_twice_raises(self, book: Book):
        book.check_out(5)

        with pytest.raises(ValueError, match="already borrowed by user 5"):
            book.check_out(6)

        assert book.borrower_id == 5
        assert book.borrow_history == [5]

    @pytest.mark.parametrize("keyword", ["go programming", "DONOVAN", "comput", "GoLang"])
    def test_matches_keyword(self, book: Book, keyword: str):
        assert book.matches_keyword(keyword)

    def test_description_is_not_searched(self, book: Book):
        assert not book.matches_keyword("goroutines")

    def test_str(self, book: Book):
        assert str(book) == (
            "Book[ID:1, Title:The Go Programming Language, Author:Alan Donovan, "
            "Category:Computing, Available:Yes]"
        )
