"""Tests for the User model."""

import pytest
from pydantic import ValidationError

from library_catalog.models import User


class TestUserModel:
    """Test user validation and borrow bookkeeping."""

    def test_create_from_stored_shape(self):
        """Snapshot documents use camelCase keys."""
        user = User.model_validate(
            {
                "id": 7,
                "name": "Alice",
                "email": "a@x.com",
                "phone": "555",
                "maxBorrowCount": 3,
                "createTime": 1_700_000_000,
                "borrowHistory": [4, 2],
            }
        )

        assert user.id == 7
        assert user.max_borrow_count == 3
        assert user.borrow_history == [4, 2]
        assert user.create_time == 1_700_000_000

    def test_json_shape(self):
        user = User(id=1, name="Alice", email="a@x.com", phone="555", create_time=10)

        assert user.to_json_dict() == {
            "id": 1,
            "name": "Alice",
            "email": "a@x.com",
            "phone": "555",
            "maxBorrowCount": 5,
            "borrowHistory": [],
            "createTime": 10,
        }

    def test_duplicate_history_entries_are_dropped(self):
        user = User(id=1, name="Alice", email="a@x.com", borrow_history=[3, 3, 1, 3])

        assert user.borrow_history == [3, 1]

    def test_history_cannot_exceed_limit(self):
        with pytest.raises(ValidationError, match="more than the limit"):
            User(id=1, name="Alice", email="a@x.com", max_borrow_count=1, borrow_history=[1, 2])

    @pytest.mark.parametrize("field", ["name", "email"])
    def test_required_text_cannot_be_empty(self, field: str):
        data = {"id": 1, "name": "Alice", "email": "a@x.com"}
        data[field] = ""

        with pytest.raises(ValidationError):
            User(**data)

    def test_name_length_limit(self):
        User(id=1, name="n" * 255, email="a@x.com")

        with pytest.raises(ValidationError):
            User(id=1, name="n" * 256, email="a@x.com")

    def test_id_must_be_positive(self):
        with pytest.raises(ValidationError):
            User(id=0, name="Alice", email="a@x.com")

    def test_borrow_bookkeeping(self):
        user = User(id=1, name="Alice", email="a@x.com", max_borrow_count=2)

        assert user.can_borrow
        user.add_borrowed_book(10)
        user.add_borrowed_book(10)
        user.add_borrowed_book(11)

        assert user.borrow_history == [10, 11]
        assert user.current_borrow_count == 2
        assert not user.can_borrow

        user.remove_borrowed_book(10)
        user.remove_borrowed_book(99)

        assert user.borrow_history == [11]
        assert user.can_borrow

    def test_zero_limit_cannot_borrow(self):
        user = User(id=1, name="Alice", email="a@x.com", max_borrow_count=0)

        assert not user.can_borrow

    def test_str(self):
        user = User(id=1, name="Alice", email="a@x.com", phone="555", borrow_history=[2])

        assert str(user) == "User[ID:1, Name:Alice, Email:a@x.com, Phone:555, Borrowed:1]"
