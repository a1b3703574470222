"""Tests for first-run sample data and store bootstrap."""

from pathlib import Path

import pytest

from library_catalog.catalog.exceptions import PersistenceError
from library_catalog.catalog.sample_data import SAMPLE_BOOKS, SAMPLE_USERS, load_sample_data
from library_catalog.catalog.store import CatalogStore, get_store, open_store, reset_store
from library_catalog.config import CatalogConfig


class TestLoadSampleData:
    """Test seeding an empty catalog."""

    def test_seeds_empty_catalog(self, store: CatalogStore):
        assert load_sample_data(store) is True

        users = store.get_all_users()
        books = store.get_all_books()
        assert len(users) == len(SAMPLE_USERS) == 3
        assert len(books) == len(SAMPLE_BOOKS) == 5
        assert [u.id for u in users] == [1, 2, 3]
        assert all(book.is_available for book in books)
        assert store.get_all_borrow_records() == []

    def test_seeding_runs_once(self, store: CatalogStore):
        load_sample_data(store)

        assert load_sample_data(store) is False
        assert len(store.get_all_users()) == 3

    def test_not_seeded_when_users_exist(self, store: CatalogStore):
        store.add_user("Alice", "a@x.com", "555")

        assert load_sample_data(store) is False
        assert store.get_all_books() == []


class TestOpenStore:
    """Test building the store from configuration."""

    def test_sample_data_enabled(self, data_dir: Path):
        store = open_store(CatalogConfig(load_sample_data=True))

        assert store.get_totals() == {"totalUsers": 3, "totalBooks": 5, "totalRecords": 0}
        assert (data_dir / "users.json").exists()

    def test_sample_data_disabled(self):
        store = open_store(CatalogConfig(load_sample_data=False))

        assert store.is_empty()

    def test_existing_catalog_is_loaded(self):
        first = open_store(CatalogConfig())
        first.add_user("Alice", "a@x.com", "555")

        second = open_store(CatalogConfig(load_sample_data=True))

        assert [u.name for u in second.get_all_users()] == ["Alice"]
        assert second.get_all_books() == []

    def test_corrupt_catalog_stops_startup(self, data_dir: Path):
        data_dir.mkdir(parents=True, exist_ok=True)
        (data_dir / "records.json").write_text("not json", encoding="utf-8")

        with pytest.raises(PersistenceError):
            open_store(CatalogConfig())

    def test_borrow_limit_from_config(self):
        store = open_store(CatalogConfig(default_max_borrow_count=2))

        user_id = store.add_user("Alice", "a@x.com", "555")

        assert store.find_user(user_id).max_borrow_count == 2


class TestGlobalStore:
    """Test the process-wide store instance."""

    def test_get_store_returns_same_instance(self):
        assert get_store() is get_store()

    def test_reset_store(self):
        first = get_store()
        reset_store()

        assert get_store() is not first
