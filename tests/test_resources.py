"""Tests for the library:// MCP resources."""

import pytest
from fastmcp.exceptions import ResourceError

from library_catalog.catalog.store import CatalogStore
from library_catalog.resources import all_resources
from library_catalog.resources.books import get_book_handler, list_books_handler
from library_catalog.resources.stats import get_popular_handler, get_summary_handler
from library_catalog.resources.users import get_user_history_handler, list_users_handler


@pytest.fixture
def catalog(global_store: CatalogStore) -> CatalogStore:
    """Two users, three books; Go borrowed twice, Dune once and still out."""
    global_store.add_user("Alice", "a@x.com", "555")
    global_store.add_user("Bob", "b@x.com", "556")
    global_store.add_book("Go", "Rob")
    global_store.add_book("Dune", "Frank Herbert")
    global_store.add_book("Rust", "Steve")
    global_store.borrow_book(1, 1)
    global_store.return_book(1, 1)
    global_store.borrow_book(2, 1)
    global_store.return_book(2, 1)
    global_store.borrow_book(1, 2)
    return global_store


class TestBookResources:
    """Test library://books/*."""

    async def test_list_books(self, catalog: CatalogStore):
        result = await list_books_handler()

        assert result["total"] == 3
        assert result["available"] == 2
        assert [b["title"] for b in result["books"]] == ["Go", "Dune", "Rust"]

    async def test_get_book(self, catalog: CatalogStore):
        result = await get_book_handler("1")

        assert result["book"]["title"] == "Go"
        assert result["book"]["borrowHistory"] == [1, 2]
        assert [r["userId"] for r in result["records"]] == [1, 2]

    async def test_unknown_book(self, catalog: CatalogStore):
        with pytest.raises(ResourceError, match="Book not found: 42"):
            await get_book_handler("42")

    @pytest.mark.parametrize("book_id", ["abc", "0", "-1"])
    async def test_invalid_book_id(self, book_id: str):
        with pytest.raises(ResourceError, match="Invalid book id"):
            await get_book_handler(book_id)


class TestUserResources:
    """Test library://users/*."""

    async def test_list_users(self, catalog: CatalogStore):
        result = await list_users_handler()

        assert result["total"] == 2
        alice = result["users"][0]
        assert alice["name"] == "Alice"
        assert alice["currentBorrowCount"] == 1

    async def test_user_history_newest_first(self, catalog: CatalogStore):
        result = await get_user_history_handler("1")

        assert result["user"]["id"] == 1
        assert result["totalLoans"] == 2
        assert result["openLoans"] == 1
        assert [r["recordId"] for r in result["records"]] == [3, 1]

    async def test_unknown_user(self, catalog: CatalogStore):
        with pytest.raises(ResourceError, match="User not found: 7"):
            await get_user_history_handler("7")


class TestStatsResources:
    """Test library://stats/*."""

    async def test_summary(self, catalog: CatalogStore):
        result = await get_summary_handler()

        assert result["totalUsers"] == 2
        assert result["totalBooks"] == 3
        assert result["totalRecords"] == 3
        assert result["statistics"]["bookPopularity"] == {"1": 2, "2": 1}
        assert result["statistics"]["userActivity"] == {"1": 2, "2": 1}

    async def test_popular(self, catalog: CatalogStore):
        result = await get_popular_handler("1")

        assert result["popularBooks"] == [{"bookId": 1, "title": "Go", "borrows": 2}]
        assert result["activeUsers"] == [{"userId": 1, "name": "Alice", "borrows": 2}]
        assert sum(result["monthlyTrends"].values()) == 3

    @pytest.mark.parametrize("limit", ["0", "51", "ten"])
    async def test_popular_limit_validation(self, limit: str):
        with pytest.raises(ResourceError, match="limit"):
            await get_popular_handler(limit)


class TestResourceRegistry:
    """Test the exported resource list."""

    def test_all_resources(self):
        uris = {resource.get("uri_template", resource.get("uri")) for resource in all_resources}

        assert uris == {
            "library://books/list",
            "library://books/{book_id}",
            "library://users/list",
            "library://users/{user_id}/history",
            "library://stats/summary",
            "library://stats/popular/{limit}",
        }
        for resource in all_resources:
            assert resource["mime_type"] == "application/json"
