"""
Circulation statistics for the Library Catalog.

Three counters are derived from borrow records:

- book popularity: book id -> number of borrows
- user activity: user id -> number of borrows
- monthly stats: "YYYY-MM" (local calendar month of the borrow) -> number of borrows

They are never persisted. The store bumps them once per successful borrow
and rebuilds them from the full record list on load.
"""

from collections.abc import Iterable
from datetime import datetime

from ..models import BorrowRecord


def _month_key(timestamp: int) -> str:
    return datetime.fromtimestamp(timestamp).strftime("%Y-%m")


def _top(counter: dict[int, int], count: int) -> list[tuple[int, int]]:
    # Highest count first, ties broken by ascending id
    ranked = sorted(counter.items(), key=lambda item: (-item[1], item[0]))
    return ranked[: max(count, 0)]


class CatalogStatistics:
    """Reporting counters rebuilt from borrow records."""

    def __init__(self) -> None:
        self.book_popularity: dict[int, int] = {}
        self.user_activity: dict[int, int] = {}
        self.monthly_stats: dict[str, int] = {}

    @classmethod
    def from_records(cls, records: Iterable[BorrowRecord]) -> "CatalogStatistics":
        """Replay records in stored order into a fresh set of counters."""
        statistics = cls()
        for record in records:
            statistics.record_borrow(record)
        return statistics

    def clear(self) -> None:
        self.book_popularity.clear()
        self.user_activity.clear()
        self.monthly_stats.clear()

    def update_book_popularity(self, book_id: int) -> None:
        self.book_popularity[book_id] = self.book_popularity.get(book_id, 0) + 1

    def update_user_activity(self, user_id: int) -> None:
        self.user_activity[user_id] = self.user_activity.get(user_id, 0) + 1

    def update_monthly_stats(self, timestamp: int) -> None:
        key = _month_key(timestamp)
        self.monthly_stats[key] = self.monthly_stats.get(key, 0) + 1

    def record_borrow(self, record: BorrowRecord) -> None:
        """Count one borrow in all three counters."""
        self.update_book_popularity(record.book_id)
        self.update_user_activity(record.user_id)
        self.update_monthly_stats(record.borrow_time)

    def get_most_popular_books(self, count: int = 10) -> list[tuple[int, int]]:
        """``(book_id, borrows)`` pairs, most borrowed first, ties by ascending id."""
        return _top(self.book_popularity, count)

    def get_most_active_users(self, count: int = 10) -> list[tuple[int, int]]:
        """``(user_id, borrows)`` pairs, most active first, ties by ascending id."""
        return _top(self.user_activity, count)

    def get_monthly_trends(self) -> dict[str, int]:
        """Borrows per month in chronological order."""
        return dict(sorted(self.monthly_stats.items()))

    def copy(self) -> "CatalogStatistics":
        duplicate = CatalogStatistics()
        duplicate.book_popularity = dict(self.book_popularity)
        duplicate.user_activity = dict(self.user_activity)
        duplicate.monthly_stats = dict(self.monthly_stats)
        return duplicate

    def serialize(self) -> dict[str, dict[str, int]]:
        """JSON-ready counters with string keys, sorted by key."""
        return {
            "bookPopularity": {
                str(book_id): borrows for book_id, borrows in sorted(self.book_popularity.items())
            },
            "userActivity": {
                str(user_id): borrows for user_id, borrows in sorted(self.user_activity.items())
            },
            "monthlyStats": self.get_monthly_trends(),
        }

    def report(self, count: int = 5) -> str:
        """Plain-text summary for logs and the command line."""
        lines = ["=== Library statistics ===", "Most popular books:"]
        lines.extend(
            f"  Book {book_id}: {borrows} borrows"
            for book_id, borrows in self.get_most_popular_books(count)
        )
        lines.append("Most active users:")
        lines.extend(
            f"  User {user_id}: {borrows} borrows"
            for user_id, borrows in self.get_most_active_users(count)
        )
        lines.append("Monthly borrows:")
        lines.extend(
            f"  {month}: {borrows} borrows" for month, borrows in self.get_monthly_trends().items()
        )
        return "\n".join(lines)
