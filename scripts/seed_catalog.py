#!/usr/bin/env python3
"""
Generate a demo catalog with realistic borrow history.

The generated data includes:
- readers with names, emails and phone numbers
- books across a handful of shelf categories
- borrow and return transactions spread over the past two years, so the
  monthly statistics and popularity rankings have something to show

All changes go through the catalog store, so the resulting JSON documents
obey every circulation rule.

Usage:
    python scripts/seed_catalog.py [--data-dir DIR] [--users N] [--books N] [--loans N]
"""

import argparse
import logging
import random
import sys
from datetime import datetime
from pathlib import Path

from faker import Faker

from library_catalog.catalog.exceptions import CatalogError
from library_catalog.catalog.persistence import JsonPersistence
from library_catalog.catalog.store import CatalogStore

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Initialize Faker for realistic data generation
fake = Faker()
Faker.seed(42)  # Consistent data across runs
random.seed(42)

CATEGORIES = ["Computing", "Fiction", "History", "Science", "Philosophy", "Art"]


class ReplayClock:
    """Clock the store reads; the seeder moves it to each transaction's time."""

    def __init__(self) -> None:
        self.now = int(datetime.now().timestamp())

    def __call__(self) -> int:
        return self.now

    def set(self, moment: datetime) -> None:
        self.now = int(moment.timestamp())


def seed_users(store: CatalogStore, clock: ReplayClock, count: int) -> list[int]:
    user_ids = []
    for _ in range(count):
        clock.set(fake.date_time_between(start_date="-3y", end_date="-2y"))
        user_ids.append(
            store.add_user(
                fake.name(),
                fake.unique.email(),
                fake.phone_number()[:20],
                max_borrow_count=random.choice([3, 5, 5, 5, 10]),
            )
        )
    return user_ids


def seed_books(store: CatalogStore, clock: ReplayClock, count: int) -> list[int]:
    book_ids = []
    for _ in range(count):
        clock.set(fake.date_time_between(start_date="-3y", end_date="-2y"))
        category = random.choice(CATEGORIES)
        keywords = ",".join(fake.words(nb=3))
        book_ids.append(
            store.add_book(
                fake.catch_phrase().title(),
                fake.name(),
                category,
                keywords,
                fake.text(max_nb_chars=200),
            )
        )
    return book_ids


def seed_loans(
    store: CatalogStore,
    clock: ReplayClock,
    user_ids: list[int],
    book_ids: list[int],
    count: int,
) -> tuple[int, int]:
    """Replay ``count`` borrow attempts in time order, returning most of them."""
    moments = sorted(
        fake.date_time_between(start_date="-2y", end_date="now") for _ in range(count)
    )
    borrowed = returned = 0
    outstanding: list[tuple[int, int]] = []

    for moment in moments:
        clock.set(moment)

        # Give back an older loan now and then so books circulate
        if outstanding and random.random() < 0.6:
            user_id, book_id = outstanding.pop(random.randrange(len(outstanding)))
            if store.return_book(user_id, book_id):
                returned += 1

        user_id = random.choice(user_ids)
        book_id = random.choice(book_ids)
        if store.borrow_book(user_id, book_id):
            borrowed += 1
            outstanding.append((user_id, book_id))

    return borrowed, returned


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed the Library Catalog with demo data")
    parser.add_argument("--data-dir", type=Path, default=Path("data"), help="Snapshot directory")
    parser.add_argument("--users", type=int, default=30, help="Number of users to create")
    parser.add_argument("--books", type=int, default=120, help="Number of books to create")
    parser.add_argument("--loans", type=int, default=400, help="Number of borrow attempts")
    parser.add_argument(
        "--force",
        action="store_true",
        help="Seed even if the data directory already holds a catalog",
    )
    args = parser.parse_args()

    data_dir = args.data_dir.absolute()
    clock = ReplayClock()
    store = CatalogStore(
        JsonPersistence(
            data_dir / "users.json", data_dir / "books.json", data_dir / "records.json"
        ),
        clock=clock,
    )

    try:
        store.load()
        if not store.is_empty() and not args.force:
            logger.error("%s already holds a catalog, use --force to add to it", data_dir)
            sys.exit(1)

        logger.info("Creating %d users and %d books...", args.users, args.books)
        user_ids = seed_users(store, clock, args.users)
        book_ids = seed_books(store, clock, args.books)

        logger.info("Replaying %d borrow attempts...", args.loans)
        borrowed, returned = seed_loans(store, clock, user_ids, book_ids, args.loans)
    except CatalogError:
        logger.exception("Seeding failed")
        sys.exit(1)

    totals = store.get_totals()
    logger.info(
        "Seeded %s: %d users, %d books, %d records (%d borrows, %d returns)",
        data_dir,
        totals["totalUsers"],
        totals["totalBooks"],
        totals["totalRecords"],
        borrowed,
        returned,
    )
    print(store.get_statistics().report())


if __name__ == "__main__":
    main()
