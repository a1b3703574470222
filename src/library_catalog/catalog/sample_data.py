"""
Starter data for an empty catalog.

When the server starts against an empty data directory (and sample data is
enabled in the configuration) a few readers and computing titles are added
so the API and MCP resources have something to show.
"""

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .store import CatalogStore

logger = logging.getLogger(__name__)

SAMPLE_USERS: list[dict[str, str]] = [
    {"name": "Zhang San", "email": "zhangsan@example.com", "phone": "13800138001"},
    {"name": "Li Si", "email": "lisi@example.com", "phone": "13800138002"},
    {"name": "Wang Wu", "email": "wangwu@example.com", "phone": "13800138003"},
]

SAMPLE_BOOKS: list[dict[str, str]] = [
    {
        "title": "C++ Programming",
        "author": "Tan Haoqiang",
        "category": "Computing",
        "keywords": "programming,C++,software design",
        "description": "A classic C++ programming textbook",
    },
    {
        "title": "Data Structures and Algorithms",
        "author": "Yan Weimin",
        "category": "Computing",
        "keywords": "data structures,algorithms",
        "description": "Analysis of data structures and algorithms",
    },
    {
        "title": "Operating System Concepts",
        "author": "Abraham Silberschatz",
        "category": "Computing",
        "keywords": "operating systems,systems programming",
        "description": "Operating system principles and implementation",
    },
    {
        "title": "Computer Networks",
        "author": "Xie Xiren",
        "category": "Computing",
        "keywords": "networking,communication",
        "description": "An introduction to computer networks",
    },
    {
        "title": "Software Engineering",
        "author": "Ian Sommerville",
        "category": "Computing",
        "keywords": "software engineering,project management",
        "description": "Software engineering theory and practice",
    },
]


def load_sample_data(store: "CatalogStore") -> bool:
    """
    Seed ``store`` with the sample users and books if it holds neither.

    Returns:
        True if sample data was added, False if the catalog already had data

    Raises:
        PersistenceError: If writing the seeded catalog fails
    """
    if not store.is_empty():
        return False

    for user in SAMPLE_USERS:
        store.add_user(**user)
    for book in SAMPLE_BOOKS:
        store.add_book(**book)

    logger.info(
        "Seeded empty catalog with %d users and %d books", len(SAMPLE_USERS), len(SAMPLE_BOOKS)
    )
    return True
