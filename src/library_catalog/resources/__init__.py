"""
MCP resources for the Library Catalog.

Resources are read-only views addressed by ``library://`` URIs. Anything
that changes the catalog is a tool instead.
"""

from .books import book_resources
from .stats import stats_resources
from .users import user_resources

# Combine all resources
all_resources = book_resources + user_resources + stats_resources

__all__ = [
    "all_resources",
    "book_resources",
    "stats_resources",
    "user_resources",
]
