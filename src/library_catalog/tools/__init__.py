"""
MCP tools for the Library Catalog.

Tools are the actions with side effects: growing the catalog and running
the borrow and return transactions. Read-only views live in ``resources``.
"""

from .catalog import add_book, add_user, search_catalog
from .circulation import borrow_book, return_book

# Export all tools for server registration
all_tools = [
    search_catalog,
    add_user,
    add_book,
    borrow_book,
    return_book,
]

__all__ = [
    "add_book",
    "add_user",
    "all_tools",
    "borrow_book",
    "return_book",
    "search_catalog",
]
