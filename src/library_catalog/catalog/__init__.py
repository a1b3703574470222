"""
Catalog layer for the Library Catalog.

The store owns users, books and borrow records, keeps the circulation rules,
and writes every change through to the JSON snapshot documents.
"""

from .exceptions import (
    BusinessRuleError,
    CatalogError,
    InvalidInputError,
    NotFoundError,
    PersistenceError,
)
from .persistence import JsonPersistence, LoadedCatalog
from .sample_data import load_sample_data
from .statistics import CatalogStatistics
from .store import CatalogStore, get_store, open_store, reset_store

__all__ = [
    "BusinessRuleError",
    "CatalogError",
    "CatalogStatistics",
    "CatalogStore",
    "InvalidInputError",
    "JsonPersistence",
    "LoadedCatalog",
    "NotFoundError",
    "PersistenceError",
    "get_store",
    "load_sample_data",
    "open_store",
    "reset_store",
]
