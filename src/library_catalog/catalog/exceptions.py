"""Exceptions raised by the catalog layer."""


class CatalogError(Exception):
    """Base exception for catalog operations."""


class InvalidInputError(CatalogError):
    """Raised when a required field is empty or longer than allowed."""


class NotFoundError(CatalogError):
    """Raised when a user or book id does not resolve."""


class BusinessRuleError(CatalogError):
    """Raised when an operation would break a circulation rule."""


class PersistenceError(CatalogError):
    """Raised when a snapshot document cannot be read or written."""
