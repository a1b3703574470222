"""
Library Catalog Package.

A single-process library catalog manager: users, books and borrow/return
transactions, persisted as JSON snapshots and served over HTTP and MCP.

Key Components:
- models: Pydantic models for users, books and borrow records
- catalog: the catalog store, statistics and JSON persistence
- config: Configuration management with Pydantic v2
- api: REST endpoints for the admin and reader dashboards
- resources: MCP resources (read-only endpoints)
- tools: MCP tools (operations with side effects)
"""

__version__ = "0.1.0"

__all__ = [
    "__version__",
]
