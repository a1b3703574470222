"""REST endpoints served alongside the MCP transport."""

from .routes import ROUTES, register_routes

__all__ = ["ROUTES", "register_routes"]
