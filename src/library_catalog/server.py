"""Library Catalog Server - FastMCP Implementation

One process serves the catalog two ways:

- REST endpoints under /api for the admin and reader dashboards
- MCP resources and tools for LLM clients (stdio, or /mcp over HTTP)

Both sides share the global catalog store, so a book borrowed over REST is
immediately unavailable to MCP clients and the other way round.
"""

import logging
import signal
import sys
from typing import Any

from fastmcp import FastMCP

from .api import register_routes
from .catalog.exceptions import PersistenceError
from .catalog.store import get_store
from .config import CatalogConfig, get_config
from .resources import all_resources
from .tools import all_tools

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(config: CatalogConfig) -> None:
    """Send logs to stderr so stdout stays clean for the stdio transport."""
    level = logging.DEBUG if config.debug else getattr(logging, config.log_level)
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stderr)],
    )

    if not config.debug:
        logging.getLogger("fastmcp").setLevel(logging.WARNING)


def create_server(config: CatalogConfig | None = None) -> FastMCP:
    """Build the FastMCP server with every resource, tool and REST route registered."""
    config = config or get_config()

    mcp = FastMCP(
        name=config.server_name,
        version=config.server_version,
        instructions=(
            "Library Catalog - manages readers, books and borrow/return transactions. "
            "Use resources to browse books, users, borrow histories and statistics, "
            "and tools to add users and books, search the catalog, and borrow or "
            "return books."
        ),
    )

    for resource in all_resources:
        uri = resource.get("uri_template", resource.get("uri"))
        logger.debug("Registering resource: %s with URI: %s", resource["name"], uri)
        mcp.resource(
            uri,
            name=resource["name"],
            description=resource["description"],
            mime_type=resource["mime_type"],
        )(resource["handler"])

    logger.info("Registered %d resources", len(all_resources))

    for tool in all_tools:
        logger.debug("Registering tool: %s", tool["name"])
        mcp.tool(
            name=tool["name"],
            description=tool["description"],
        )(tool["handler"])

    logger.info("Registered %d tools", len(all_tools))

    register_routes(mcp)
    return mcp


def _install_signal_handlers() -> None:
    def signal_handler(signum: int, _frame: Any) -> None:
        logger.info("Received signal %s, initiating shutdown...", signum)
        sys.exit(0)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)


def main() -> None:
    """Main entry point (``library-catalog`` console script)."""
    config = get_config()
    configure_logging(config)

    try:
        logger.info("=" * 60)
        logger.info("Library Catalog Server")
        logger.info("Version: %s", config.server_version)
        logger.info("Transport: %s", config.transport)
        logger.info("Data directory: %s", config.data_dir)
        logger.info("Debug Mode: %s", config.debug)
        logger.info("=" * 60)

        # Open the catalog before serving so a corrupt snapshot stops startup
        try:
            store = get_store()
        except PersistenceError:
            logger.exception("Cannot load the catalog from %s", config.data_dir)
            sys.exit(1)

        totals = store.get_totals()
        logger.info(
            "Catalog ready: %d users, %d books, %d borrow records",
            totals["totalUsers"],
            totals["totalBooks"],
            totals["totalRecords"],
        )

        mcp = create_server(config)
        _install_signal_handlers()

        if config.transport == "stdio":
            logger.info("MCP Server ready on stdio transport")
            mcp.run(transport="stdio")
        else:
            logger.info("Serving on http://%s:%d", config.http_host, config.http_port)
            mcp.run(transport="http", host=config.http_host, port=config.http_port)

    except KeyboardInterrupt:
        logger.info("Server stopped by user")
    except Exception:
        logger.exception("Failed to start Library Catalog server")
        sys.exit(1)


if __name__ == "__main__":
    main()
