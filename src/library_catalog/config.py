"""Configuration management for the Library Catalog server.

Settings come from environment variables prefixed with ``LIBRARY_CATALOG_``
(or a local ``.env`` file) and are validated with Pydantic v2:

1. Server metadata - name and version reported to MCP clients
2. Storage - the data directory and the three JSON snapshot files
3. Transport - stdio for local MCP clients, HTTP for the REST API
4. Circulation policy - default borrow limit and field length cap
"""

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models.base import MAX_FIELD_LENGTH


class CatalogConfig(BaseSettings):
    """Library Catalog configuration.

    Every field can be overridden through the environment, e.g.
    ``LIBRARY_CATALOG_DATA_DIR=/var/lib/catalog`` or
    ``LIBRARY_CATALOG_HTTP_PORT=9090``.
    """

    model_config = SettingsConfigDict(
        # Use LIBRARY_CATALOG_ prefix for all env vars
        env_prefix="LIBRARY_CATALOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Server Metadata ===

    server_name: str = Field(
        default="library-catalog",
        description="Server name reported to MCP clients",
        pattern=r"^[a-z0-9-]+$",
    )

    server_version: str = Field(
        default="0.1.0",
        description="Server version",
        pattern=r"^\d+\.\d+\.\d+(-[a-zA-Z0-9.]+)?$",
    )

    # === Storage Configuration ===

    data_dir: Path = Field(
        default=Path("data"),
        description="Directory holding the JSON snapshot documents",
    )

    users_file: str = Field(default="users.json", description="User snapshot file name")
    books_file: str = Field(default="books.json", description="Book snapshot file name")
    records_file: str = Field(
        default="records.json",
        description="Borrow record snapshot file name",
    )

    # === Transport Configuration ===

    transport: str = Field(
        default="http",
        description="Transport to serve on",
        pattern=r"^(stdio|http)$",
    )

    http_host: str = Field(default="127.0.0.1", description="HTTP bind address")

    http_port: int = Field(
        default=8080,
        description="HTTP bind port",
        ge=1024,  # Avoid privileged ports
        le=65535,
    )

    # === Circulation Policy ===

    default_max_borrow_count: int = Field(
        default=5,
        description="Borrow limit given to new users",
        ge=0,
        le=100,
    )

    max_field_length: int = Field(
        default=MAX_FIELD_LENGTH,
        description="Maximum length of names, emails, titles and authors",
        ge=1,
        le=MAX_FIELD_LENGTH,  # The models reject anything longer on load
    )

    # === Login Stub ===

    admin_username: str = Field(default="admin", description="Administrator login name")

    admin_password: str = Field(
        default="1234",
        description="Administrator password",
        repr=False,  # Hide from string representation
    )

    # === Development Configuration ===

    load_sample_data: bool = Field(
        default=True,
        description="Seed a small sample catalog when no users and no books exist",
    )

    debug: bool = Field(default=False, description="Enable debug logging")

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
        pattern=r"^(DEBUG|INFO|WARNING|ERROR)$",
    )

    # === Validation Methods ===

    @field_validator("data_dir")
    @classmethod
    def validate_data_dir(cls, v: Path) -> Path:
        """Make the data directory absolute and make sure it exists."""
        abs_path = v.absolute()
        abs_path.mkdir(parents=True, exist_ok=True)

        if not abs_path.is_dir():
            raise ValueError(f"Data directory {abs_path} is not accessible")

        return abs_path

    @field_validator("server_name")
    @classmethod
    def validate_server_name(cls, v: str) -> str:
        if len(v) < 3:
            raise ValueError("Server name must be at least 3 characters")
        if len(v) > 50:
            raise ValueError("Server name must not exceed 50 characters")
        return v

    @field_validator("users_file", "books_file", "records_file")
    @classmethod
    def validate_file_name(cls, v: str) -> str:
        """Snapshot files live directly inside the data directory."""
        if not v or Path(v).name != v:
            raise ValueError(f"Snapshot file name must be a bare file name, got {v!r}")
        return v

    # === Computed Properties ===

    @property
    def is_development(self) -> bool:
        return self.debug or self.log_level == "DEBUG"

    @property
    def users_path(self) -> Path:
        return self.data_dir / self.users_file

    @property
    def books_path(self) -> Path:
        return self.data_dir / self.books_file

    @property
    def records_path(self) -> Path:
        return self.data_dir / self.records_file

    @property
    def server_info(self) -> dict[str, str]:
        return {
            "name": self.server_name,
            "version": self.server_version,
            "transport": self.transport,
        }


# === Global Configuration Instance ===


class _ConfigStore:
    """Internal storage for configuration singleton."""

    _instance: CatalogConfig | None = None


def get_config() -> CatalogConfig:
    """Get or create the global configuration instance."""
    if _ConfigStore._instance is None:  # type: ignore[reportPrivateUsage]
        _ConfigStore._instance = CatalogConfig()  # type: ignore[reportPrivateUsage]
    return _ConfigStore._instance  # type: ignore[reportPrivateUsage]


def reset_config() -> None:
    """Reset configuration (useful for testing)."""
    _ConfigStore._instance = None  # type: ignore[reportPrivateUsage]
