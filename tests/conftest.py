"""Test configuration and fixtures for the Library Catalog.

Every test runs against its own temporary data directory:
1. Environment overrides point the global configuration at ``tmp_path``
2. The configuration and store singletons are reset around each test
3. Stores built here use a controllable clock so timestamps are predictable
"""

from collections.abc import Generator
from pathlib import Path

import pytest
from starlette.testclient import TestClient

from library_catalog.catalog.persistence import JsonPersistence
from library_catalog.catalog.store import CatalogStore, get_store, reset_store
from library_catalog.config import reset_config
from library_catalog.server import create_server

# Mid-November 2023 in every timezone
BASE_TIME = 1_700_000_000


class FakeClock:
    """Stands in for ``epoch_now`` so tests decide what time it is."""

    def __init__(self, now: int = BASE_TIME) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> int:
        self.now += seconds
        return self.now


@pytest.fixture(autouse=True)
def data_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[Path, None, None]:
    """Point the global configuration at a fresh data directory."""
    path = tmp_path / "data"
    monkeypatch.setenv("LIBRARY_CATALOG_DATA_DIR", str(path))
    monkeypatch.setenv("LIBRARY_CATALOG_LOAD_SAMPLE_DATA", "false")
    reset_config()
    reset_store()

    yield path

    reset_config()
    reset_store()


@pytest.fixture
def persistence(data_dir: Path) -> JsonPersistence:
    return JsonPersistence(
        data_dir / "users.json", data_dir / "books.json", data_dir / "records.json"
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(persistence: JsonPersistence, clock: FakeClock) -> CatalogStore:
    """An empty store writing to the test data directory."""
    return CatalogStore(persistence, clock=clock)


@pytest.fixture
def global_store() -> CatalogStore:
    """The process-wide store the tools, resources and REST routes use."""
    return get_store()


@pytest.fixture
def client() -> TestClient:
    """HTTP client for the REST endpoints."""
    return TestClient(create_server().http_app())
