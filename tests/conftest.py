from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from inventory_service.core.config import Settings
from inventory_service.main import create_app
from inventory_service.services.catalog import CatalogService
from inventory_service.storage.inventory_store import InventoryStore
from inventory_service.storage.photo_store import PhotoStore


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(CACHE_DIR=str(tmp_path / "cache"), LOCK_TIMEOUT_SECONDS=10.0, REQUEST_LOGS_ENABLED=False)


@pytest.fixture
def inventory_store(settings: Settings) -> InventoryStore:
    return InventoryStore(settings.inventory_path, lock_timeout=settings.LOCK_TIMEOUT_SECONDS)


@pytest.fixture
def photo_store(settings: Settings) -> PhotoStore:
    return PhotoStore(settings.photo_path)


@pytest.fixture
def catalog(inventory_store: InventoryStore, photo_store: PhotoStore) -> CatalogService:
    return CatalogService(inventory_store, photo_store)


@pytest.fixture
def client(settings: Settings):
    app = create_app(settings)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def photo_files(settings: Settings):
    """Callable listing the files currently in the photo directory."""

    def _list() -> list[str]:
        if not settings.photo_path.exists():
            return []
        return sorted(p.name for p in settings.photo_path.iterdir())

    return _list
