from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    PROJECT_NAME: str = "Inventory Service"

    HOST: str = "127.0.0.1"
    PORT: int = 3000

    # Persisted state: catalog document + flat photo directory under one root
    CACHE_DIR: str = "cache"
    INVENTORY_FILE_NAME: str = "inventory.json"
    PHOTO_DIR_NAME: str = "photos"
    DEFAULT_PHOTO_EXTENSION: str = ".jpg"

    # Upper bound on waiting for the catalog lock before answering Busy
    LOCK_TIMEOUT_SECONDS: float = 5.0

    LOG_LEVEL: str = "INFO"
    UVICORN_ACCESS_LOG: bool = False
    REQUEST_LOGS_ENABLED: bool = True

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @property
    def cache_path(self) -> Path:
        return Path(self.CACHE_DIR).resolve()

    @property
    def inventory_path(self) -> Path:
        """Location of the JSON catalog document."""
        return self.cache_path / self.INVENTORY_FILE_NAME

    @property
    def photo_path(self) -> Path:
        """Directory holding the stored photo files."""
        return self.cache_path / self.PHOTO_DIR_NAME


@lru_cache()
def get_settings() -> Settings:  # pragma: no cover
    """Return cached settings object to avoid re-parsing env vars."""
    return Settings()
