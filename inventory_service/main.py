import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from inventory_service.api.api import api_router
from inventory_service.api.exception_handlers import install_exception_handlers
from inventory_service.core.config import Settings, get_settings
from inventory_service.core.errors import StorageFault
from inventory_service.core.logging_config import configure_logging, install_request_logging, set_request_logs_enabled
from inventory_service.services.catalog import CatalogService
from inventory_service.storage.inventory_store import InventoryStore
from inventory_service.storage.photo_store import PhotoStore

LOG = logging.getLogger(__name__)


def build_catalog(settings: Settings) -> CatalogService:
    """Open the stores under the configured cache directory."""
    inventory = InventoryStore(settings.inventory_path, lock_timeout=settings.LOCK_TIMEOUT_SECONDS)
    # Older catalogs kept photos in the cache root next to the document
    photos = PhotoStore(
        settings.photo_path,
        default_extension=settings.DEFAULT_PHOTO_EXTENSION,
        legacy_directories=[settings.cache_path],
        protected_names={settings.INVENTORY_FILE_NAME},
    )
    return CatalogService(inventory, photos)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()

    # Configure logging before app initialization
    configure_logging(settings)

    app = FastAPI(title=settings.PROJECT_NAME)
    app.state.settings = settings

    set_request_logs_enabled(settings.REQUEST_LOGS_ENABLED)
    install_request_logging(app)
    install_exception_handlers(app)

    # CORS (allow all so browser forms and preflight requests work)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.on_event("startup")
    async def _open_catalog():
        catalog = build_catalog(settings)
        app.state.catalog = catalog
        LOG.info(
            "catalog configuration cache=%s document=%s photos=%s",
            settings.cache_path,
            settings.inventory_path,
            settings.photo_path,
        )
        # Surface a corrupt document at boot; requests keep failing until it is fixed
        try:
            items = await catalog.list_items()
            LOG.info("catalog loaded items=%d", len(items))
        except StorageFault as exc:
            LOG.error("catalog document unusable, mutations disabled until repaired err=%s", exc.message)

    app.include_router(api_router)
    return app


app = create_app()
