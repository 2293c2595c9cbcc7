from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from inventory_service.api.deps import get_catalog
from inventory_service.core.errors import CatalogError
from inventory_service.services.catalog import CatalogService

router = APIRouter()


@router.get("")
async def health(catalog: CatalogService = Depends(get_catalog)) -> dict[str, object]:
    """Liveness plus a readability check of the catalog document."""
    try:
        count: int | None = len(await catalog.list_items())
        state = "ok"
    except CatalogError as exc:
        count = None
        state = f"degraded: {exc.message}"
    return {
        "status": state,
        "items": count,
        "time": datetime.now(timezone.utc).isoformat(),
    }
