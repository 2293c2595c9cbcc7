from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse

from inventory_service.api.deps import get_catalog
from inventory_service.schemas.item import SearchRequest
from inventory_service.services.catalog import CatalogService

router = APIRouter()


@router.post("/search", response_class=HTMLResponse)
async def search_item(*, catalog: CatalogService = Depends(get_catalog), body: SearchRequest) -> HTMLResponse:
    """Render an item by ID, optionally linking its photo."""
    return HTMLResponse(await catalog.search(body.id, include_photo_link=body.has_photo))
