from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from inventory_service.api.deps import get_catalog, read_upload
from inventory_service.schemas.item import ItemOut
from inventory_service.services.catalog import CatalogService

router = APIRouter()


@router.post("/register", response_model=ItemOut, status_code=status.HTTP_201_CREATED)
async def register_item(
    *,
    catalog: CatalogService = Depends(get_catalog),
    name: str | None = Form(default=None),
    inventory_name: str | None = Form(default=None),
    description: str | None = Form(default=None),
    photo: UploadFile | None = File(default=None),
) -> ItemOut:
    """Register a new item, optionally with a photo."""
    data, filename = await read_upload(photo)
    item = await catalog.register(
        name if name is not None else inventory_name,
        description,
        photo=data,
        photo_filename=filename,
    )
    return ItemOut.from_item(item)
