from fastapi import APIRouter, Depends, File, Response, UploadFile

from inventory_service.api.deps import get_catalog, read_upload
from inventory_service.schemas.item import DeleteResult, ItemOut, ItemUpdate
from inventory_service.services.catalog import CatalogService

router = APIRouter()


@router.get("", response_model=list[ItemOut])
async def list_items(catalog: CatalogService = Depends(get_catalog)) -> list[ItemOut]:
    """Retrieve all items."""
    return [ItemOut.from_item(item) for item in await catalog.list_items()]


@router.get("/{item_id}", response_model=ItemOut)
async def read_item(*, catalog: CatalogService = Depends(get_catalog), item_id: str) -> ItemOut:
    """Get item by ID."""
    return ItemOut.from_item(await catalog.get(item_id))


@router.put("/{item_id}", response_model=ItemOut)
async def update_item(
    *,
    catalog: CatalogService = Depends(get_catalog),
    item_id: str,
    item_in: ItemUpdate | None = None,
) -> ItemOut:
    """Update name and/or description; omitted fields keep their values."""
    changes = item_in.model_dump(exclude_unset=True) if item_in is not None else {}
    return ItemOut.from_item(await catalog.update(item_id, **changes))


@router.delete("/{item_id}", response_model=DeleteResult)
async def delete_item(*, catalog: CatalogService = Depends(get_catalog), item_id: str) -> DeleteResult:
    """Delete an item together with its photo."""
    deleted_id = await catalog.delete(item_id)
    return DeleteResult(id=deleted_id)


@router.get(
    "/{item_id}/photo",
    response_class=Response,
    responses={200: {"content": {"image/jpeg": {}}}},
)
async def read_item_photo(*, catalog: CatalogService = Depends(get_catalog), item_id: str) -> Response:
    data, content_type = await catalog.fetch_photo(item_id)
    return Response(content=data, media_type=content_type)


@router.put("/{item_id}/photo", response_model=ItemOut)
async def replace_item_photo(
    *,
    catalog: CatalogService = Depends(get_catalog),
    item_id: str,
    photo: UploadFile | None = File(default=None),
) -> ItemOut:
    data, filename = await read_upload(photo)
    item = await catalog.replace_photo(item_id, data, photo_filename=filename)
    return ItemOut.from_item(item)
