from fastapi import Request, UploadFile

from inventory_service.services.catalog import CatalogService


def get_catalog(request: Request) -> CatalogService:
    """FastAPI dependency returning the catalog opened at startup."""
    return request.app.state.catalog


async def read_upload(upload: UploadFile | None) -> tuple[bytes | None, str | None]:
    """Bytes and original filename of an uploaded file, or (None, None) when nothing was sent."""
    # Browsers send an empty-filename part when the file input is left blank
    if upload is None or not upload.filename:
        return None, None
    try:
        data = await upload.read()
    finally:
        await upload.close()
    return data, upload.filename
