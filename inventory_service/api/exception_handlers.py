import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from inventory_service.core.errors import Busy, CatalogError

LOG = logging.getLogger(__name__)


def install_exception_handlers(app: FastAPI) -> None:
    """Map the catalog error taxonomy (and request validation) onto HTTP responses."""

    @app.exception_handler(CatalogError)
    async def catalog_error_handler(request: Request, exc: CatalogError):  # type: ignore[override]
        headers = {"Retry-After": "1"} if isinstance(exc, Busy) else None
        if exc.status_code >= 500:
            LOG.error("%s path=%s err=%s", type(exc).__name__, request.url.path, exc.message)
        return JSONResponse({"detail": exc.message}, status_code=exc.status_code, headers=headers)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):  # type: ignore[override]
        return JSONResponse({"detail": jsonable_encoder(exc.errors())}, status_code=400)
