from __future__ import annotations

# Catalog error taxonomy. The HTTP layer maps these to status codes in
# inventory_service.api.exception_handlers.


class CatalogError(Exception):
    """Base class for errors raised by the catalog core."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(CatalogError):
    """Bad or missing required input; the caller can correct it."""

    status_code = 400


class NotFound(CatalogError):
    """The referenced item (or its photo) does not exist."""

    status_code = 404


class IntegrityFault(CatalogError):
    """An item references a photo file that is missing from disk."""

    status_code = 404

    def __init__(self, message: str, *, item_id: str, stored_name: str) -> None:
        super().__init__(message)
        self.item_id = item_id
        self.stored_name = stored_name


class StorageFault(CatalogError):
    """The catalog document could not be read or written."""

    status_code = 500


class Busy(CatalogError):
    """Timed out waiting for the catalog lock; safe to retry."""

    status_code = 503
