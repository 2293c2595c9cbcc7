from __future__ import annotations

import html
import logging
import uuid
from functools import partial
from typing import Any

from inventory_service.core.errors import IntegrityFault, NotFound, StorageFault, ValidationError
from inventory_service.models.item import Item
from inventory_service.storage.inventory_store import InventoryStore, InventoryTransaction
from inventory_service.storage.photo_store import PhotoMissing, PhotoStore


LOG = logging.getLogger(__name__)


class _Unset:
    """Marker for a field the caller did not supply at all."""

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


def render_search_result(item: Item, include_photo_link: bool) -> str:
    """HTML fragment describing ``item``; item text is escaped."""
    description = html.escape(item.description or "")
    if include_photo_link and item.photo_url:
        description += f'<br><a href="{html.escape(item.photo_url)}">Photo link</a>'
    return (
        "<h1>Search result</h1>\n"
        f"<p><strong>ID:</strong> {html.escape(item.id)}</p>\n"
        f"<p><strong>Name:</strong> {html.escape(item.name)}</p>\n"
        f"<p><strong>Description:</strong> {description}</p>\n"
    )


class CatalogService:
    """Item-level operations over the inventory document and the photo directory.

    Each operation is one inventory transaction. Photo files are written
    before the document that references them is saved. Files that are no
    longer referenced are removed only after that save succeeds. A failure
    can therefore orphan a file, but never leaves an item pointing at a
    missing one.
    """

    def __init__(self, inventory: InventoryStore, photos: PhotoStore):
        self._inventory = inventory
        self._photos = photos

    @staticmethod
    def _new_id(txn: InventoryTransaction) -> str:
        while True:
            item_id = uuid.uuid4().hex
            if txn.find(item_id) is None:
                return item_id

    @staticmethod
    def _require(txn: InventoryTransaction, item_id: str) -> Item:
        item = txn.find(item_id)
        if item is None:
            raise NotFound("Item not found")
        return item

    async def _discard_photo(self, stored_name: str) -> None:
        # Best-effort: the metadata change already committed
        try:
            await self._photos.delete(stored_name)
        except StorageFault as exc:
            LOG.warning("catalog: could not delete photo %s err=%s", stored_name, exc)

    async def register(
        self,
        name: str | None,
        description: str | None = None,
        photo: bytes | None = None,
        photo_filename: str | None = None,
    ) -> Item:
        if name is None or not name.strip():
            raise ValidationError("name is required")

        stored_name: str | None = None
        try:
            async with self._inventory.transaction() as txn:
                item_id = self._new_id(txn)
                if photo is not None:
                    stored_name = await self._photos.store(photo, self._photos.extension_for(photo_filename))
                item = Item(id=item_id, name=name, description=description or "", photo_filename=stored_name)
                txn.insert(item)
        except Exception:
            if stored_name is not None:
                await self._discard_photo(stored_name)
            raise

        LOG.info("catalog: registered item id=%s photo=%s", item.id, stored_name or "-")
        return item

    async def list_items(self) -> list[Item]:
        return await self._inventory.snapshot()

    async def get(self, item_id: str) -> Item:
        item = InventoryStore.find_by_id(await self._inventory.snapshot(), item_id)
        if item is None:
            raise NotFound("Item not found")
        return item

    async def update(self, item_id: str, *, name: Any = UNSET, description: Any = UNSET) -> Item:
        """Apply only the supplied fields.

        A blank name is ignored rather than rejected. A supplied description
        always replaces the old one, ``None`` and ``""`` both clearing it.
        """
        async with self._inventory.transaction() as txn:
            item = self._require(txn, item_id)
            changes: dict[str, Any] = {}
            if name is not UNSET and name is not None and str(name).strip():
                changes["name"] = name
            if description is not UNSET:
                changes["description"] = description or ""
            updated = item.model_copy(update=changes)
            txn.update(updated)

        LOG.info("catalog: updated item id=%s fields=%s", item_id, ",".join(sorted(changes)) or "-")
        return updated

    async def delete(self, item_id: str) -> str:
        async with self._inventory.transaction() as txn:
            removed = txn.remove(item_id)
            if removed is None:
                raise NotFound("Item not found")
            if removed.photo_filename:
                txn.after_commit(partial(self._discard_photo, removed.photo_filename))

        LOG.info("catalog: deleted item id=%s", item_id)
        return item_id

    async def replace_photo(self, item_id: str, photo: bytes | None, photo_filename: str | None = None) -> Item:
        new_name: str | None = None
        try:
            async with self._inventory.transaction() as txn:
                item = self._require(txn, item_id)
                if photo is None:
                    raise ValidationError("photo file is required")
                new_name = await self._photos.store(photo, self._photos.extension_for(photo_filename))
                updated = item.model_copy(update={"photo_filename": new_name})
                txn.update(updated)
                if item.photo_filename:
                    txn.after_commit(partial(self._discard_photo, item.photo_filename))
        except Exception:
            if new_name is not None:
                await self._discard_photo(new_name)
            raise

        LOG.info("catalog: replaced photo for item id=%s photo=%s", item_id, new_name)
        return updated

    async def fetch_photo(self, item_id: str) -> tuple[bytes, str]:
        # The file read stays under the lock so a concurrent replace cannot
        # delete it between the lookup and the read.
        async with self._inventory.reading() as items:
            item = InventoryStore.find_by_id(items, item_id)
            if item is None or not item.photo_filename:
                raise NotFound("Photo not found")
            try:
                data = await self._photos.fetch(item.photo_filename)
            except PhotoMissing as exc:
                LOG.error(
                    "catalog: integrity fault, item id=%s references missing photo %s",
                    item_id,
                    item.photo_filename,
                )
                raise IntegrityFault(
                    "Photo file not found",
                    item_id=item_id,
                    stored_name=item.photo_filename,
                ) from exc
        return data, self._photos.content_type(item.photo_filename)

    async def search(self, item_id: str, include_photo_link: bool = False) -> str:
        item = await self.get(item_id)
        return render_search_result(item, include_photo_link)
