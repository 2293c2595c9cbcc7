from __future__ import annotations

import asyncio
import json
import logging
import os
import uuid
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Awaitable, Callable, Iterable, Sequence

import aiofiles
import aiofiles.os
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from inventory_service.core.errors import Busy, StorageFault
from inventory_service.models.item import Item


LOG = logging.getLogger(__name__)

_COLLECTION = TypeAdapter(list[Item])

AfterCommit = Callable[[], Awaitable[None]]


class InventoryTransaction:
    """Working copy of the catalog for one load/mutate/save cycle."""

    def __init__(self, items: list[Item]):
        self._items = items
        self._after_commit: list[AfterCommit] = []
        self.changed = False

    @property
    def items(self) -> list[Item]:
        return list(self._items)

    def find(self, item_id: str) -> Item | None:
        return InventoryStore.find_by_id(self._items, item_id)

    def insert(self, item: Item) -> None:
        if self.find(item.id) is not None:
            raise ValueError(f"duplicate item id {item.id!r}")
        self._items.append(item)
        self.changed = True

    def update(self, item: Item) -> None:
        for index, existing in enumerate(self._items):
            if existing.id == item.id:
                self._items[index] = item
                self.changed = True
                return
        raise KeyError(item.id)

    def remove(self, item_id: str) -> Item | None:
        for index, existing in enumerate(self._items):
            if existing.id == item_id:
                self.changed = True
                return self._items.pop(index)
        return None

    def after_commit(self, callback: AfterCommit) -> None:
        """Run ``callback`` once the document is saved, still under the store lock."""
        self._after_commit.append(callback)

    def pending_callbacks(self) -> list[AfterCommit]:
        return list(self._after_commit)


class InventoryStore:
    """Owns the JSON catalog document and the lock that serializes access to it.

    Every read and every load/mutate/save cycle goes through ``snapshot()`` or
    ``transaction()``, both of which hold a single asyncio lock. Two requests
    can therefore never interleave their load and save. Writes go to a
    temporary file in the same directory which then replaces the document,
    so a failed or interrupted save leaves the previous document readable.
    """

    def __init__(self, path: Path, *, lock_timeout: float = 5.0):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = asyncio.Lock()
        self._lock_timeout = lock_timeout

    # --- document I/O ---------------------------------------------------------

    async def load(self) -> list[Item]:
        """Read the whole collection.

        A missing document is the first-run case and yields an empty list.
        Anything unreadable raises StorageFault: treating it as empty would
        wipe the catalog on the next save.
        """
        try:
            async with aiofiles.open(self.path, mode="r", encoding="utf-8") as f:
                raw = await f.read()
        except FileNotFoundError:
            LOG.info("inventory: no document at %s, starting with an empty catalog", self.path)
            return []
        except (OSError, UnicodeDecodeError) as exc:
            LOG.error("inventory: cannot read %s err=%s", self.path, exc)
            raise StorageFault(f"Inventory document is unreadable: {exc}") from exc

        try:
            records = json.loads(raw)
        except json.JSONDecodeError as exc:
            LOG.error("inventory: corrupt JSON in %s err=%s", self.path, exc)
            raise StorageFault(f"Inventory document is not valid JSON: {exc}") from exc
        if not isinstance(records, list):
            LOG.error("inventory: %s does not hold a JSON array", self.path)
            raise StorageFault("Inventory document must hold a JSON array")

        try:
            items = _COLLECTION.validate_python(records)
        except PydanticValidationError as exc:
            LOG.error("inventory: invalid records in %s err=%s", self.path, exc)
            raise StorageFault(f"Inventory document has invalid records: {exc.error_count()} error(s)") from exc

        seen: set[str] = set()
        for item in items:
            if item.id in seen:
                LOG.error("inventory: duplicate id %s in %s", item.id, self.path)
                raise StorageFault(f"Inventory document has duplicate id {item.id!r}")
            seen.add(item.id)
        return items

    @staticmethod
    def serialize(items: Iterable[Item]) -> str:
        records = [item.model_dump(mode="json") for item in items]
        return json.dumps(records, indent=2, ensure_ascii=False) + "\n"

    async def save(self, items: Sequence[Item]) -> None:
        """Atomically replace the document with ``items``."""
        payload = self.serialize(items)
        tmp_path = self.path.with_name(f".{self.path.name}.{uuid.uuid4().hex}.tmp")
        try:
            async with aiofiles.open(tmp_path, mode="w", encoding="utf-8") as f:
                await f.write(payload)
                await f.flush()
                await asyncio.to_thread(os.fsync, f.fileno())
            await aiofiles.os.replace(tmp_path, self.path)
        except OSError as exc:
            LOG.error("inventory: failed to persist %d items to %s err=%s", len(items), self.path, exc)
            await self._discard_tmp(tmp_path)
            raise StorageFault(f"Failed to write inventory document: {exc}") from exc
        LOG.debug("inventory: persisted %d items to %s", len(items), self.path)

    async def _discard_tmp(self, tmp_path: Path) -> None:
        try:
            await aiofiles.os.remove(tmp_path)
        except FileNotFoundError:
            pass
        except OSError as exc:
            LOG.warning("inventory: could not remove temp file %s err=%s", tmp_path, exc)

    @staticmethod
    def find_by_id(items: Iterable[Item], item_id: str) -> Item | None:
        for item in items:
            if item.id == item_id:
                return item
        return None

    # --- serialized access ----------------------------------------------------

    @asynccontextmanager
    async def _locked(self) -> AsyncIterator[None]:
        try:
            await asyncio.wait_for(self._lock.acquire(), timeout=self._lock_timeout)
        except asyncio.TimeoutError as exc:
            LOG.warning("inventory: lock not acquired within %.1fs", self._lock_timeout)
            raise Busy("Inventory is busy, retry later") from exc
        try:
            yield
        finally:
            self._lock.release()

    @asynccontextmanager
    async def reading(self) -> AsyncIterator[list[Item]]:
        """Hold the lock while the caller inspects a freshly loaded collection."""
        async with self._locked():
            yield await self.load()

    async def snapshot(self) -> list[Item]:
        """Consistent read-only copy of the collection."""
        async with self.reading() as items:
            return items

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[InventoryTransaction]:
        """Load, hand out a working copy, and save it back if it changed.

        If the body raises, nothing is written. After-commit callbacks run
        only when the save succeeded (or nothing needed saving).
        """
        async with self._locked():
            txn = InventoryTransaction(await self.load())
            yield txn
            if txn.changed:
                await self.save(txn.items)
            for callback in txn.pending_callbacks():
                await callback()
