from __future__ import annotations

import logging
import mimetypes
import os
import re
import uuid
from pathlib import Path
from typing import Collection, Sequence

import aiofiles
import aiofiles.os

from inventory_service.core.errors import StorageFault


LOG = logging.getLogger(__name__)

_EXTENSION_RE = re.compile(r"^\.[a-z0-9]{1,10}$")

DEFAULT_CONTENT_TYPE = "image/jpeg"


class PhotoMissing(Exception):
    """No photo file exists under the requested stored name."""

    def __init__(self, stored_name: str):
        super().__init__(stored_name)
        self.stored_name = stored_name


class PhotoStore:
    """Flat directory of photo files keyed by generated names.

    New photos are always written to ``directory``. Names are also looked up
    (and deleted) in ``legacy_directories``, where catalogs written before the
    photo directory existed kept their files next to the document. Hidden
    names and ``protected_names`` (the catalog document) never resolve.
    """

    def __init__(
        self,
        directory: Path,
        *,
        default_extension: str = ".jpg",
        legacy_directories: Sequence[Path] = (),
        protected_names: Collection[str] = (),
    ):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)
        self.default_extension = default_extension
        self.legacy_directories = [Path(d) for d in legacy_directories]
        self.protected_names = frozenset(protected_names)

    def extension_for(self, original_filename: str | None) -> str:
        """Lower-cased extension of the upload, or the default when unusable."""
        if original_filename:
            ext = os.path.splitext(original_filename)[1].lower()
            if _EXTENSION_RE.match(ext):
                return ext
        return self.default_extension

    def _paths(self, stored_name: str) -> list[Path]:
        # Only plain names that resolve inside the photo directories
        if not stored_name or stored_name.startswith(".") or stored_name in self.protected_names:
            return []
        if "/" in stored_name or "\\" in stored_name or "\x00" in stored_name:
            return []
        return [self.directory / stored_name] + [d / stored_name for d in self.legacy_directories]

    async def store(self, data: bytes, suggested_extension: str | None = None) -> str:
        """Write ``data`` under a fresh name and return that name.

        The file is opened exclusively, so an existing file is never
        overwritten; a clash is reported as StorageFault.
        """
        ext = suggested_extension if suggested_extension and _EXTENSION_RE.match(suggested_extension) else self.default_extension
        stored_name = f"{uuid.uuid4().hex}{ext}"
        path = self.directory / stored_name
        try:
            async with aiofiles.open(path, mode="xb") as f:
                await f.write(data)
        except FileExistsError as exc:
            LOG.error("photos: generated name %s already exists", stored_name)
            raise StorageFault(f"Photo name collision for {stored_name}") from exc
        except OSError as exc:
            LOG.error("photos: failed to write %s err=%s", stored_name, exc)
            await self._discard_partial(path)
            raise StorageFault(f"Failed to store photo: {exc}") from exc
        LOG.info("photos: stored %s (%d bytes)", stored_name, len(data))
        return stored_name

    async def _discard_partial(self, path: Path) -> None:
        try:
            await aiofiles.os.remove(path)
        except FileNotFoundError:
            pass
        except OSError as exc:
            LOG.warning("photos: could not remove partial file %s err=%s", path, exc)

    async def fetch(self, stored_name: str) -> bytes:
        for path in self._paths(stored_name):
            if not await aiofiles.os.path.isfile(path):
                continue
            try:
                async with aiofiles.open(path, mode="rb") as f:
                    return await f.read()
            except FileNotFoundError:
                continue
            except OSError as exc:
                LOG.error("photos: failed to read %s err=%s", stored_name, exc)
                raise StorageFault(f"Failed to read photo: {exc}") from exc
        raise PhotoMissing(stored_name)

    async def delete(self, stored_name: str) -> None:
        """Remove a stored photo; a name that is already gone is fine."""
        removed = False
        for path in self._paths(stored_name):
            if not await aiofiles.os.path.isfile(path):
                continue
            try:
                await aiofiles.os.remove(path)
            except FileNotFoundError:
                continue
            except OSError as exc:
                raise StorageFault(f"Failed to delete photo {stored_name}: {exc}") from exc
            removed = True
        if removed:
            LOG.info("photos: deleted %s", stored_name)
        else:
            LOG.debug("photos: %s already absent", stored_name)

    async def exists(self, stored_name: str) -> bool:
        for path in self._paths(stored_name):
            if await aiofiles.os.path.isfile(path):
                return True
        return False

    @staticmethod
    def content_type(stored_name: str) -> str:
        guessed, _ = mimetypes.guess_type(stored_name)
        return guessed or DEFAULT_CONTENT_TYPE
