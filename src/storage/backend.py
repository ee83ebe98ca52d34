"""
BookVetting - PDF Storage Backends
==================================

Two-tier object storage for book PDFs:
1. active (hot) tier for books readers can open
2. archived (cold) tier for books that scored below the storage threshold

Objects are keyed by book id; the backend turns a key into
``<tier prefix><key>.pdf`` inside the tier's bucket.

Usage:
    storage = FilesystemStorageBackend(config.storage)

    path = await storage.upload(book_id, pdf_bytes, StorageTier.ACTIVE)
    await storage.move(book_id, StorageTier.ACTIVE, StorageTier.ARCHIVED)
    data = await storage.download(book_id)
"""

import asyncio
import logging
import shutil
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union
from uuid import UUID

from src.core.config import StorageConfig
from src.shared.enums import StorageTier
from src.shared.exceptions import StorageError

logger = logging.getLogger(__name__)

StorageKey = Union[str, UUID]


# =============================================================================
# ABSTRACT BACKEND
# =============================================================================

class StorageBackend(ABC):
    """Abstract two-tier object store."""

    @abstractmethod
    async def upload(self, key: StorageKey, data: bytes, tier: StorageTier) -> str:
        """Store bytes in a tier. Returns the tier-qualified storage path."""
        pass

    @abstractmethod
    async def download(self, key: StorageKey) -> bytes:
        """Fetch bytes, looking in the active tier first, then archived."""
        pass

    @abstractmethod
    async def download_from_tier(self, key: StorageKey, tier: StorageTier) -> Optional[bytes]:
        """Fetch bytes from one tier. Returns None if the tier has no object."""
        pass

    @abstractmethod
    async def move(self, key: StorageKey, from_tier: StorageTier, to_tier: StorageTier) -> None:
        """Copy to the destination tier, then delete the source. Not atomic."""
        pass

    @abstractmethod
    async def delete(self, key: StorageKey) -> None:
        """Delete the object from every tier. Missing objects are ignored."""
        pass

    @abstractmethod
    async def delete_from_tier(self, key: StorageKey, tier: StorageTier) -> None:
        """Delete the object from one tier only. Missing objects are ignored."""
        pass

    async def restore(self, key: StorageKey, tier: StorageTier, previous: Optional[bytes]) -> None:
        """
        Undo an upload into a tier.

        Writes back the object the upload overwrote, or deletes the
        uploaded object if the tier was empty before.
        """
        if previous is None:
            await self.delete_from_tier(key, tier)
        else:
            await self.upload(key, previous, tier)


# =============================================================================
# FILESYSTEM BACKEND
# =============================================================================

class FilesystemStorageBackend(StorageBackend):
    """
    Storage backend on a local or mounted filesystem.

    Each tier's bucket is a directory under ``config.root_dir``; the
    tier prefix is kept as a subdirectory path so storage paths look
    the same as object-store keys (``active/books/<id>.pdf``).
    """

    def __init__(self, config: StorageConfig):
        self.config = config
        self.root_dir = Path(config.root_dir)

    def storage_path(self, key: StorageKey, tier: StorageTier) -> str:
        return self.config.key_for(key, tier)

    def _file_path(self, key: StorageKey, tier: StorageTier) -> Path:
        tier_config = self.config.tier(tier)
        return self.root_dir / tier_config.bucket / self.storage_path(key, tier)

    async def upload(self, key: StorageKey, data: bytes, tier: StorageTier) -> str:
        tier = StorageTier(tier)
        path = self._file_path(key, tier)
        logger.info(f"Uploading {self.storage_path(key, tier)} to {tier.value} tier ({len(data)} bytes)")

        def _write():
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp = path.with_suffix(".part")
            tmp.write_bytes(data)
            tmp.replace(path)

        await asyncio.to_thread(_write)
        return self.storage_path(key, tier)

    async def download(self, key: StorageKey) -> bytes:
        for tier in (StorageTier.ACTIVE, StorageTier.ARCHIVED):
            data = await self.download_from_tier(key, tier)
            if data is not None:
                return data

        raise StorageError(f"File not found: {key}")

    async def download_from_tier(self, key: StorageKey, tier: StorageTier) -> Optional[bytes]:
        tier = StorageTier(tier)
        logger.debug(f"Attempting download from {self.storage_path(key, tier)}")
        try:
            return await asyncio.to_thread(self._file_path(key, tier).read_bytes)
        except FileNotFoundError:
            return None

    async def move(self, key: StorageKey, from_tier: StorageTier, to_tier: StorageTier) -> None:
        from_tier, to_tier = StorageTier(from_tier), StorageTier(to_tier)
        if from_tier == to_tier:
            return

        source = self._file_path(key, from_tier)
        destination = self._file_path(key, to_tier)
        logger.info(
            f"Moving {self.storage_path(key, from_tier)} to {self.storage_path(key, to_tier)}"
        )

        def _copy() -> bool:
            if not source.exists():
                if destination.exists():
                    # Earlier attempt copied and deleted; nothing left to do
                    return False
                raise StorageError(
                    f"Cannot move {key}: not found in {from_tier.value} tier"
                )
            destination.parent.mkdir(parents=True, exist_ok=True)
            tmp = destination.with_suffix(".part")
            shutil.copyfile(source, tmp)
            tmp.replace(destination)
            return True

        copied = await asyncio.to_thread(_copy)
        if not copied:
            logger.info(f"{key} already in {to_tier.value} tier, skipping copy")
            return

        try:
            await asyncio.to_thread(source.unlink)
        except FileNotFoundError:
            pass
        except OSError as e:
            # Copy succeeded; the stale source is a duplicate, not data loss
            logger.warning(
                f"Copied {key} to {to_tier.value} but failed to delete "
                f"{from_tier.value} copy: {e}"
            )

    async def delete(self, key: StorageKey) -> None:
        for tier in (StorageTier.ACTIVE, StorageTier.ARCHIVED):
            path = self._file_path(key, tier)
            try:
                await asyncio.to_thread(path.unlink)
                logger.info(f"Deleted {self.storage_path(key, tier)}")
            except FileNotFoundError:
                continue

    async def delete_from_tier(self, key: StorageKey, tier: StorageTier) -> None:
        """Delete the object from one tier only."""
        path = self._file_path(key, StorageTier(tier))
        try:
            await asyncio.to_thread(path.unlink)
            logger.info(f"Deleted {self.storage_path(key, tier)}")
        except FileNotFoundError:
            pass
