"""
BookVetting - Storage Orchestrator
==================================

Physical tier migrations for book PDFs. Each migration is a short saga:
the storage step runs first, then the book record is updated, and a
failed record update triggers a compensating storage step before the
error is re-raised.

migrate_to_active:   temp file on disk -> active tier
migrate_to_archived: active tier -> archived tier

Usage:
    orchestrator = StorageOrchestrator(repos.books, storage, config)
    await orchestrator.migrate_to_active(book_id)
"""

import asyncio
import logging
from pathlib import Path
from uuid import UUID

from src.books.pdf_metadata import extract_pdf_metadata as _extract_pdf_metadata
from src.core.config import AppConfig
from src.shared.enums import StorageTier
from src.shared.exceptions import BookNotFoundError, StorageStateError
from src.shared.models import Book, PdfMetadata
from src.storage.backend import StorageBackend

logger = logging.getLogger(__name__)


class StorageOrchestrator:
    """Moves PDFs between temp disk, active and archived storage."""

    def __init__(self, books, storage: StorageBackend, config: AppConfig):
        self.books = books
        self.storage = storage
        self.config = config

    async def _load(self, book_id: UUID) -> Book:
        book = await self.books.get_by_id(book_id)
        if book is None:
            raise BookNotFoundError(book_id)
        return book

    # =========================================================================
    # Temp -> Active
    # =========================================================================

    async def migrate_to_active(self, book_id: UUID) -> str:
        """
        Upload the book's temp file to the active tier.

        The temp file is removed only after the record points at the
        uploaded object; until then it is the only valid copy. A stored
        active copy being replaced is written back if the record update
        fails.

        Returns:
            Storage path of the uploaded object

        Raises:
            StorageStateError: If the book has no temp file to migrate
        """
        book = await self._load(book_id)
        if not book.pdf_file_path:
            raise StorageStateError(f"Book {book_id} has no PDF file to migrate")

        temp_path = Path(book.pdf_file_path)
        data = await asyncio.to_thread(temp_path.read_bytes)

        # The upload overwrites an active copy of a replaced edition
        previous = None
        if book.pdf_storage_tier == StorageTier.ACTIVE:
            previous = await self.storage.download_from_tier(book_id, StorageTier.ACTIVE)

        path = await self.storage.upload(book_id, data, StorageTier.ACTIVE)

        try:
            await self.books.update(book_id, {
                'pdf_storage_path': path,
                'pdf_storage_tier': StorageTier.ACTIVE,
                'pdf_file_path': None,
            })
        except Exception as e:
            logger.error(
                f"Failed to record active storage for book {book_id}, "
                f"{'restoring previous' if previous is not None else 'deleting uploaded'} object: {e}"
            )
            await self.storage.restore(book_id, StorageTier.ACTIVE, previous)
            raise

        try:
            await asyncio.to_thread(temp_path.unlink)
        except OSError as e:
            logger.warning(f"Could not delete temp file {temp_path}: {e}")

        if book.pdf_storage_tier == StorageTier.ARCHIVED:
            # A replaced edition may still sit in cold storage
            try:
                await self.storage.delete_from_tier(book_id, StorageTier.ARCHIVED)
            except Exception as e:
                logger.warning(f"Could not delete archived copy for book {book_id}: {e}")

        logger.info(f"Migrated PDF for book {book_id} to active storage")
        return path

    # =========================================================================
    # Active -> Archived
    # =========================================================================

    async def migrate_to_archived(self, book_id: UUID) -> None:
        """
        Move the book's PDF to cold storage. A no-op if already archived.

        Raises:
            StorageStateError: If the book has no stored PDF
        """
        book = await self._load(book_id)

        if book.pdf_storage_tier == StorageTier.ARCHIVED:
            logger.info(f"Book {book_id} is already archived")
            return

        if not book.has_stored_pdf:
            raise StorageStateError(f"Book {book_id} has no stored PDF to archive")

        await self.storage.move(book_id, StorageTier.ACTIVE, StorageTier.ARCHIVED)

        try:
            await self.books.update(book_id, {
                'pdf_storage_path': self.config.storage.key_for(book_id, StorageTier.ARCHIVED),
                'pdf_storage_tier': StorageTier.ARCHIVED,
            })
        except Exception as e:
            logger.error(f"Failed to record archival of book {book_id}, moving PDF back: {e}")
            await self.storage.move(book_id, StorageTier.ARCHIVED, StorageTier.ACTIVE)
            raise

        logger.info(f"Archived PDF for book {book_id}")

    def extract_pdf_metadata(self, data: bytes) -> PdfMetadata:
        return _extract_pdf_metadata(data)
