"""
BookVetting - Storage Orchestrator Tests
========================================

Temp -> active and active -> archived migrations with compensation.
"""

from pathlib import Path
from unittest.mock import patch
from uuid import uuid4

import pytest

from src.books.storage_orchestrator import StorageOrchestrator
from src.shared.enums import StorageTier
from src.shared.exceptions import BookNotFoundError, DatabaseError, StorageError, StorageStateError
from tests.conftest import make_pdf


@pytest.fixture
def orchestrator(repos, storage, app_config):
    return StorageOrchestrator(repos.books, storage, app_config)


@pytest.fixture
def temp_pdf(app_config):
    def _write(name: str = "upload.pdf", data: bytes = None) -> Path:
        path = Path(app_config.upload.temp_dir) / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data or make_pdf(2020))
        return path
    return _write


class TestMigrateToActive:

    @pytest.mark.asyncio
    async def test_uploads_and_removes_temp(self, orchestrator, repos, storage, make_book, temp_pdf):
        path = temp_pdf()
        book = make_book(pdf_file_path=str(path))

        storage_path = await orchestrator.migrate_to_active(book.id)

        saved = repos.books.books[book.id]
        assert storage_path == f"active/books/{book.id}.pdf"
        assert saved.pdf_storage_path == storage_path
        assert saved.pdf_storage_tier == StorageTier.ACTIVE
        assert saved.pdf_file_path is None
        assert storage.objects[(str(book.id), StorageTier.ACTIVE)] == make_pdf(2020)
        assert not path.exists()

    @pytest.mark.asyncio
    async def test_missing_temp_path_fails_before_update(self, orchestrator, repos, storage, make_book):
        book = make_book(pdf_file_path=None)

        with pytest.raises(StorageStateError):
            await orchestrator.migrate_to_active(book.id)

        assert repos.books.updates == []
        assert storage.calls == []

    @pytest.mark.asyncio
    async def test_missing_book(self, orchestrator):
        with pytest.raises(BookNotFoundError):
            await orchestrator.migrate_to_active(uuid4())

    @pytest.mark.asyncio
    async def test_update_failure_deletes_upload_keeps_temp(
        self, orchestrator, repos, storage, make_book, temp_pdf
    ):
        path = temp_pdf()
        book = make_book(pdf_file_path=str(path))
        repos.books.fail_update_when = lambda updates: True

        with pytest.raises(DatabaseError):
            await orchestrator.migrate_to_active(book.id)

        assert ("delete_from_tier", str(book.id), StorageTier.ACTIVE) in storage.calls
        assert storage.tiers_holding(book.id) == []
        assert path.exists()
        assert repos.books.books[book.id].pdf_file_path == str(path)

    @pytest.mark.asyncio
    async def test_upload_failure_keeps_temp(self, orchestrator, repos, storage, make_book, temp_pdf):
        path = temp_pdf()
        book = make_book(pdf_file_path=str(path))
        storage.fail_upload = True

        with pytest.raises(StorageError):
            await orchestrator.migrate_to_active(book.id)

        assert repos.books.updates == []
        assert path.exists()

    @pytest.mark.asyncio
    async def test_temp_delete_failure_is_not_fatal(
        self, orchestrator, repos, storage, make_book, temp_pdf
    ):
        path = temp_pdf()
        book = make_book(pdf_file_path=str(path))

        with patch.object(Path, "unlink", side_effect=PermissionError("read-only")):
            await orchestrator.migrate_to_active(book.id)

        assert repos.books.books[book.id].pdf_storage_tier == StorageTier.ACTIVE
        assert path.exists()

    @pytest.mark.asyncio
    async def test_replacement_clears_archived_copy(
        self, orchestrator, repos, storage, stored_book, temp_pdf
    ):
        book = stored_book(StorageTier.ARCHIVED, score=60)
        path = temp_pdf()
        repos.books.books[book.id].pdf_file_path = str(path)

        await orchestrator.migrate_to_active(book.id)

        assert storage.tiers_holding(book.id) == [StorageTier.ACTIVE]
        assert repos.books.books[book.id].pdf_storage_tier == StorageTier.ACTIVE

    @pytest.mark.asyncio
    async def test_replacement_overwrites_active_copy(
        self, orchestrator, repos, storage, stored_book, temp_pdf
    ):
        book = stored_book(StorageTier.ACTIVE, score=95)
        path = temp_pdf(data=make_pdf(2023))
        repos.books.books[book.id].pdf_file_path = str(path)

        await orchestrator.migrate_to_active(book.id)

        assert storage.objects[(str(book.id), StorageTier.ACTIVE)] == make_pdf(2023)
        assert not path.exists()

    @pytest.mark.asyncio
    async def test_update_failure_restores_replaced_active_copy(
        self, orchestrator, repos, storage, stored_book, temp_pdf
    ):
        book = stored_book(StorageTier.ACTIVE, score=95)
        path = temp_pdf(data=make_pdf(2023))
        repos.books.books[book.id].pdf_file_path = str(path)
        repos.books.fail_update_when = lambda updates: True

        with pytest.raises(DatabaseError):
            await orchestrator.migrate_to_active(book.id)

        saved = repos.books.books[book.id]
        assert saved.pdf_storage_tier == StorageTier.ACTIVE
        assert saved.pdf_storage_path == f"active/books/{book.id}.pdf"
        assert storage.objects[(str(book.id), StorageTier.ACTIVE)] == b"%PDF-1.4 stored"
        assert ("delete_from_tier", str(book.id), StorageTier.ACTIVE) not in storage.calls
        assert path.exists()


class TestMigrateToArchived:

    @pytest.mark.asyncio
    async def test_moves_to_archived(self, orchestrator, repos, storage, stored_book):
        book = stored_book(StorageTier.ACTIVE, score=60)

        await orchestrator.migrate_to_archived(book.id)

        assert storage.calls == [("move", str(book.id), StorageTier.ACTIVE, StorageTier.ARCHIVED)]
        saved = repos.books.books[book.id]
        assert saved.pdf_storage_tier == StorageTier.ARCHIVED
        assert saved.pdf_storage_path == f"archived/books/{book.id}.pdf"

    @pytest.mark.asyncio
    async def test_already_archived_is_noop(self, orchestrator, repos, storage, stored_book):
        book = stored_book(StorageTier.ARCHIVED, score=60)

        await orchestrator.migrate_to_archived(book.id)
        await orchestrator.migrate_to_archived(book.id)

        assert storage.count("move") == 0
        assert repos.books.updates == []

    @pytest.mark.asyncio
    async def test_no_stored_pdf(self, orchestrator, make_book, storage):
        book = make_book()

        with pytest.raises(StorageStateError):
            await orchestrator.migrate_to_archived(book.id)

        assert storage.calls == []

    @pytest.mark.asyncio
    async def test_update_failure_moves_back(self, orchestrator, repos, storage, stored_book):
        book = stored_book(StorageTier.ACTIVE, score=60)
        repos.books.fail_update_when = lambda updates: True

        with pytest.raises(DatabaseError):
            await orchestrator.migrate_to_archived(book.id)

        assert storage.count("move") == 2
        assert storage.calls[-1] == ("move", str(book.id), StorageTier.ARCHIVED, StorageTier.ACTIVE)
        assert storage.tiers_holding(book.id) == [StorageTier.ACTIVE]
        assert repos.books.books[book.id].pdf_storage_tier == StorageTier.ACTIVE

    def test_extract_pdf_metadata(self, orchestrator):
        metadata = orchestrator.extract_pdf_metadata(make_pdf(2003))
        assert metadata.year == 2003
        assert len(metadata.hash) == 64
