"""
BookVetting - Upload Validator Tests
====================================

Every row of the PDF replacement table, plus the book lookup.
"""

from uuid import uuid4

import pytest

from src.books.pdf_metadata import extract_pdf_metadata
from src.books.upload_validator import (
    REASON_DATED_WITH_UNDATED,
    REASON_IDENTICAL,
    REASON_NO_YEARS,
    REASON_NOT_NEWER,
    UploadValidator,
    check_replacement,
)
from src.shared.exceptions import BookNotFoundError, UploadRejectedError
from src.shared.models import PdfMetadata
from tests.conftest import make_pdf


class TestReplacementTable:

    def test_no_existing_pdf_accepts(self):
        check_replacement(None, None, PdfMetadata(hash="new", year=None))

    def test_identical_hash_rejected(self):
        with pytest.raises(UploadRejectedError) as exc:
            check_replacement("same", 2010, PdfMetadata(hash="same", year=2020))
        assert exc.value.reason == "identical file"

    def test_both_undated_rejected(self):
        with pytest.raises(UploadRejectedError) as exc:
            check_replacement("old", None, PdfMetadata(hash="new", year=None))
        assert exc.value.reason == "cannot determine publication year"

    def test_dated_replaces_undated(self):
        check_replacement("old", None, PdfMetadata(hash="new", year=2001))

    def test_undated_cannot_replace_dated(self):
        with pytest.raises(UploadRejectedError) as exc:
            check_replacement("old", 2010, PdfMetadata(hash="new", year=None))
        assert exc.value.reason == "cannot replace dated with undated"

    def test_newer_edition_accepted(self):
        check_replacement("old", 2010, PdfMetadata(hash="new", year=2011))

    @pytest.mark.parametrize("new_year", [2010, 2005])
    def test_same_or_older_edition_rejected(self, new_year):
        with pytest.raises(UploadRejectedError) as exc:
            check_replacement("old", 2010, PdfMetadata(hash="new", year=new_year))
        assert exc.value.reason == "only newer editions may replace"

    def test_reason_constants(self):
        assert REASON_IDENTICAL == "identical file"
        assert REASON_NO_YEARS == "cannot determine publication year"
        assert REASON_DATED_WITH_UNDATED == "cannot replace dated with undated"
        assert REASON_NOT_NEWER == "only newer editions may replace"


class TestUploadValidator:

    @pytest.mark.asyncio
    async def test_missing_book(self, repos):
        validator = UploadValidator(repos.books)
        with pytest.raises(BookNotFoundError):
            await validator.validate_upload(uuid4(), make_pdf(2020))

    @pytest.mark.asyncio
    async def test_first_upload_returns_metadata(self, repos, make_book):
        book = make_book()
        data = make_pdf(2020)

        metadata = await UploadValidator(repos.books).validate_upload(book.id, data)

        assert metadata.hash == extract_pdf_metadata(data).hash
        assert metadata.year == 2020

    @pytest.mark.asyncio
    async def test_uses_stored_hash_and_year(self, repos, make_book):
        existing = make_pdf(2018)
        book = make_book(
            pdf_file_hash=extract_pdf_metadata(existing).hash,
            pdf_metadata_year=2018,
        )
        validator = UploadValidator(repos.books)

        with pytest.raises(UploadRejectedError) as exc:
            await validator.validate_upload(book.id, existing)
        assert exc.value.reason == REASON_IDENTICAL

        with pytest.raises(UploadRejectedError) as exc:
            await validator.validate_upload(book.id, make_pdf(2017))
        assert exc.value.reason == REASON_NOT_NEWER

        metadata = await validator.validate_upload(book.id, make_pdf(2021))
        assert metadata.year == 2021

    @pytest.mark.asyncio
    async def test_validation_does_not_write(self, repos, make_book):
        book = make_book(pdf_file_hash="b" * 64, pdf_metadata_year=None)

        with pytest.raises(UploadRejectedError):
            await UploadValidator(repos.books).validate_upload(book.id, make_pdf(None))

        assert repos.books.updates == []
