"""
BookVetting - PDF Replacement Policy
====================================

Decides whether an uploaded PDF may become a book's current file.

A book without a PDF accepts anything. Otherwise the new file must
differ in content and be a strictly newer edition, judged by the
metadata year embedded in each file:

    existing year | new year | outcome
    --------------+----------+------------------------------------
    none          | none     | reject: cannot determine publication year
    none          | Y        | accept (dated beats undated)
    Y             | none     | reject: cannot replace dated with undated
    Ye            | Yn > Ye  | accept (newer edition)
    Ye            | Yn <= Ye | reject: only newer editions may replace
"""

import logging
from typing import Optional

from src.books.pdf_metadata import extract_pdf_metadata
from src.shared.exceptions import BookNotFoundError, UploadRejectedError
from src.shared.models import Book, PdfMetadata

logger = logging.getLogger(__name__)

REASON_IDENTICAL = "identical file"
REASON_NO_YEARS = "cannot determine publication year"
REASON_DATED_WITH_UNDATED = "cannot replace dated with undated"
REASON_NOT_NEWER = "only newer editions may replace"


def check_replacement(
    existing_hash: Optional[str],
    existing_year: Optional[int],
    new: PdfMetadata,
) -> None:
    """
    Apply the replacement table.

    Raises:
        UploadRejectedError: With ``reason`` set to one of the REASON_* texts
    """
    if not existing_hash:
        return

    if new.hash == existing_hash:
        raise UploadRejectedError(REASON_IDENTICAL, "this PDF matches the current file")

    if existing_year is None and new.year is None:
        raise UploadRejectedError(
            REASON_NO_YEARS, "neither the current nor the new PDF carries a date"
        )

    if existing_year is None:
        return

    if new.year is None:
        raise UploadRejectedError(
            REASON_DATED_WITH_UNDATED, f"current PDF is dated {existing_year}"
        )

    if new.year <= existing_year:
        raise UploadRejectedError(
            REASON_NOT_NEWER, f"new PDF is from {new.year}, current is from {existing_year}"
        )


class UploadValidator:
    """Runs the replacement policy against the stored book record."""

    def __init__(self, books):
        self.books = books

    async def validate_upload(self, book_id, data: bytes) -> PdfMetadata:
        """
        Validate an upload for a book.

        Returns:
            Metadata of the new file, for the caller to persist

        Raises:
            BookNotFoundError: If the book does not exist
            UploadRejectedError: If the policy rejects the file
        """
        book: Optional[Book] = await self.books.get_by_id(book_id)
        if book is None:
            raise BookNotFoundError(book_id)

        metadata = extract_pdf_metadata(data)

        try:
            check_replacement(book.pdf_file_hash, book.pdf_metadata_year, metadata)
        except UploadRejectedError as e:
            logger.info(f"Upload for book {book_id} rejected: {e}")
            raise

        return metadata
