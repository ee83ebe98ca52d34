"""
BookVetting - Book Submission
=============================

Entry point for organizations adding books and uploading PDFs.

Submission pipeline:
    metadata lookup -> duplicate check -> create book -> endorsement
        -> enqueue evaluate-book

Upload pipeline:
    format checks -> replacement policy -> temp file -> record
        -> enqueue migrate-to-active

Everything that can reject a request runs before any record, file or
job is created.

Usage:
    service = BookSubmissionService(repos, queue, config, metadata=aggregator)

    result = await service.submit_book(
        user_id, org_id, BookSubmission(title="Knowing God", author="J.I. Packer")
    )
    await service.upload_pdf(result.id, pdf_bytes, user_id)
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional
from uuid import UUID, uuid4

from src.books.duplicate_detector import DuplicateDetector
from src.books.metadata_providers import MetadataAggregator
from src.books.upload_validator import UploadValidator
from src.core.config import AppConfig
from src.jobs.queue import EVALUATE_BOOK, MIGRATE_TO_ACTIVE, JobOptions, JobQueue
from src.shared.enums import EvaluationStatus
from src.shared.exceptions import SubmissionError
from src.shared.models import Book, BookEndorsement, BookMetadata, PdfMetadata

logger = logging.getLogger(__name__)

PDF_MAGIC = b"%PDF-"


@dataclass
class BookSubmission:
    """What a submitter provides: an ISBN, a lookup URL, or title + author."""
    isbn: Optional[str] = None
    lookup_url: Optional[str] = None
    title: Optional[str] = None
    author: Optional[str] = None
    publisher: Optional[str] = None
    publication_year: Optional[int] = None
    description: Optional[str] = None
    cover_image_url: Optional[str] = None


@dataclass
class SubmissionResult:
    id: UUID
    status: str  # pending | existing
    message: str


class BookSubmissionService:
    """Creates books, records endorsements and accepts PDF uploads."""

    def __init__(
        self,
        repos,
        queue: JobQueue,
        config: AppConfig,
        metadata: Optional[MetadataAggregator] = None,
    ):
        self.repos = repos
        self.queue = queue
        self.config = config
        self.metadata = metadata or MetadataAggregator()
        self.duplicates = DuplicateDetector(repos.books)
        self.validator = UploadValidator(repos.books)

    # =========================================================================
    # Submission
    # =========================================================================

    async def submit_book(
        self,
        user_id: UUID,
        organization_id: UUID,
        submission: BookSubmission,
    ) -> SubmissionResult:
        logger.info(f"Book submitted by user {user_id}, organization {organization_id}")

        metadata = await self._resolve_metadata(submission)

        duplicate_id = await self.duplicates.find_duplicate(metadata)
        if duplicate_id:
            await self.add_endorsement(duplicate_id, organization_id, user_id)
            return SubmissionResult(
                id=duplicate_id,
                status="existing",
                message="This book already exists. Your organization has been added as an endorser.",
            )

        book = await self.repos.books.create(Book(
            id=uuid4(),
            title=metadata.title,
            author=metadata.author,
            isbn=metadata.isbn,
            publisher=metadata.publisher,
            publication_year=metadata.publication_year,
            description=metadata.description,
            cover_image_url=metadata.cover_image_url,
            evaluation_status=EvaluationStatus.PENDING,
            submitted_by_id=user_id,
            submitted_by_organization_id=organization_id,
        ))

        await self.add_endorsement(book.id, organization_id, user_id)

        queue_config = self.config.queue
        await self.queue.enqueue(
            queue_config.evaluation_queue,
            EVALUATE_BOOK,
            {"bookId": str(book.id)},
            JobOptions(
                priority=queue_config.evaluation_priority,
                attempts=queue_config.evaluation_attempts,
                backoff=queue_config.backoff,
            ),
        )

        return SubmissionResult(
            id=book.id,
            status="pending",
            message="Your book has been submitted for evaluation.",
        )

    async def _resolve_metadata(self, submission: BookSubmission) -> BookMetadata:
        if submission.isbn:
            metadata = await self.metadata.lookup(submission.isbn)
            if metadata is None:
                raise SubmissionError("ISBN not found")
            return metadata

        if submission.lookup_url:
            metadata = await self.metadata.lookup(submission.lookup_url)
            if metadata is None:
                raise SubmissionError("Could not extract book info from URL")
            return metadata

        if submission.title and submission.author:
            return BookMetadata(
                title=submission.title,
                author=submission.author,
                publisher=submission.publisher,
                publication_year=submission.publication_year,
                description=submission.description,
                cover_image_url=submission.cover_image_url,
            )

        raise SubmissionError("Must provide ISBN, URL, or title and author")

    async def add_endorsement(
        self,
        book_id: UUID,
        organization_id: UUID,
        user_id: Optional[UUID] = None,
    ) -> BookEndorsement:
        """Endorse a book; a second endorsement by the same organization is a no-op."""
        existing = await self.repos.endorsements.find(book_id, organization_id)
        if existing:
            logger.info(f"Organization {organization_id} already endorses book {book_id}")
            return existing

        return await self.repos.endorsements.create(BookEndorsement(
            book_id=book_id,
            organization_id=organization_id,
            endorsed_by_id=user_id,
        ))

    # =========================================================================
    # PDF Upload
    # =========================================================================

    def _check_format(self, data: bytes) -> None:
        if not data:
            raise SubmissionError("PDF file is empty")
        if not data.startswith(PDF_MAGIC):
            raise SubmissionError("File is not a PDF")
        max_size = self.config.upload.max_file_size
        if len(data) > max_size:
            raise SubmissionError(
                f"PDF is {len(data)} bytes; the limit is {max_size} bytes"
            )

    async def upload_pdf(self, book_id: UUID, data: bytes, user_id: Optional[UUID] = None) -> PdfMetadata:
        """
        Accept a PDF for a book and queue its migration to storage.

        Raises:
            SubmissionError: Empty, non-PDF or oversized file
            BookNotFoundError: Unknown book
            UploadRejectedError: Replacement policy refused the file
        """
        self._check_format(data)
        pdf = await self.validator.validate_upload(book_id, data)

        temp_path = Path(self.config.upload.temp_dir) / f"{book_id}_{uuid4().hex}.pdf"

        def _write():
            temp_path.parent.mkdir(parents=True, exist_ok=True)
            temp_path.write_bytes(data)

        await asyncio.to_thread(_write)

        try:
            await self.repos.books.update(book_id, {
                'pdf_file_path': str(temp_path),
                'pdf_file_hash': pdf.hash,
                'pdf_metadata_year': pdf.year,
                'pdf_file_size': len(data),
                'pdf_uploaded_at': datetime.now(timezone.utc),
            })
        except Exception as e:
            logger.error(f"Failed to record upload for book {book_id}: {e}")
            await asyncio.to_thread(temp_path.unlink, True)
            raise

        logger.info(f"PDF uploaded for book {book_id} by user {user_id} ({len(data)} bytes)")

        queue_config = self.config.queue
        await self.queue.enqueue(
            queue_config.pdf_migration_queue,
            MIGRATE_TO_ACTIVE,
            {"bookId": str(book_id)},
            JobOptions(
                priority=queue_config.migration_priority,
                attempts=queue_config.pdf_migration_attempts,
                backoff=queue_config.backoff,
            ),
        )
        return pdf
