"""
BookVetting - Job Processors
============================

Queue consumers for the two job families:

- book-evaluation queue: ``evaluate-book {bookId}``
- pdf-migration queue:   ``migrate-to-active {bookId}``,
                         ``migrate-to-archived {bookId}``

Payloads are validated before any side effect. Errors are logged and
re-raised unchanged so the queue's retry policy applies; an evaluation
job failing on its last attempt marks the book ``failed`` first.
"""

import logging
from typing import Any, Dict, Optional
from uuid import UUID

from src.books.evaluation_orchestrator import EvaluationOrchestrator
from src.books.storage_orchestrator import StorageOrchestrator
from src.core.config import AppConfig
from src.core.logging_config import job_context
from src.jobs.queue import (
    EVALUATE_BOOK,
    MIGRATE_TO_ACTIVE,
    MIGRATE_TO_ARCHIVED,
    Job,
    JobOptions,
    JobQueue,
)
from src.shared.enums import EvaluationStatus
from src.shared.exceptions import JobPayloadError, UnknownJobError

logger = logging.getLogger(__name__)


def parse_book_id(data: Optional[Dict[str, Any]]) -> UUID:
    """
    Pull the book id out of a job payload.

    Raises:
        JobPayloadError: Missing payload, or bookId missing, blank or not a UUID
    """
    if data is None:
        raise JobPayloadError("Job data is missing")

    book_id = data.get("bookId") if isinstance(data, dict) else None
    if not isinstance(book_id, str) or not book_id.strip():
        raise JobPayloadError("Invalid or missing bookId")

    try:
        return UUID(book_id.strip())
    except ValueError:
        raise JobPayloadError("Invalid or missing bookId")


class BookEvaluationProcessor:
    """Runs evaluate-book jobs."""

    def __init__(self, orchestrator: EvaluationOrchestrator, books):
        self.orchestrator = orchestrator
        self.books = books

    async def process(self, job: Job) -> None:
        if job.name != EVALUATE_BOOK:
            raise UnknownJobError(f"Unknown job name: {job.name}")

        book_id = parse_book_id(job.data)
        logger.info(
            f"Processing evaluation for book {book_id} "
            f"(attempt {job.attempts_made + 1}/{job.max_attempts})"
        )

        try:
            await self.books.set_evaluation_status(book_id, EvaluationStatus.PROCESSING)
            await self.orchestrator.evaluate_book(book_id)
        except Exception as e:
            logger.error(f"Evaluation failed for book {book_id}: {e}")
            if job.is_last_attempt:
                logger.error(f"Book {book_id} failed after {job.max_attempts} attempts")
                try:
                    await self.books.set_evaluation_status(book_id, EvaluationStatus.FAILED)
                except Exception as status_error:
                    logger.error(f"Could not mark book {book_id} failed: {status_error}")
            raise

        logger.info(f"Evaluation completed for book {book_id}")


class PdfMigrationProcessor:
    """Runs migrate-to-active and migrate-to-archived jobs."""

    def __init__(
        self,
        orchestrator: StorageOrchestrator,
        books,
        queue: JobQueue,
        config: AppConfig,
    ):
        self.orchestrator = orchestrator
        self.books = books
        self.queue = queue
        self.config = config

    async def process(self, job: Job) -> None:
        book_id = parse_book_id(job.data)
        logger.info(f"Processing {job.name} for book {book_id}")

        try:
            if job.name == MIGRATE_TO_ACTIVE:
                await self.orchestrator.migrate_to_active(book_id)
                await self._archive_if_below_threshold(book_id)
            elif job.name == MIGRATE_TO_ARCHIVED:
                await self.orchestrator.migrate_to_archived(book_id)
            else:
                raise UnknownJobError(f"Unknown job name: {job.name}")
        except Exception as e:
            logger.error(f"{job.name} failed for book {book_id}: {e}")
            raise

    async def _archive_if_below_threshold(self, book_id: UUID) -> None:
        """An upload landing after evaluation still has to follow the score."""
        book = await self.books.get_by_id(book_id)
        if book is None or book.evaluation_status != EvaluationStatus.COMPLETED:
            return
        if book.biblical_alignment_score is None:
            return
        if book.biblical_alignment_score >= self.config.evaluation.globally_aligned_threshold:
            return

        queue_config = self.config.queue
        await self.queue.enqueue(
            queue_config.pdf_migration_queue,
            MIGRATE_TO_ARCHIVED,
            {"bookId": str(book_id)},
            JobOptions(
                priority=queue_config.migration_priority,
                attempts=queue_config.pdf_migration_attempts,
                backoff=queue_config.backoff,
            ),
        )


class JobDispatcher:
    """Routes jobs to the processor registered for their queue."""

    def __init__(self):
        self._processors: Dict[str, Any] = {}

    def register(self, queue_name: str, processor) -> None:
        self._processors[queue_name] = processor

    @property
    def queues(self) -> list:
        return list(self._processors)

    async def dispatch(self, job: Job) -> None:
        processor = self._processors.get(job.queue)
        if processor is None:
            raise UnknownJobError(f"No processor registered for queue: {job.queue}")

        book_id = job.data.get("bookId") if isinstance(job.data, dict) else None
        with job_context(job_id=job.id, job_name=job.name, book_id=book_id):
            await processor.process(job)
