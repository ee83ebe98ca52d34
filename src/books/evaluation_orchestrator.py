"""
BookVetting - Evaluation Orchestrator
=====================================

Runs one evaluation of a book end to end:

    load -> select content -> primary score -> (escalate if borderline)
         -> derive visibility tier -> persist -> storage reconciliation

Steps run strictly in that order. Scorer errors propagate unchanged so
the job queue's retry policy applies.

Usage:
    orchestrator = EvaluationOrchestrator(scorer, repos, storage, config)
    result = await orchestrator.evaluate_book(book_id)

    # First evaluation with a PDF supplied at the same time
    result = await orchestrator.evaluate_book(book_id, pdf_data=pdf_bytes)
"""

import asyncio
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional
from uuid import UUID

from src.books.pdf_metadata import extract_pdf_metadata
from src.books.scorer import EvaluationScorer
from src.core.config import AppConfig, EvaluationConfig
from src.shared.enums import ContentType, EvaluationStatus, StorageTier, VisibilityTier
from src.shared.exceptions import BookNotFoundError
from src.shared.models import Book, BookEvaluation, BookMetadata, EvaluationResult
from src.storage.backend import StorageBackend

logger = logging.getLogger(__name__)


# =============================================================================
# Tier Policy
# =============================================================================

def is_borderline(score: float, config: EvaluationConfig) -> bool:
    """Within borderline_range of either visibility boundary."""
    return (
        abs(score - config.not_aligned_threshold) <= config.borderline_range
        or abs(score - config.globally_aligned_threshold) <= config.borderline_range
    )


def derive_visibility_tier(score: float, config: EvaluationConfig) -> VisibilityTier:
    if score < config.not_aligned_threshold:
        return VisibilityTier.NOT_ALIGNED
    if score < config.globally_aligned_threshold:
        return VisibilityTier.CONCEPTUALLY_ALIGNED
    return VisibilityTier.GLOBALLY_ALIGNED


def desired_storage_tier(score: float, config: EvaluationConfig) -> StorageTier:
    """Storage follows a two-way split at the globally aligned threshold."""
    if score >= config.globally_aligned_threshold:
        return StorageTier.ACTIVE
    return StorageTier.ARCHIVED


def select_content(book: Book) -> tuple:
    """Description if present, otherwise the title."""
    if book.description and book.description.strip():
        return book.description, ContentType.DESCRIPTION
    return book.title, ContentType.DESCRIPTION


# =============================================================================
# Orchestrator
# =============================================================================

class EvaluationOrchestrator:
    """
    Scores books and keeps their PDF storage tier in line with the score.

    Args:
        scorer: EvaluationScorer
        repos: Repositories container (books, evaluations, doctrine_scores)
        storage: StorageBackend holding the PDFs
        config: AppConfig
    """

    def __init__(
        self,
        scorer: EvaluationScorer,
        repos,
        storage: StorageBackend,
        config: AppConfig,
    ):
        self.scorer = scorer
        self.repos = repos
        self.storage = storage
        self.config = config

    async def evaluate_book(
        self,
        book_id: UUID,
        pdf_data: Optional[bytes] = None,
    ) -> EvaluationResult:
        book = await self.repos.books.get_by_id(book_id)
        if book is None:
            raise BookNotFoundError(book_id)

        content, content_type = select_content(book)
        metadata = BookMetadata(
            title=book.title,
            author=book.author,
            isbn=book.isbn,
            publisher=book.publisher,
            publication_year=book.publication_year,
            description=book.description,
        )

        result = await self.scorer.evaluate(metadata, content, content_type, genre=book.genre_tag)
        logger.info(f"Primary score for book {book_id}: {result.score}")

        if is_borderline(result.score, self.config.evaluation):
            logger.info(
                f"Score {result.score} is borderline, escalating to "
                f"{self.config.escalation_model.name}"
            )
            result = await self.scorer.evaluate(
                metadata,
                content,
                content_type,
                genre=book.genre_tag,
                use_escalation_model=True,
            )
            logger.info(f"Escalated score for book {book_id}: {result.score}")

        tier = derive_visibility_tier(result.score, self.config.evaluation)
        await self._save_results(book_id, result, tier)

        if pdf_data is not None:
            await self._store_new_pdf(book, pdf_data, result.score)
        elif book.has_stored_pdf:
            await self.reconcile_storage(book_id, result.score)

        logger.info(
            f"Evaluated book {book_id}: score={result.score} tier={tier.value} "
            f"model={result.model_used}"
        )
        return result

    async def _save_results(
        self,
        book_id: UUID,
        result: EvaluationResult,
        tier: VisibilityTier,
    ) -> None:
        version = self.config.evaluation.current_version

        await self.repos.books.update(book_id, {
            'biblical_alignment_score': result.score,
            'visibility_tier': tier,
            'genre_tag': result.genre_tag,
            'theological_summary': result.summary,
            'denominational_tags': result.denominational_tags,
            'mature_content': result.mature_content,
            'mature_content_reason': result.mature_content_reason,
            'theological_strengths': result.strengths,
            'theological_concerns': result.concerns,
            'scoring_reasoning': result.reasoning,
            'scripture_comparison_notes': result.scripture_comparison_notes,
            'ai_model': result.model_used,
            'analysis_level': result.analysis_level,
            'evaluation_version': version,
            'evaluation_status': EvaluationStatus.COMPLETED,
        })

        await self.repos.evaluations.create_evaluation(BookEvaluation(
            book_id=book_id,
            version=version,
            score=result.score,
            ai_model=result.model_used,
            analysis_level=result.analysis_level,
        ))

        if result.doctrine_category_scores:
            await self.repos.doctrine_scores.upsert_scores(
                book_id, result.doctrine_category_scores
            )

    # =========================================================================
    # Storage
    # =========================================================================

    async def reconcile_storage(self, book_id: UUID, score: float) -> bool:
        """
        Move the stored PDF to the tier the score calls for.

        Returns True if a move happened. Re-reads the book so a second
        call right after a move is a no-op.
        """
        book = await self.repos.books.get_by_id(book_id)
        if book is None:
            raise BookNotFoundError(book_id)
        if not book.has_stored_pdf:
            return False

        current = book.pdf_storage_tier
        desired = desired_storage_tier(score, self.config.evaluation)
        if current == desired:
            logger.debug(f"Book {book_id} already in {desired.value} storage")
            return False

        logger.info(f"Moving PDF for book {book_id} from {current.value} to {desired.value}")
        await self.storage.move(book_id, current, desired)

        try:
            await self.repos.books.update(book_id, {
                'pdf_storage_path': self.config.storage.key_for(book_id, desired),
                'pdf_storage_tier': desired,
            })
        except Exception as e:
            logger.error(
                f"Failed to record {desired.value} tier for book {book_id}, "
                f"moving PDF back: {e}"
            )
            await self.storage.move(book_id, desired, current)
            raise

        return True

    async def _store_new_pdf(self, book: Book, pdf_data: bytes, score: float) -> None:
        """Upload a PDF supplied with this run straight to its tier."""
        tier = desired_storage_tier(score, self.config.evaluation)
        pdf = extract_pdf_metadata(pdf_data)

        previous = None
        if book.has_stored_pdf and book.pdf_storage_tier == tier:
            previous = await self.storage.download_from_tier(book.id, tier)

        path = await self.storage.upload(book.id, pdf_data, tier)
        try:
            await self.repos.books.update(book.id, {
                'pdf_storage_path': path,
                'pdf_storage_tier': tier,
                'pdf_file_hash': pdf.hash,
                'pdf_metadata_year': pdf.year,
                'pdf_file_size': len(pdf_data),
                'pdf_uploaded_at': datetime.now(timezone.utc),
                'pdf_file_path': None,
            })
        except Exception as e:
            logger.error(f"Failed to record uploaded PDF for book {book.id}, rolling back upload: {e}")
            await self.storage.restore(book.id, tier, previous)
            raise

        if book.pdf_file_path:
            temp_path = Path(book.pdf_file_path)
            try:
                await asyncio.to_thread(temp_path.unlink, missing_ok=True)
            except OSError as e:
                logger.warning(f"Could not delete temp file {temp_path}: {e}")

        if book.has_stored_pdf and book.pdf_storage_tier != tier:
            try:
                await self.storage.delete_from_tier(book.id, book.pdf_storage_tier)
            except Exception as e:
                logger.warning(
                    f"Could not delete stale {book.pdf_storage_tier.value} copy "
                    f"for book {book.id}: {e}"
                )
