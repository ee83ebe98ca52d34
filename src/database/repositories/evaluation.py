"""
BookVetting - Evaluation Repositories
=====================================

Append-only evaluation history and per-doctrine score breakdowns.
"""

import logging
from typing import List, Dict, Any
from uuid import UUID, uuid4

from src.database.repositories.base import BaseRepository, to_db_value
from src.shared.enums import AnalysisLevel
from src.shared.models import BookEvaluation, DoctrineCategoryScore

logger = logging.getLogger(__name__)


class EvaluationRepository(BaseRepository[BookEvaluation]):
    """
    Repository for evaluation history.

    Rows are never updated or deleted; every run (including
    re-evaluations) adds one.
    """

    @property
    def table_name(self) -> str:
        return "book_evaluations"

    def _to_entity(self, row: dict) -> BookEvaluation:
        return BookEvaluation(
            id=row['id'],
            book_id=row['book_id'],
            version=row['version'],
            score=row['score'],
            ai_model=row['ai_model'],
            analysis_level=AnalysisLevel(row['analysis_level']),
            evaluated_at=row['evaluated_at'],
        )

    def _to_record(self, entity: BookEvaluation) -> Dict[str, Any]:
        return {
            'id': entity.id or uuid4(),
            'book_id': entity.book_id,
            'version': entity.version,
            'score': entity.score,
            'ai_model': entity.ai_model,
            'analysis_level': entity.analysis_level,
            'evaluated_at': entity.evaluated_at,
        }

    async def create_evaluation(self, evaluation: BookEvaluation) -> BookEvaluation:
        return await self.create(evaluation)

class DoctrineScoreRepository:
    """Doctrine category scores; duplicate (book, category) rows are skipped."""

    def __init__(self, connection):
        self.db = connection

    async def upsert_scores(
        self,
        book_id: UUID,
        scores: List[DoctrineCategoryScore]
    ) -> int:
        """Insert scores, skipping categories the book already has."""
        if not scores:
            return 0

        await self.db.executemany(
            """
            INSERT INTO doctrine_category_scores (id, book_id, category, score, notes)
            VALUES ($1, $2, $3, $4, $5)
            ON CONFLICT (book_id, category) DO NOTHING
            """,
            [
                (uuid4(), book_id, to_db_value(s.category), s.score, s.notes)
                for s in scores
            ]
        )
        return len(scores)
