"""
BookVetting - Book Repository
=============================

Repository for book records, including evaluation and PDF storage fields.
"""

import logging
from dataclasses import asdict
from typing import Optional, Dict, Any
from uuid import UUID

from src.database.repositories.base import BaseRepository
from src.shared.enums import EvaluationStatus
from src.shared.models import Book

logger = logging.getLogger(__name__)


class BookRepository(BaseRepository[Book]):
    """
    Repository for book operations.

    All writes are whole-column updates keyed by id; there is no
    optimistic-concurrency token, so concurrent writers to the same
    book are last-writer-wins.
    """

    @property
    def table_name(self) -> str:
        return "books"

    def _to_entity(self, row: dict) -> Book:
        return Book.from_row(row)

    def _to_record(self, entity: Book) -> Dict[str, Any]:
        record = asdict(entity)
        record.pop('created_at', None)
        record.pop('updated_at', None)
        return record

    # =========================================================================
    # Custom Queries
    # =========================================================================

    async def find_by_isbn(self, isbn: str) -> Optional[Book]:
        """Exact ISBN match."""
        return await self.find_one_by({'isbn': isbn})

    async def find_by_title_author(self, title: str, author: str) -> Optional[Book]:
        """Case-insensitive substring match on both title and author."""
        query = """
            SELECT * FROM books
            WHERE strpos(lower(title), lower($1)) > 0
              AND strpos(lower(author), lower($2)) > 0
            ORDER BY created_at ASC
            LIMIT 1
        """
        row = await self.db.fetchrow(query, title, author)
        return self._to_entity(dict(row)) if row else None

    async def set_evaluation_status(
        self,
        id: UUID,
        status: EvaluationStatus
    ) -> Optional[Book]:
        """Set only the evaluation status."""
        return await self.update(id, {'evaluation_status': status})
