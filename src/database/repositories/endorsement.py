"""
BookVetting - Endorsement Repository
====================================

Organization endorsements of books, unique per (book, organization).
"""

import logging
from typing import Optional, Dict, Any
from uuid import UUID, uuid4

from src.database.repositories.base import BaseRepository
from src.shared.models import BookEndorsement

logger = logging.getLogger(__name__)


class EndorsementRepository(BaseRepository[BookEndorsement]):
    """Repository for book endorsements."""

    @property
    def table_name(self) -> str:
        return "book_endorsements"

    def _to_entity(self, row: dict) -> BookEndorsement:
        return BookEndorsement(
            id=row['id'],
            book_id=row['book_id'],
            organization_id=row['organization_id'],
            endorsed_by_id=row.get('endorsed_by_id'),
            created_at=row.get('created_at'),
        )

    def _to_record(self, entity: BookEndorsement) -> Dict[str, Any]:
        return {
            'id': entity.id or uuid4(),
            'book_id': entity.book_id,
            'organization_id': entity.organization_id,
            'endorsed_by_id': entity.endorsed_by_id,
        }

    async def find(self, book_id: UUID, organization_id: UUID) -> Optional[BookEndorsement]:
        return await self.find_one_by({
            'book_id': book_id,
            'organization_id': organization_id,
        })
