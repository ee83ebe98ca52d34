"""
BookVetting - Base Repository
=============================

Abstract base class for repository pattern with common CRUD operations.
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import TypeVar, Generic, List, Optional, Dict, Any
from uuid import UUID

logger = logging.getLogger(__name__)

T = TypeVar('T')


def to_db_value(value: Any) -> Any:
    """Unwrap enums (and lists of enums) for asyncpg."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, list):
        return [to_db_value(v) for v in value]
    return value


class BaseRepository(ABC, Generic[T]):
    """
    Abstract base repository with common CRUD operations.

    Subclasses must implement:
    - table_name: str
    - _to_entity(row) -> T
    - _to_record(entity) -> dict
    """

    def __init__(self, connection):
        """
        Initialize repository with database connection.

        Args:
            connection: DatabaseConnection instance
        """
        self.db = connection

    @property
    @abstractmethod
    def table_name(self) -> str:
        """Table name for this repository."""
        pass

    @abstractmethod
    def _to_entity(self, row: dict) -> T:
        """Convert database row to entity object."""
        pass

    @abstractmethod
    def _to_record(self, entity: T) -> Dict[str, Any]:
        """Convert entity object to database record."""
        pass

    # =========================================================================
    # Read Operations
    # =========================================================================

    async def get_by_id(self, id: UUID) -> Optional[T]:
        """Get entity by ID."""
        query = f"SELECT * FROM {self.table_name} WHERE id = $1"
        row = await self.db.fetchrow(query, id)
        return self._to_entity(dict(row)) if row else None

    # =========================================================================
    # Write Operations
    # =========================================================================

    async def create(self, entity: T) -> T:
        """Create a new entity."""
        record = {k: v for k, v in self._to_record(entity).items() if v is not None}
        columns = list(record.keys())
        placeholders = [f"${i+1}" for i in range(len(columns))]
        values = [to_db_value(v) for v in record.values()]

        query = f"""
            INSERT INTO {self.table_name} ({', '.join(columns)})
            VALUES ({', '.join(placeholders)})
            RETURNING *
        """

        row = await self.db.fetchrow(query, *values)
        return self._to_entity(dict(row))

    async def update(self, id: UUID, updates: Dict[str, Any]) -> Optional[T]:
        """Update an entity. Returns None if no row matched."""
        if not updates:
            return await self.get_by_id(id)

        set_parts = []
        values = []
        for i, (key, value) in enumerate(updates.items(), start=1):
            set_parts.append(f"{key} = ${i}")
            values.append(to_db_value(value))

        values.append(id)

        query = f"""
            UPDATE {self.table_name}
            SET {', '.join(set_parts)}, updated_at = CURRENT_TIMESTAMP
            WHERE id = ${len(values)}
            RETURNING *
        """

        row = await self.db.fetchrow(query, *values)
        return self._to_entity(dict(row)) if row else None

    # =========================================================================
    # Query Helpers
    # =========================================================================

    async def find_by(
        self,
        conditions: Dict[str, Any],
        limit: int = 100
    ) -> List[T]:
        """Find entities matching all conditions."""
        where_parts = []
        values = []
        for i, (key, value) in enumerate(conditions.items(), start=1):
            where_parts.append(f"{key} = ${i}")
            values.append(to_db_value(value))

        values.append(limit)
        where_clause = ' AND '.join(where_parts) if where_parts else 'TRUE'

        query = f"""
            SELECT * FROM {self.table_name}
            WHERE {where_clause}
            ORDER BY created_at DESC
            LIMIT ${len(values)}
        """

        rows = await self.db.fetch(query, *values)
        return [self._to_entity(dict(row)) for row in rows]

    async def find_one_by(self, conditions: Dict[str, Any]) -> Optional[T]:
        """Find single entity matching conditions."""
        results = await self.find_by(conditions, limit=1)
        return results[0] if results else None
