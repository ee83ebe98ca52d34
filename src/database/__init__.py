"""
BookVetting - Database Layer
============================

PostgreSQL database layer.

Components:
- connection.py: Connection pool management
- repositories/: CRUD operations for each entity type
- schema.sql: Table definitions

Usage:
    from src.database import init_database, get_repositories

    db = await init_database("postgresql://...")
    repos = get_repositories(db)

    book = await repos.books.get_by_id(book_id)
"""

from src.database.connection import (
    DatabaseConnection,
    init_database,
    close_database,
)

from src.database.repositories import (
    BookRepository,
    EvaluationRepository,
    DoctrineScoreRepository,
    EndorsementRepository,
)


class Repositories:
    """
    Container for all repository instances.

    Provides convenient access to all repositories with a single
    database connection.
    """

    def __init__(self, db: DatabaseConnection):
        self.db = db
        self._books = None
        self._evaluations = None
        self._doctrine_scores = None
        self._endorsements = None

    @property
    def books(self) -> BookRepository:
        if self._books is None:
            self._books = BookRepository(self.db)
        return self._books

    @property
    def evaluations(self) -> EvaluationRepository:
        if self._evaluations is None:
            self._evaluations = EvaluationRepository(self.db)
        return self._evaluations

    @property
    def doctrine_scores(self) -> DoctrineScoreRepository:
        if self._doctrine_scores is None:
            self._doctrine_scores = DoctrineScoreRepository(self.db)
        return self._doctrine_scores

    @property
    def endorsements(self) -> EndorsementRepository:
        if self._endorsements is None:
            self._endorsements = EndorsementRepository(self.db)
        return self._endorsements


def get_repositories(db: DatabaseConnection) -> Repositories:
    """Repository container over an open connection."""
    return Repositories(db)


__all__ = [
    'DatabaseConnection',
    'init_database',
    'close_database',
    'BookRepository',
    'EvaluationRepository',
    'DoctrineScoreRepository',
    'EndorsementRepository',
    'Repositories',
    'get_repositories',
]
