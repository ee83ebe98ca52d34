"""
BookVetting - Database Repositories
===================================

Repository classes for database operations.
"""

from src.database.repositories.base import BaseRepository
from src.database.repositories.book import BookRepository
from src.database.repositories.evaluation import EvaluationRepository, DoctrineScoreRepository
from src.database.repositories.endorsement import EndorsementRepository

__all__ = [
    'BaseRepository',
    'BookRepository',
    'EvaluationRepository',
    'DoctrineScoreRepository',
    'EndorsementRepository',
]
