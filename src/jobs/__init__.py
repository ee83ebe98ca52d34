"""
BookVetting - Jobs
==================

Queue client and processors for evaluation and PDF migration jobs.
"""

from src.jobs.queue import (
    EVALUATE_BOOK,
    MIGRATE_TO_ACTIVE,
    MIGRATE_TO_ARCHIVED,
    InMemoryJobQueue,
    Job,
    JobOptions,
    JobQueue,
    RedisJobQueue,
    create_job_queue,
)
from src.jobs.processors import (
    BookEvaluationProcessor,
    JobDispatcher,
    PdfMigrationProcessor,
)

__all__ = [
    'EVALUATE_BOOK',
    'MIGRATE_TO_ACTIVE',
    'MIGRATE_TO_ARCHIVED',
    'InMemoryJobQueue',
    'Job',
    'JobOptions',
    'JobQueue',
    'RedisJobQueue',
    'create_job_queue',
    'BookEvaluationProcessor',
    'JobDispatcher',
    'PdfMigrationProcessor',
]
