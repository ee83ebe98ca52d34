"""
BookVetting - Book Pipeline
===========================

Submission, evaluation and PDF storage tiering for books.

Components:
- submission.py: Book submission, endorsements and PDF upload
- scorer.py: LLM scoring of a book
- evaluation_orchestrator.py: Scoring, escalation, tiering and reconciliation
- storage_orchestrator.py: Temp -> active -> archived PDF migrations
- upload_validator.py: PDF replacement policy
- visibility.py: Who may open a book
"""

from src.books.evaluation_orchestrator import (
    EvaluationOrchestrator,
    derive_visibility_tier,
    desired_storage_tier,
    is_borderline,
)
from src.books.scorer import EvaluationScorer
from src.books.storage_orchestrator import StorageOrchestrator
from src.books.submission import BookSubmission, BookSubmissionService, SubmissionResult
from src.books.upload_validator import UploadValidator
from src.books.visibility import Viewer, VisibilityChecker

__all__ = [
    'EvaluationOrchestrator',
    'derive_visibility_tier',
    'desired_storage_tier',
    'is_borderline',
    'EvaluationScorer',
    'StorageOrchestrator',
    'BookSubmission',
    'BookSubmissionService',
    'SubmissionResult',
    'UploadValidator',
    'Viewer',
    'VisibilityChecker',
]
