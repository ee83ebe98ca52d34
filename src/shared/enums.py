"""Shared enumerations for evaluation and storage."""

from enum import Enum


class EvaluationStatus(str, Enum):
    """Evaluation lifecycle of a book."""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class VisibilityTier(str, Enum):
    """Who may see a book. Ordered from least to most visible."""
    NOT_ALIGNED = "not_aligned"
    CONCEPTUALLY_ALIGNED = "conceptually_aligned"
    GLOBALLY_ALIGNED = "globally_aligned"

    @property
    def rank(self) -> int:
        return _VISIBILITY_ORDER.index(self)

    def __lt__(self, other):
        if not isinstance(other, VisibilityTier):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, VisibilityTier):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, VisibilityTier):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, VisibilityTier):
            return NotImplemented
        return self.rank >= other.rank


_VISIBILITY_ORDER = [
    VisibilityTier.NOT_ALIGNED,
    VisibilityTier.CONCEPTUALLY_ALIGNED,
    VisibilityTier.GLOBALLY_ALIGNED,
]


class AnalysisLevel(str, Enum):
    """Depth of content the score was based on."""
    ISBN_SUMMARY = "isbn_summary"
    PDF_SUMMARY = "pdf_summary"
    FULL_TEXT = "full_text"


class ContentType(str, Enum):
    """Kind of content handed to the scorer."""
    DESCRIPTION = "description"
    SUMMARY = "summary"          # not produced yet
    FULL_TEXT = "full_text"      # not produced yet

    def to_analysis_level(self) -> AnalysisLevel:
        return {
            ContentType.DESCRIPTION: AnalysisLevel.ISBN_SUMMARY,
            ContentType.SUMMARY: AnalysisLevel.PDF_SUMMARY,
            ContentType.FULL_TEXT: AnalysisLevel.FULL_TEXT,
        }[self]


class StorageTier(str, Enum):
    """Physical storage tier of a PDF."""
    ACTIVE = "active"       # hot
    ARCHIVED = "archived"   # cold


class AccountType(str, Enum):
    """Viewer account class used for mature-content gating."""
    CHILD = "child"
    TEEN = "teen"
    ADULT = "adult"
