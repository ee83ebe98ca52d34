"""
BookVetting Models
==================

Domain records for books, evaluations and PDF storage state.

Database rows are mapped to these dataclasses by the repositories
(from_row / to_record); services never see raw asyncpg records.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any
from uuid import UUID

from src.shared.enums import (
    AnalysisLevel,
    EvaluationStatus,
    StorageTier,
    VisibilityTier,
)


# =============================================================================
# SUBMISSION MODELS
# =============================================================================

@dataclass
class BookMetadata:
    """Bibliographic data used for duplicate detection and scoring."""
    title: str
    author: str
    isbn: Optional[str] = None
    publisher: Optional[str] = None
    publication_year: Optional[int] = None
    description: Optional[str] = None
    cover_image_url: Optional[str] = None


@dataclass
class PdfMetadata:
    """Fingerprint and best-effort publication year of a PDF."""
    hash: str
    year: Optional[int] = None


# =============================================================================
# EVALUATION MODELS
# =============================================================================

@dataclass
class DoctrineCategoryScore:
    """Per-doctrine breakdown of an evaluation."""
    category: str
    score: float
    notes: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"category": self.category, "score": self.score, "notes": self.notes}


@dataclass
class EvaluationResult:
    """Normalized scorer verdict."""
    score: float
    model_used: str
    analysis_level: AnalysisLevel
    genre_tag: str = "general"
    summary: str = ""
    doctrine_category_scores: List[DoctrineCategoryScore] = field(default_factory=list)
    denominational_tags: List[str] = field(default_factory=list)
    mature_content: bool = False
    mature_content_reason: Optional[str] = None
    strengths: List[str] = field(default_factory=list)
    concerns: List[str] = field(default_factory=list)
    reasoning: str = ""
    scripture_comparison_notes: str = ""


@dataclass
class BookEvaluation:
    """Append-only history row, one per evaluation run."""
    book_id: UUID
    version: str
    score: float
    ai_model: str
    analysis_level: AnalysisLevel
    evaluated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    id: Optional[UUID] = None


@dataclass
class BookEndorsement:
    """An organization vouching for a book. Unique per (book, organization)."""
    book_id: UUID
    organization_id: UUID
    endorsed_by_id: Optional[UUID] = None
    id: Optional[UUID] = None
    created_at: Optional[datetime] = None


# =============================================================================
# BOOK
# =============================================================================

@dataclass
class Book:
    """
    A submitted book with its evaluation and PDF storage state.

    PDF location fields:
        pdf_file_path: temp-disk path, set only until migration to storage
        pdf_storage_path / pdf_storage_tier: always set or cleared together
    """
    id: UUID
    title: str
    author: str
    isbn: Optional[str] = None
    publisher: Optional[str] = None
    publication_year: Optional[int] = None
    description: Optional[str] = None
    cover_image_url: Optional[str] = None
    genre_tag: Optional[str] = None
    submitted_by_id: Optional[UUID] = None
    submitted_by_organization_id: Optional[UUID] = None

    # Evaluation
    evaluation_status: EvaluationStatus = EvaluationStatus.PENDING
    biblical_alignment_score: Optional[float] = None
    visibility_tier: VisibilityTier = VisibilityTier.NOT_ALIGNED
    ai_model: Optional[str] = None
    analysis_level: Optional[AnalysisLevel] = None
    evaluation_version: Optional[str] = None
    theological_summary: Optional[str] = None
    denominational_tags: List[str] = field(default_factory=list)
    mature_content: bool = False
    mature_content_reason: Optional[str] = None
    scripture_comparison_notes: Optional[str] = None
    theological_strengths: List[str] = field(default_factory=list)
    theological_concerns: List[str] = field(default_factory=list)
    scoring_reasoning: Optional[str] = None

    # PDF
    pdf_file_path: Optional[str] = None
    pdf_file_hash: Optional[str] = None
    pdf_metadata_year: Optional[int] = None
    pdf_storage_path: Optional[str] = None
    pdf_storage_tier: Optional[StorageTier] = None
    pdf_file_size: Optional[int] = None
    pdf_uploaded_at: Optional[datetime] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def has_stored_pdf(self) -> bool:
        return bool(self.pdf_storage_path) and self.pdf_storage_tier is not None

    @property
    def has_pdf(self) -> bool:
        return bool(self.pdf_file_hash) or self.has_stored_pdf or bool(self.pdf_file_path)

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Book":
        """Build from a database row (dict)."""
        tier = row.get("pdf_storage_tier")
        level = row.get("analysis_level")
        return cls(
            id=row["id"],
            title=row["title"],
            author=row["author"],
            isbn=row.get("isbn"),
            publisher=row.get("publisher"),
            publication_year=row.get("publication_year"),
            description=row.get("description"),
            cover_image_url=row.get("cover_image_url"),
            genre_tag=row.get("genre_tag"),
            submitted_by_id=row.get("submitted_by_id"),
            submitted_by_organization_id=row.get("submitted_by_organization_id"),
            evaluation_status=EvaluationStatus(row.get("evaluation_status") or "pending"),
            biblical_alignment_score=row.get("biblical_alignment_score"),
            visibility_tier=VisibilityTier(row.get("visibility_tier") or "not_aligned"),
            ai_model=row.get("ai_model"),
            analysis_level=AnalysisLevel(level) if level else None,
            evaluation_version=row.get("evaluation_version"),
            theological_summary=row.get("theological_summary"),
            denominational_tags=list(row.get("denominational_tags") or []),
            mature_content=bool(row.get("mature_content")),
            mature_content_reason=row.get("mature_content_reason"),
            scripture_comparison_notes=row.get("scripture_comparison_notes"),
            theological_strengths=list(row.get("theological_strengths") or []),
            theological_concerns=list(row.get("theological_concerns") or []),
            scoring_reasoning=row.get("scoring_reasoning"),
            pdf_file_path=row.get("pdf_file_path"),
            pdf_file_hash=row.get("pdf_file_hash"),
            pdf_metadata_year=row.get("pdf_metadata_year"),
            pdf_storage_path=row.get("pdf_storage_path"),
            pdf_storage_tier=StorageTier(tier) if tier else None,
            pdf_file_size=row.get("pdf_file_size"),
            pdf_uploaded_at=row.get("pdf_uploaded_at"),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )
