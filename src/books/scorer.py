"""
BookVetting - Evaluation Scorer
===============================

Sends a book's metadata and content to the scoring model and turns the
JSON verdict into an EvaluationResult.

Usage:
    scorer = EvaluationScorer(AnthropicLLMClient(), config)

    result = await scorer.evaluate(
        metadata=BookMetadata(title="...", author="..."),
        content=book.description,
        content_type=ContentType.DESCRIPTION,
    )

Failures:
    - Provider errors propagate unchanged (retried by the job queue)
    - No text block / invalid JSON / missing score -> LLMParsingError
"""

import logging
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.books.llm_client import LLMClient
from src.books.prompts import build_evaluation_prompt
from src.core.config import AppConfig
from src.shared.enums import ContentType
from src.shared.models import BookMetadata, DoctrineCategoryScore, EvaluationResult
from src.shared.parsing import extract_text_block, parse_json_response

logger = logging.getLogger(__name__)


# =============================================================================
# Verdict Schema
# =============================================================================

class DoctrineVerdict(BaseModel):
    category: str
    score: float
    notes: Optional[str] = None


class ScoringVerdict(BaseModel):
    """
    JSON object the model is asked to return.

    Only the score is required; every other key falls back to an empty
    value so a sloppy but parseable answer still yields a result.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    score: float = Field(alias="biblicalAlignmentScore")
    genre_tag: str = Field(default="general", alias="genreTag")
    summary: str = Field(default="", alias="theologicalSummary")
    doctrine_category_scores: List[DoctrineVerdict] = Field(
        default_factory=list, alias="doctrineCategoryScores"
    )
    denominational_tags: List[str] = Field(default_factory=list, alias="denominationalTags")
    mature_content: bool = Field(default=False, alias="matureContent")
    mature_content_reason: Optional[str] = Field(default=None, alias="matureContentReason")
    strengths: List[str] = Field(default_factory=list, alias="theologicalStrengths")
    concerns: List[str] = Field(default_factory=list, alias="theologicalConcerns")
    reasoning: str = Field(default="", alias="scoringReasoning")
    scripture: str = Field(default="", alias="scriptureComparisonNotes")

    @field_validator("score")
    @classmethod
    def clamp_score(cls, v: float) -> float:
        return max(0.0, min(100.0, v))

    @field_validator("genre_tag", mode="before")
    @classmethod
    def default_genre(cls, v: Any) -> str:
        return v or "general"

    @field_validator("summary", "reasoning", "scripture", mode="before")
    @classmethod
    def default_text(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("mature_content", mode="before")
    @classmethod
    def default_flag(cls, v: Any) -> bool:
        return bool(v) if v is not None else False

    @field_validator("denominational_tags", "strengths", "concerns", mode="before")
    @classmethod
    def default_list(cls, v: Any) -> List[str]:
        if not v:
            return []
        if isinstance(v, str):
            return [v]
        return [str(item) for item in v]

    @field_validator("doctrine_category_scores", mode="before")
    @classmethod
    def drop_malformed_doctrines(cls, v: Any) -> list:
        if not isinstance(v, list):
            return []
        kept = []
        for item in v:
            if (
                isinstance(item, dict)
                and item.get("category")
                and isinstance(item.get("score"), (int, float))
                and not isinstance(item.get("score"), bool)
            ):
                kept.append(item)
        return kept


# =============================================================================
# Scorer
# =============================================================================

class EvaluationScorer:
    """Scores a book with the primary or escalation model."""

    def __init__(self, llm: LLMClient, config: AppConfig):
        self.llm = llm
        self.config = config

    async def evaluate(
        self,
        metadata: BookMetadata,
        content: str,
        content_type: ContentType,
        genre: Optional[str] = None,
        use_escalation_model: bool = False,
    ) -> EvaluationResult:
        model = self.config.escalation_model if use_escalation_model else self.config.primary_model
        logger.info(f"Evaluating book '{metadata.title}' with {model.name}")

        prompt = build_evaluation_prompt(
            title=metadata.title,
            author=metadata.author,
            content=content,
            genre=genre,
        )

        response = await self.llm.complete(
            model=model.name,
            max_tokens=model.max_tokens,
            temperature=model.temperature,
            prompt=prompt,
        )

        text = extract_text_block(response)
        verdict = parse_json_response(text, ScoringVerdict)

        return EvaluationResult(
            score=verdict.score,
            model_used=model.name,
            analysis_level=ContentType(content_type).to_analysis_level(),
            genre_tag=verdict.genre_tag,
            summary=verdict.summary,
            doctrine_category_scores=[
                DoctrineCategoryScore(category=d.category, score=d.score, notes=d.notes)
                for d in verdict.doctrine_category_scores
            ],
            denominational_tags=verdict.denominational_tags,
            mature_content=verdict.mature_content,
            mature_content_reason=verdict.mature_content_reason,
            strengths=verdict.strengths,
            concerns=verdict.concerns,
            reasoning=verdict.reasoning,
            scripture_comparison_notes=verdict.scripture,
        )
