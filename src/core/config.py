"""
BookVetting - Configuration
===========================

Thresholds, scoring models, storage tiers, upload limits and queue
options. Everything here can be overridden from the environment.

Usage:
    config = AppConfig.from_env()

    tier = derive_visibility_tier(score, config.evaluation)

Environment Variables:
    NOT_ALIGNED_THRESHOLD, GLOBALLY_ALIGNED_THRESHOLD, BORDERLINE_RANGE
    EVALUATION_VERSION
    PRIMARY_MODEL, ESCALATION_MODEL, SCORING_MAX_TOKENS, SCORING_TEMPERATURE
    STORAGE_ROOT, ACTIVE_BUCKET, ARCHIVED_BUCKET
    PDF_TEMP_DIR, PDF_MAX_FILE_SIZE
    EVALUATION_ATTEMPTS, PDF_MIGRATION_ATTEMPTS, PDF_MIGRATION_BACKOFF_DELAY
    REDIS_URL, WORKER_CONCURRENCY
"""

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Dict, Optional

from src.shared.enums import AccountType, StorageTier
from src.shared.exceptions import ConfigurationError


@dataclass
class EvaluationConfig:
    """Score thresholds and audit version."""
    not_aligned_threshold: float = 70
    globally_aligned_threshold: float = 90
    borderline_range: float = 3
    current_version: str = "1.0.0"

    def __post_init__(self):
        if self.not_aligned_threshold >= self.globally_aligned_threshold:
            raise ConfigurationError(
                "not_aligned_threshold must be below globally_aligned_threshold "
                f"({self.not_aligned_threshold} >= {self.globally_aligned_threshold})"
            )
        if self.borderline_range < 0:
            raise ConfigurationError("borderline_range must be non-negative")


@dataclass
class ScoringModelConfig:
    """One scoring model and its call parameters."""
    name: str
    max_tokens: int = 4096
    temperature: float = 0.0


@dataclass
class StorageTierConfig:
    """Bucket and key prefix of one storage tier."""
    bucket: str
    prefix: str


@dataclass
class StorageConfig:
    """Two-tier object store layout."""
    root_dir: Path = field(default_factory=lambda: Path("./storage"))
    active: StorageTierConfig = field(
        default_factory=lambda: StorageTierConfig("bookvetting-active", "active/books/")
    )
    archived: StorageTierConfig = field(
        default_factory=lambda: StorageTierConfig("bookvetting-archived", "archived/books/")
    )

    def tier(self, tier: StorageTier) -> StorageTierConfig:
        return self.active if StorageTier(tier) == StorageTier.ACTIVE else self.archived

    def key_for(self, book_id, tier: StorageTier) -> str:
        """Tier-qualified storage key of a book's PDF."""
        return f"{self.tier(tier).prefix}{book_id}.pdf"


@dataclass
class UploadConfig:
    """Synchronous upload checks and temp storage."""
    temp_dir: Path = field(default_factory=lambda: Path("./uploads/tmp"))
    max_file_size: int = 50 * 1024 * 1024


@dataclass
class BackoffConfig:
    type: str = "exponential"
    delay_ms: int = 1000

    def delay_for(self, attempts_made: int) -> float:
        """Seconds to wait before retrying after ``attempts_made`` attempts."""
        if self.type == "exponential":
            return self.delay_ms * (2 ** max(attempts_made - 1, 0)) / 1000
        return self.delay_ms / 1000


@dataclass
class QueueConfig:
    """Queue names and retry options handed to the job queue."""
    evaluation_queue: str = "book-evaluation"
    pdf_migration_queue: str = "pdf-migration"
    evaluation_attempts: int = 3
    pdf_migration_attempts: int = 3
    backoff: BackoffConfig = field(default_factory=BackoffConfig)
    evaluation_priority: int = 5
    migration_priority: int = 5
    concurrency: int = 5
    redis_url: Optional[str] = None
    key_prefix: str = "bookvetting:queue:"

    def __post_init__(self):
        if self.concurrency < 1:
            raise ConfigurationError("concurrency must be at least 1")


@dataclass
class AgeGatingConfig:
    """Mature-content gating defaults."""
    default_mature_content_threshold: AccountType = AccountType.TEEN
    child_max_age: int = 12
    teen_max_age: int = 17


@dataclass
class AppConfig:
    """
    Complete application configuration.

    Usage:
        config = AppConfig(
            evaluation=EvaluationConfig(borderline_range=5),
        )
    """
    evaluation: EvaluationConfig = field(default_factory=EvaluationConfig)
    primary_model: ScoringModelConfig = field(
        default_factory=lambda: ScoringModelConfig("claude-sonnet-4-20250514")
    )
    escalation_model: ScoringModelConfig = field(
        default_factory=lambda: ScoringModelConfig("claude-opus-4-20250514")
    )
    storage: StorageConfig = field(default_factory=StorageConfig)
    upload: UploadConfig = field(default_factory=UploadConfig)
    queue: QueueConfig = field(default_factory=QueueConfig)
    age_gating: AgeGatingConfig = field(default_factory=AgeGatingConfig)

    database_url: str = ""
    anthropic_api_key: str = ""
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env: Optional[Dict[str, str]] = None) -> "AppConfig":
        """Create config from environment variables."""
        env = os.environ if env is None else env

        max_tokens = int(env.get("SCORING_MAX_TOKENS", "4096"))
        temperature = float(env.get("SCORING_TEMPERATURE", "0"))

        return cls(
            evaluation=EvaluationConfig(
                not_aligned_threshold=float(env.get("NOT_ALIGNED_THRESHOLD", "70")),
                globally_aligned_threshold=float(env.get("GLOBALLY_ALIGNED_THRESHOLD", "90")),
                borderline_range=float(env.get("BORDERLINE_RANGE", "3")),
                current_version=env.get("EVALUATION_VERSION", "1.0.0"),
            ),
            primary_model=ScoringModelConfig(
                name=env.get("PRIMARY_MODEL", "claude-sonnet-4-20250514"),
                max_tokens=max_tokens,
                temperature=temperature,
            ),
            escalation_model=ScoringModelConfig(
                name=env.get("ESCALATION_MODEL", "claude-opus-4-20250514"),
                max_tokens=max_tokens,
                temperature=temperature,
            ),
            storage=StorageConfig(
                root_dir=Path(env.get("STORAGE_ROOT", "./storage")),
                active=StorageTierConfig(
                    bucket=env.get("ACTIVE_BUCKET", "bookvetting-active"),
                    prefix=env.get("ACTIVE_PREFIX", "active/books/"),
                ),
                archived=StorageTierConfig(
                    bucket=env.get("ARCHIVED_BUCKET", "bookvetting-archived"),
                    prefix=env.get("ARCHIVED_PREFIX", "archived/books/"),
                ),
            ),
            upload=UploadConfig(
                temp_dir=Path(env.get("PDF_TEMP_DIR", "./uploads/tmp")),
                max_file_size=int(env.get("PDF_MAX_FILE_SIZE", str(50 * 1024 * 1024))),
            ),
            queue=QueueConfig(
                evaluation_attempts=int(env.get("EVALUATION_ATTEMPTS", "3")),
                pdf_migration_attempts=int(env.get("PDF_MIGRATION_ATTEMPTS", "3")),
                backoff=BackoffConfig(
                    delay_ms=int(env.get("PDF_MIGRATION_BACKOFF_DELAY", "1000")),
                ),
                redis_url=env.get("REDIS_URL"),
                concurrency=int(env.get("WORKER_CONCURRENCY", "5")),
            ),
            age_gating=AgeGatingConfig(
                default_mature_content_threshold=AccountType(
                    env.get("MATURE_CONTENT_THRESHOLD", "teen")
                ),
            ),
            database_url=env.get("DATABASE_URL", ""),
            anthropic_api_key=env.get("ANTHROPIC_API_KEY", ""),
            log_level=env.get("LOG_LEVEL", "INFO"),
        )


@lru_cache()
def get_config() -> AppConfig:
    """Get cached configuration."""
    return AppConfig.from_env()
