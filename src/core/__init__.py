"""
BookVetting v1.0 - Core Module

Configuration and logging shared by services and workers.
"""

from .config import (
    AppConfig,
    EvaluationConfig,
    ScoringModelConfig,
    StorageConfig,
    StorageTierConfig,
    UploadConfig,
    QueueConfig,
    AgeGatingConfig,
    get_config,
)

__all__ = [
    "AppConfig",
    "EvaluationConfig",
    "ScoringModelConfig",
    "StorageConfig",
    "StorageTierConfig",
    "UploadConfig",
    "QueueConfig",
    "AgeGatingConfig",
    "get_config",
]
