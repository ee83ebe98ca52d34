"""
BookVetting - Structured Logging Configuration
==============================================

Logging for workers and scripts with:
- JSON structured output (for log aggregation)
- Job correlation (job_id, job_name) bound per job
- Book context (book_id) bound while a book is being processed
- Standard library integration (captures all loggers)

Usage:
    # At worker startup (before any other imports)
    from src.core.logging_config import configure_logging
    configure_logging(json_output=True)

    # In any module
    import logging
    logger = logging.getLogger(__name__)
    logger.info("Evaluating book")

    # Around a job
    with job_context(job_id="42", job_name="evaluate-book", book_id=book_id):
        await processor.process(job)

Environment Variables:
    LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
    LOG_FORMAT: json, console (default: json in production, console in dev)
"""

import logging
import logging.config
import os
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Iterator, Optional

import structlog
from structlog.types import EventDict, WrappedLogger


# =============================================================================
# CONTEXT VARIABLES
# =============================================================================

# Job correlation - set by the job dispatcher
job_id_var: ContextVar[Optional[str]] = ContextVar("job_id", default=None)
job_name_var: ContextVar[Optional[str]] = ContextVar("job_name", default=None)

# Book being processed
book_id_var: ContextVar[Optional[str]] = ContextVar("book_id", default=None)


@contextmanager
def job_context(
    job_id: Optional[str] = None,
    job_name: Optional[str] = None,
    book_id: Optional[str] = None,
) -> Iterator[None]:
    """Bind job and book identifiers for the duration of a block."""
    tokens = [
        (job_id_var, job_id_var.set(job_id)),
        (job_name_var, job_name_var.set(job_name)),
        (book_id_var, book_id_var.set(str(book_id) if book_id else None)),
    ]
    try:
        yield
    finally:
        for var, token in reversed(tokens):
            var.reset(token)


# =============================================================================
# CUSTOM PROCESSORS
# =============================================================================

def add_job_context(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict
) -> EventDict:
    """Add job and book context from context variables."""
    job_id = job_id_var.get()
    if job_id:
        event_dict["job_id"] = job_id

    job_name = job_name_var.get()
    if job_name:
        event_dict["job_name"] = job_name

    book_id = book_id_var.get()
    if book_id:
        event_dict["book_id"] = book_id

    return event_dict


def add_service_info(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict
) -> EventDict:
    """Add service metadata."""
    event_dict["service"] = "bookvetting"
    event_dict["version"] = os.getenv("APP_VERSION", "1.0.0")
    return event_dict


def add_timestamp_iso(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict
) -> EventDict:
    """Add ISO 8601 timestamp with timezone."""
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def rename_event_key(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict
) -> EventDict:
    """Rename 'event' to 'message' for consistency with common log formats."""
    if "event" in event_dict:
        event_dict["message"] = event_dict.pop("event")
    return event_dict


# =============================================================================
# CONFIGURATION
# =============================================================================

def configure_logging(
    json_output: Optional[bool] = None,
    log_level: Optional[str] = None,
    include_timestamp: bool = True
) -> None:
    """
    Configure structured logging for the worker process.

    Args:
        json_output: If True, output JSON. If None, auto-detect from environment.
        log_level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to LOG_LEVEL env var.
        include_timestamp: Include ISO timestamp in logs.
    """
    if log_level is None:
        log_level = os.getenv("LOG_LEVEL", "INFO").upper()

    if json_output is None:
        log_format = os.getenv("LOG_FORMAT", "").lower()
        if log_format == "json":
            json_output = True
        elif log_format == "console":
            json_output = False
        else:
            env = os.getenv("ENVIRONMENT", "development").lower()
            json_output = env in ("production", "prod", "staging")

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        add_job_context,
        add_service_info,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if include_timestamp:
        shared_processors.insert(0, add_timestamp_iso)

    if json_output:
        shared_processors.extend([
            rename_event_key,
            structlog.processors.format_exc_info,
        ])
        final_processor = structlog.processors.JSONRenderer(sort_keys=True)
    else:
        final_processor = structlog.dev.ConsoleRenderer(
            colors=True,
            exception_formatter=structlog.dev.plain_traceback,
        )

    structlog.configure(
        processors=shared_processors + [final_processor],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level, logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Service modules log through stdlib; route them to the same renderer
    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "structlog": {
                "()": structlog.stdlib.ProcessorFormatter,
                "processors": [
                    structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                    final_processor,
                ],
                "foreign_pre_chain": shared_processors,
            },
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stdout",
                "formatter": "structlog",
            },
        },
        "loggers": {
            "": {
                "handlers": ["default"],
                "level": log_level,
                "propagate": True,
            },
            "httpx": {"level": "WARNING"},
            "httpcore": {"level": "WARNING"},
            "anthropic": {"level": "WARNING"},
            "asyncio": {"level": "WARNING"},
        },
    })

    logger = structlog.get_logger("logging_config")
    logger.info(
        "Logging configured",
        format="json" if json_output else "console",
        level=log_level,
    )
