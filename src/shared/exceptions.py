"""Custom exceptions for the BookVetting system."""


class BookVettingException(Exception):
    """Base exception for all BookVetting errors."""
    pass


# Lookup

class BookNotFoundError(BookVettingException):
    """Referenced book does not exist."""

    def __init__(self, book_id):
        self.book_id = book_id
        super().__init__(f"Book {book_id} not found")


# Submission and upload policy

class SubmissionError(BookVettingException):
    """Submission rejected before any record or job was created."""
    pass


class UploadRejectedError(BookVettingException):
    """PDF upload refused by the replacement policy."""

    def __init__(self, reason: str, detail: str = ""):
        self.reason = reason
        super().__init__(f"{reason}: {detail}" if detail else reason)


# External services (transient, retried by the job queue)

class ExternalServiceError(BookVettingException):
    """Error calling an external service (LLM, object store, database)."""
    pass


class LLMError(ExternalServiceError):
    """Error calling the scoring model."""
    pass


class StorageError(ExternalServiceError):
    """Error in object storage operations."""
    pass


class DatabaseError(ExternalServiceError):
    """Error in database operations."""
    pass


class LLMParsingError(BookVettingException):
    """Raised when LLM output cannot be parsed."""
    pass


# Storage state

class StorageStateError(BookVettingException):
    """Book is not in a storage state the requested operation needs."""
    pass


# Jobs

class JobError(BookVettingException):
    """Base exception for job contract violations."""
    pass


class JobPayloadError(JobError):
    """Job payload is missing or malformed."""
    pass


class UnknownJobError(JobError):
    """No handler for the job name."""
    pass


# Configuration

class ConfigurationError(BookVettingException):
    """Error in configuration."""
    pass
