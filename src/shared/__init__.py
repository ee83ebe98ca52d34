"""Shared models, enums and utilities."""

from .parsing import (
    strip_markdown_fences,
    extract_text_block,
    parse_json_response,
)

from .exceptions import (
    BookVettingException,
    BookNotFoundError,
    UploadRejectedError,
    LLMParsingError,
)
