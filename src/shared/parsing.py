"""
BookVetting - LLM Output Parsing
================================

Turns a raw model response into a validated verdict. Handles responses
wrapped in a markdown code fence. Anything that still is not JSON is a
parse failure; nothing here retries.
"""

import json
import re
import logging
from typing import Any, Type, TypeVar

from pydantic import BaseModel, ValidationError

from src.shared.exceptions import LLMParsingError

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

_LEADING_FENCE = re.compile(r'^\s*```(?:json|JSON)?[ \t]*\r?\n?')
_TRAILING_FENCE = re.compile(r'\r?\n?```\s*$')


def strip_markdown_fences(text: str) -> str:
    """Remove a leading ```json / ``` line and a trailing ``` line."""
    text = _LEADING_FENCE.sub('', text, count=1)
    text = _TRAILING_FENCE.sub('', text, count=1)
    return text.strip()


def extract_text_block(response: Any) -> str:
    """
    Return the text of the first text block in a messages-API response.

    Accepts the SDK message object or a plain dict with a ``content`` list.

    Raises:
        LLMParsingError: If the response has no text block
    """
    content = response.get("content") if isinstance(response, dict) else getattr(response, "content", None)

    for block in content or []:
        block_type = block.get("type") if isinstance(block, dict) else getattr(block, "type", None)
        if block_type == "text":
            return block.get("text", "") if isinstance(block, dict) else block.text

    raise LLMParsingError("No text content in model response")


def parse_json_response(text: str, model_class: Type[T]) -> T:
    """
    Parse fenced or bare JSON and validate it against a pydantic model.

    Raises:
        LLMParsingError: If the text is not valid JSON or fails validation
    """
    cleaned = strip_markdown_fences(text)

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.warning(f"JSON decode error: {e}")
        raise LLMParsingError(f"Invalid JSON syntax: {e}") from e

    if not isinstance(data, dict):
        raise LLMParsingError(f"Expected a JSON object, got {type(data).__name__}")

    try:
        return model_class.model_validate(data)
    except ValidationError as e:
        logger.warning(f"Pydantic validation error: {e}")
        raise LLMParsingError(f"Schema validation failed: {e}") from e
