"""
BookVetting - LLM Client
========================

Thin seam between the scorer and the model provider. The scorer only
needs one call: send a prompt, get the raw response back.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

from anthropic import AsyncAnthropic

logger = logging.getLogger(__name__)


class LLMClient(ABC):
    """Completion client used for scoring."""

    @abstractmethod
    async def complete(
        self,
        model: str,
        max_tokens: int,
        temperature: float,
        prompt: str,
    ) -> Any:
        """Send a single user prompt. Returns the provider's raw response."""
        pass


class AnthropicLLMClient(LLMClient):
    """
    Claude via the Anthropic messages API.

    Errors from the SDK (rate limits, timeouts, 5xx) propagate as-is so
    the job queue can retry them.
    """

    def __init__(self, client: Optional[AsyncAnthropic] = None, api_key: Optional[str] = None):
        self.client = client or AsyncAnthropic(api_key=api_key)

    async def complete(
        self,
        model: str,
        max_tokens: int,
        temperature: float,
        prompt: str,
    ) -> Any:
        logger.debug(f"Calling {model} (max_tokens={max_tokens}, temperature={temperature})")
        return await self.client.messages.create(
            model=model,
            max_tokens=max_tokens,
            temperature=temperature,
            messages=[{"role": "user", "content": prompt}],
        )
