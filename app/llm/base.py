"""
Base interface for LLM providers.
Allows swapping between Anthropic, OpenAI, or other providers.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional


class LLMProvider(ABC):
    """
    Abstract base class for LLM providers.

    Every editorial task reduces to "send prompt, receive text"; parsing the
    reply is the caller's job.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the provider name (e.g., 'anthropic', 'openai')."""
        pass

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Return the model being used (e.g., 'claude-sonnet-4-20250514')."""
        pass

    @abstractmethod
    async def complete(
        self,
        prompt: str,
        max_tokens: int,
        system: Optional[str] = None,
        call_type: str = "complete",
    ) -> str:
        """
        Send a single-turn prompt and return the reply text.

        Args:
            prompt: User message
            max_tokens: Upper bound on reply length
            system: Optional system prompt
            call_type: Label used in call logs (e.g. 'extract_claims')

        Raises:
            LLMRateLimitError, LLMTimeoutError, LLMServiceError: after retries
            Exception: any other provider failure
        """
        pass

    async def close(self) -> None:
        """Release HTTP resources held by the provider."""
        return None
