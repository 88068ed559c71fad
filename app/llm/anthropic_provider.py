"""
Anthropic Claude provider implementation.
"""

from __future__ import annotations

import logging
from typing import Optional

import anthropic
from anthropic import AsyncAnthropic

from app.config import get_settings
from app.llm.base import LLMProvider
from app.logging_config import log_llm_call
from app.services.resilience import (
    LLMRateLimitError,
    LLMServiceError,
    LLMTimeoutError,
    llm_retry,
)

logger = logging.getLogger(__name__)


class AnthropicProvider(LLMProvider):
    """Anthropic-based LLM provider."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        """
        Initialize Anthropic provider.

        Args:
            api_key: Anthropic API key. If not provided, uses ANTHROPIC_API_KEY.
            model: Model to use. If not provided, uses ANTHROPIC_MODEL.
            timeout: Per-request timeout in seconds. Defaults to LLM_TIMEOUT_SECONDS.
        """
        settings = get_settings()
        self._api_key = api_key or settings.ANTHROPIC_API_KEY
        if not self._api_key:
            raise ValueError(
                "Anthropic API key required. Set ANTHROPIC_API_KEY env var or pass api_key."
            )

        self._model = model or settings.ANTHROPIC_MODEL
        # Retries are handled by llm_retry so they show up in our logs
        self._client = AsyncAnthropic(
            api_key=self._api_key,
            timeout=timeout or settings.LLM_TIMEOUT_SECONDS,
            max_retries=0,
        )

    @property
    def name(self) -> str:
        return "anthropic"

    @property
    def model_name(self) -> str:
        return self._model

    @llm_retry
    async def complete(
        self,
        prompt: str,
        max_tokens: int,
        system: Optional[str] = None,
        call_type: str = "complete",
    ) -> str:
        kwargs = {
            "model": self._model,
            "max_tokens": max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system:
            kwargs["system"] = system

        with log_llm_call(self.name, self._model, call_type) as metrics:
            try:
                response = await self._client.messages.create(**kwargs)
            except anthropic.RateLimitError as e:
                raise LLMRateLimitError(str(e)) from e
            except anthropic.APITimeoutError as e:
                raise LLMTimeoutError(str(e)) from e
            except (anthropic.InternalServerError, anthropic.APIConnectionError) as e:
                raise LLMServiceError(str(e)) from e

            if response.usage:
                metrics["tokens_in"] = response.usage.input_tokens
                metrics["tokens_out"] = response.usage.output_tokens

        if response.stop_reason == "max_tokens":
            logger.warning(f"Anthropic reply for {call_type} hit max_tokens={max_tokens}")

        return "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        )

    async def close(self) -> None:
        await self._client.close()
