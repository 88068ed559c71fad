"""
OpenAI LLM provider implementation.
"""

from __future__ import annotations

import logging
from typing import Optional

import openai
from openai import AsyncOpenAI

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


class OpenAIProvider(LLMProvider):
    """OpenAI-based LLM provider."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        """
        Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key. If not provided, uses OPENAI_API_KEY.
            model: Model to use. If not provided, uses OPENAI_MODEL
                   (defaults to gpt-4o-mini for cost efficiency).
            timeout: Per-request timeout in seconds. Defaults to LLM_TIMEOUT_SECONDS.
        """
        settings = get_settings()
        self._api_key = api_key or settings.OPENAI_API_KEY
        if not self._api_key:
            raise ValueError(
                "OpenAI API key required. Set OPENAI_API_KEY env var or pass api_key."
            )

        self._model = model or settings.OPENAI_MODEL
        self._client = AsyncOpenAI(
            api_key=self._api_key,
            timeout=timeout or settings.LLM_TIMEOUT_SECONDS,
            max_retries=0,
        )

    @property
    def name(self) -> str:
        return "openai"

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
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        with log_llm_call(self.name, self._model, call_type) as metrics:
            try:
                response = await self._client.chat.completions.create(
                    model=self._model,
                    messages=messages,
                    max_tokens=max_tokens,
                    temperature=0.3,
                )
            except openai.RateLimitError as e:
                raise LLMRateLimitError(str(e)) from e
            except openai.APITimeoutError as e:
                raise LLMTimeoutError(str(e)) from e
            except (openai.InternalServerError, openai.APIConnectionError) as e:
                raise LLMServiceError(str(e)) from e

            if response.usage:
                metrics["tokens_in"] = response.usage.prompt_tokens
                metrics["tokens_out"] = response.usage.completion_tokens

        choice = response.choices[0]
        if choice.finish_reason == "length":
            logger.warning(f"OpenAI reply for {call_type} hit max_tokens={max_tokens}")
        return choice.message.content or ""

    async def close(self) -> None:
        await self._client.close()
