"""
LLM provider abstraction layer.

Usage:
    from app.llm import get_llm_provider

    provider = get_llm_provider()  # Uses LLM_PROVIDER from settings
    text = await provider.complete(prompt, max_tokens=2048)
"""

from __future__ import annotations

from typing import Optional

from app.llm.base import LLMProvider
from app.llm.parsing import ParseFailed, Parsed, ParseResult, parse_json_array, parse_json_object

__all__ = [
    "LLMProvider",
    "ParseFailed",
    "Parsed",
    "ParseResult",
    "get_llm_provider",
    "parse_json_array",
    "parse_json_object",
]


def get_llm_provider(
    provider_name: Optional[str] = None,
    **kwargs,
) -> LLMProvider:
    """
    Factory function to get an LLM provider instance.

    Args:
        provider_name: Provider to use ('anthropic', 'openai').
                      If not provided, uses the LLM_PROVIDER setting (default: 'anthropic')
        **kwargs: Additional arguments passed to the provider constructor

    Returns:
        Configured LLMProvider instance

    Example:
        provider = get_llm_provider()
        provider = get_llm_provider("openai", model="gpt-4o")
    """
    from app.config import get_settings

    name = (provider_name or get_settings().LLM_PROVIDER).lower().strip()

    if name == "anthropic":
        from app.llm.anthropic_provider import AnthropicProvider

        return AnthropicProvider(**kwargs)

    if name == "openai":
        from app.llm.openai_provider import OpenAIProvider

        return OpenAIProvider(**kwargs)

    raise ValueError(
        f"Unknown LLM provider: {name}. Available: anthropic, openai"
    )
