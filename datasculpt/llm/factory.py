"""
LLM Provider Factory

Builds the provider named by LLM_DEFAULT_PROVIDER from LLMSettings.
"""

import logging
from typing import Any, Literal

from datasculpt.config import LLMSettings
from datasculpt.llm.anthropic import AnthropicProvider
from datasculpt.llm.base import BaseLLMProvider
from datasculpt.llm.bedrock import BedrockProvider
from datasculpt.llm.openai import OpenAIProvider

logger = logging.getLogger(__name__)

ProviderName = Literal["bedrock", "anthropic", "openai"]


def _bedrock_kwargs(config: LLMSettings) -> dict[str, Any]:
    # Bedrock falls back to the default AWS credential chain, so nothing is required
    return {
        "region": config.bedrock_region,
        "model": config.bedrock_model,
        "aws_access_key_id": config.aws_access_key_id,
        "aws_secret_access_key": config.aws_secret_access_key,
    }


def _anthropic_kwargs(config: LLMSettings) -> dict[str, Any]:
    if not config.anthropic_api_key:
        raise ValueError("Anthropic API key is required but not configured (LLM_ANTHROPIC_API_KEY)")
    return {"api_key": config.anthropic_api_key, "model": config.anthropic_model}


def _openai_kwargs(config: LLMSettings) -> dict[str, Any]:
    if not config.openai_api_key:
        raise ValueError("OpenAI API key is required but not configured (LLM_OPENAI_API_KEY)")
    return {"api_key": config.openai_api_key, "model": config.openai_model}


class LLMProviderFactory:
    """Factory for creating LLM provider instances."""

    PROVIDERS: dict[str, type[BaseLLMProvider]] = {
        "bedrock": BedrockProvider,
        "anthropic": AnthropicProvider,
        "openai": OpenAIProvider,
    }

    _KWARGS = {
        "bedrock": _bedrock_kwargs,
        "anthropic": _anthropic_kwargs,
        "openai": _openai_kwargs,
    }

    @classmethod
    def create_provider(cls, provider_type: ProviderName, config: LLMSettings) -> BaseLLMProvider:
        """
        Create a provider with the shared sampling settings from config.

        Raises:
            ValueError: Unknown provider type, or its API key is missing
        """
        if provider_type not in cls.PROVIDERS:
            raise ValueError(
                f"Unknown provider type: {provider_type}. "
                f"Available providers: {', '.join(cls.PROVIDERS)}"
            )

        kwargs = cls._KWARGS[provider_type](config)
        logger.info(f"Creating {provider_type} provider", extra={"provider": provider_type})
        return cls.PROVIDERS[provider_type](
            temperature=config.temperature,
            max_tokens=config.max_tokens,
            timeout=config.timeout,
            **kwargs,
        )

    @classmethod
    def create_default_provider(cls, config: LLMSettings) -> BaseLLMProvider:
        """Create the provider selected by config.default_provider."""
        return cls.create_provider(config.default_provider, config)
