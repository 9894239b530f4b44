"""
LLM Provider Module

Provider abstraction used by the query generator.

Available Providers:
    - BedrockProvider: Claude on AWS Bedrock
    - AnthropicProvider: Claude through the Anthropic API
    - OpenAIProvider: GPT models
"""

from datasculpt.llm.anthropic import AnthropicProvider
from datasculpt.llm.base import BaseLLMProvider
from datasculpt.llm.bedrock import BedrockProvider
from datasculpt.llm.factory import LLMProviderFactory
from datasculpt.llm.models import LLMMessage, LLMRequest, LLMResponse, LLMUsage
from datasculpt.llm.openai import OpenAIProvider

__all__ = [
    "AnthropicProvider",
    "BaseLLMProvider",
    "BedrockProvider",
    "LLMMessage",
    "LLMProviderFactory",
    "LLMRequest",
    "LLMResponse",
    "LLMUsage",
    "OpenAIProvider",
]
