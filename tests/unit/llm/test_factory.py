"""
Tests for LLM Provider Factory.

Tests provider creation and configuration validation.
"""

from unittest.mock import patch

import pytest

from datasculpt.config import LLMSettings
from datasculpt.llm.anthropic import AnthropicProvider
from datasculpt.llm.bedrock import BedrockProvider
from datasculpt.llm.factory import LLMProviderFactory
from datasculpt.llm.openai import OpenAIProvider


@pytest.fixture
def mock_config():
    """LLM configuration with every provider configured."""
    return LLMSettings(
        default_provider="openai",
        openai_api_key="sk-test-openai-key-1234567890",
        openai_model="gpt-4o",
        anthropic_api_key="sk-ant-REDACTED",
        anthropic_model="claude-3-5-sonnet-20241022",
        bedrock_region="us-west-2",
        temperature=0.0,
        max_tokens=500,
        timeout=20,
    )


class TestProviderRegistry:
    def test_provider_classes(self):
        assert LLMProviderFactory.PROVIDERS == {
            "bedrock": BedrockProvider,
            "anthropic": AnthropicProvider,
            "openai": OpenAIProvider,
        }


class TestCreateProvider:
    def test_create_openai_provider(self, mock_config):
        provider = LLMProviderFactory.create_provider("openai", mock_config)

        assert isinstance(provider, OpenAIProvider)
        assert provider.temperature == 0.0
        assert provider.max_tokens == 500

    def test_create_anthropic_provider(self, mock_config):
        provider = LLMProviderFactory.create_provider("anthropic", mock_config)

        assert isinstance(provider, AnthropicProvider)
        assert provider.model == "claude-3-5-sonnet-20241022"

    def test_create_bedrock_provider(self, mock_config):
        with patch("datasculpt.llm.bedrock.AsyncAnthropicBedrock"):
            provider = LLMProviderFactory.create_provider("bedrock", mock_config)

        assert isinstance(provider, BedrockProvider)
        assert provider.region == "us-west-2"
        assert provider.timeout == 20

    def test_unknown_provider(self, mock_config):
        with pytest.raises(ValueError, match="Unknown provider type"):
            LLMProviderFactory.create_provider("google", mock_config)

    @pytest.mark.parametrize("provider_type", ["openai", "anthropic"])
    def test_missing_key(self, provider_type):
        with pytest.raises(ValueError, match="API key is required"):
            LLMProviderFactory.create_provider(provider_type, LLMSettings())

    def test_default_provider(self, mock_config):
        assert isinstance(LLMProviderFactory.create_default_provider(mock_config), OpenAIProvider)


class TestSettingsValidation:
    def test_openai_key_prefix(self):
        with pytest.raises(ValueError):
            LLMSettings(openai_api_key="not-an-openai-key-123456")

    def test_anthropic_key_prefix(self):
        with pytest.raises(ValueError):
            LLMSettings(anthropic_api_key="sk-not-anthropic-123456789")

    def test_aws_keys_come_in_pairs(self):
        with pytest.raises(ValueError):
            LLMSettings(aws_access_key_id="AKIA1234567890")
