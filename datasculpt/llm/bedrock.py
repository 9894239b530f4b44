"""
AWS Bedrock LLM Provider

Claude models hosted on AWS Bedrock, called through the anthropic SDK's
Bedrock client. Credentials come from the explicit key pair when configured,
otherwise from the default AWS credential chain.
"""

import logging

from anthropic import AsyncAnthropicBedrock

from datasculpt.llm.anthropic import AnthropicProvider
from datasculpt.llm.base import BaseLLMProvider

logger = logging.getLogger(__name__)


class BedrockProvider(AnthropicProvider):
    """Anthropic models on AWS Bedrock."""

    def __init__(
        self,
        region: str = "us-east-1",
        model: str = "anthropic.claude-3-5-sonnet-20241022-v2:0",
        aws_access_key_id: str | None = None,
        aws_secret_access_key: str | None = None,
        temperature: float = 0.1,
        max_tokens: int = 1000,
        timeout: int = 30,
    ):
        BaseLLMProvider.__init__(
            self,
            provider_name="bedrock",
            model=model,
            temperature=temperature,
            max_tokens=max_tokens,
            timeout=timeout,
        )
        self.region = region

        client_kwargs = {"aws_region": region, "timeout": float(timeout)}
        if aws_access_key_id and aws_secret_access_key:
            client_kwargs["aws_access_key"] = aws_access_key_id
            client_kwargs["aws_secret_key"] = aws_secret_access_key
        self.client = AsyncAnthropicBedrock(**client_kwargs)

        logger.info(
            f"Bedrock provider ready in {region}",
            extra={"region": region, "explicit_credentials": bool(aws_access_key_id)},
        )
