"""
Anthropic Messages API provider.

BedrockProvider subclasses this one and only swaps the client, since the
Bedrock client exposes the same messages.create() call.
"""

from typing import Any

from anthropic import AsyncAnthropic

from datasculpt.llm.base import BaseLLMProvider
from datasculpt.llm.models import LLMRequest, LLMResponse, LLMUsage


class AnthropicProvider(BaseLLMProvider):
    """Claude models through the anthropic SDK."""

    FINISH_REASONS = {"max_tokens": "length"}

    def __init__(
        self,
        api_key: str,
        model: str = "claude-3-5-sonnet-20241022",
        temperature: float = 0.1,
        max_tokens: int = 1000,
        timeout: int = 30,
    ):
        super().__init__("anthropic", model, temperature, max_tokens, timeout)
        self.client = AsyncAnthropic(api_key=api_key, timeout=float(timeout))

    def _message_params(self, request: LLMRequest) -> dict[str, Any]:
        # The Messages API takes the system prompt as a parameter, not a turn
        system = [m.content for m in request.messages if m.role == "system"]
        params: dict[str, Any] = {
            "model": request.model or self.model,
            "max_tokens": request.max_tokens,
            "temperature": request.temperature,
            "messages": [
                {"role": m.role, "content": m.content}
                for m in request.messages
                if m.role != "system"
            ],
        }
        if system:
            params["system"] = system[-1]
        return params

    async def _complete(self, request: LLMRequest) -> LLMResponse:
        message = await self.client.messages.create(**self._message_params(request))

        text_blocks = [
            block.text for block in message.content if getattr(block, "type", "text") == "text"
        ]
        tokens_in = message.usage.input_tokens
        tokens_out = message.usage.output_tokens
        return LLMResponse(
            content="".join(text_blocks),
            model=message.model,
            usage=LLMUsage(
                prompt_tokens=tokens_in,
                completion_tokens=tokens_out,
                total_tokens=tokens_in + tokens_out,
            ),
            finish_reason=self._map_finish_reason(message.stop_reason),
            provider=self.provider_name,
            metadata={"id": message.id},
        )
