"""OpenAI chat completions provider."""

from openai import AsyncOpenAI

from datasculpt.llm.base import BaseLLMProvider
from datasculpt.llm.models import LLMRequest, LLMResponse, LLMUsage


class OpenAIProvider(BaseLLMProvider):
    """GPT models through the async OpenAI SDK."""

    FINISH_REASONS = {"length": "length", "content_filter": "content_filter"}

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o",
        temperature: float = 0.1,
        max_tokens: int = 1000,
        timeout: int = 30,
    ):
        super().__init__("openai", model, temperature, max_tokens, timeout)
        self.client = AsyncOpenAI(api_key=api_key, timeout=float(timeout))

    async def _complete(self, request: LLMRequest) -> LLMResponse:
        completion = await self.client.chat.completions.create(
            model=request.model or self.model,
            messages=[message.model_dump() for message in request.messages],
            temperature=request.temperature,
            max_tokens=request.max_tokens,
            **request.metadata,
        )

        choice = completion.choices[0]
        usage = completion.usage
        prompt_tokens = usage.prompt_tokens if usage else 0
        completion_tokens = usage.completion_tokens if usage else 0
        return LLMResponse(
            content=choice.message.content or "",
            model=completion.model,
            usage=LLMUsage(
                prompt_tokens=prompt_tokens,
                completion_tokens=completion_tokens,
                total_tokens=usage.total_tokens if usage else 0,
            ),
            finish_reason=self._map_finish_reason(choice.finish_reason),
            provider=self.provider_name,
            metadata={"id": completion.id},
        )
