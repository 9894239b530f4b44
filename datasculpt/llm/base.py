"""
Provider interface for the query generator.

Generation is text in, text out: a provider turns an LLMRequest into an
LLMResponse. Subclasses implement _complete(); generate() fills sampling
defaults and logs each exchange.
"""

import logging
import time
from abc import ABC, abstractmethod

from datasculpt.llm.models import LLMRequest, LLMResponse

logger = logging.getLogger(__name__)


class BaseLLMProvider(ABC):
    """
    Common state and request handling for language model providers.

    Args:
        provider_name: Name reported in responses, logs and /api/health
        model: Model used when a request does not name one
        temperature: Sampling temperature used when a request leaves it unset
        max_tokens: Output bound used when a request leaves it unset
        timeout: SDK request timeout in seconds
    """

    # Provider stop reasons that do not mean "stop"
    FINISH_REASONS: dict[str, str] = {}

    def __init__(
        self,
        provider_name: str,
        model: str,
        temperature: float = 0.1,
        max_tokens: int = 1000,
        timeout: int = 30,
    ):
        self.provider_name = provider_name
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        logger.info(
            f"{provider_name} provider configured for {model}",
            extra={"provider": provider_name, "model": model, "timeout": timeout},
        )

    async def generate(self, request: LLMRequest) -> LLMResponse:
        """
        Complete a request.

        SDK errors (timeouts, authentication, rate limits) are logged and
        re-raised unchanged; the generator turns them into fallback queries.
        """
        if request.temperature is None or request.max_tokens is None:
            request = request.model_copy(
                update={
                    "temperature": self.temperature if request.temperature is None else request.temperature,
                    "max_tokens": self.max_tokens if request.max_tokens is None else request.max_tokens,
                }
            )

        started = time.perf_counter()
        try:
            response = await self._complete(request)
        except Exception as e:
            logger.error(f"{self.provider_name} request failed: {type(e).__name__}: {e}")
            raise

        logger.debug(
            f"{self.provider_name} answered in {(time.perf_counter() - started) * 1000:.0f}ms",
            extra={
                "provider": self.provider_name,
                "model": response.model,
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "finish_reason": response.finish_reason,
            },
        )
        return response

    @abstractmethod
    async def _complete(self, request: LLMRequest) -> LLMResponse:
        """Call the provider SDK with a request whose defaults are filled in."""

    def _map_finish_reason(self, reason: str | None) -> str:
        return self.FINISH_REASONS.get(reason or "", "stop")
