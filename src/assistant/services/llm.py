"""LLM provider abstraction via LiteLLM Router.

Provides a streaming chat service with:
- An OpenAI model as the primary "chat" deployment
- An Anthropic model as fallback in the same group when its key is set
- Tool definitions passed through to the provider
- Streaming support via async generators
"""

from __future__ import annotations

from typing import Any, AsyncGenerator

import structlog
from litellm import Router

from src.assistant.config import Settings, get_settings

logger = structlog.get_logger(__name__)

CHAT_MODEL_GROUP = "chat"


class LLMUnavailableError(RuntimeError):
    """Raised when no LLM provider is configured."""


class LLMService:
    """LLM provider abstraction with LiteLLM Router.

    Deployments are grouped under one model name so the router can fall
    back between providers, retrying per LLM_MAX_RETRIES.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        settings = settings or get_settings()

        model_list = []

        if settings.OPENAI_API_KEY:
            model_list.append({
                "model_name": CHAT_MODEL_GROUP,
                "litellm_params": {
                    "model": settings.CHAT_MODEL,
                    "api_key": settings.OPENAI_API_KEY,
                },
            })

        if settings.ANTHROPIC_API_KEY:
            model_list.append({
                "model_name": CHAT_MODEL_GROUP,
                "litellm_params": {
                    "model": settings.FALLBACK_CHAT_MODEL,
                    "api_key": settings.ANTHROPIC_API_KEY,
                },
            })

        if not model_list:
            logger.warning("No LLM API keys configured -- LLM service will be unavailable")
            self.router = None
            return

        self.router = Router(
            model_list=model_list,
            num_retries=settings.LLM_MAX_RETRIES,
            timeout=settings.LLM_TIMEOUT,
            allowed_fails=3,
            cooldown_time=30,
        )

    async def stream_completion(
        self,
        messages: list[dict],
        tools: list[dict] | None = None,
        temperature: float = 0.2,
    ) -> AsyncGenerator[Any, None]:
        """Execute a streaming completion call.

        Yields raw provider chunks (OpenAI delta format) so the caller can
        read both text deltas and tool-call fragments.

        Raises:
            LLMUnavailableError: If no LLM API keys are configured.
        """
        if not self.router:
            raise LLMUnavailableError("No LLM API keys configured")

        kwargs: dict[str, Any] = {}
        if tools:
            kwargs["tools"] = tools
            kwargs["tool_choice"] = "auto"

        response = await self.router.acompletion(
            model=CHAT_MODEL_GROUP,
            messages=messages,
            temperature=temperature,
            stream=True,
            **kwargs,
        )

        async for chunk in response:
            yield chunk
