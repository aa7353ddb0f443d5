"""
OpenRouter provider implementation.

WHAT: Cloud LLM provider via OpenRouter API
WHY: Hosted tool-calling models (Gemini by default) for the negotiation arbiter
HOW: OpenAI-compatible API with authorization headers and retry logic
"""

import asyncio
import httpx
import json
from typing import Any

from .types import (
    ChatMessage,
    LLMResult,
    ProviderStatus,
    ToolSpec,
    ProviderDisabledError,
    ProviderTimeoutError,
    ProviderUnavailableError,
    ProviderResponseError,
)
from .openai_compat import build_payload, parse_completion
from ..core.config import settings
from ..utils.logger import get_logger

logger = get_logger(__name__)


class OpenRouterProvider:
    """OpenRouter LLM provider (disabled unless LLM_ENABLE_OPENROUTER is set)."""

    def __init__(self):
        """Initialize OpenRouter provider (checks if enabled)."""
        self.enabled = settings.LLM_ENABLE_OPENROUTER
        self.base_url = settings.OPENROUTER_BASE_URL
        self.api_key = settings.OPENROUTER_API_KEY
        self.default_model = settings.OPENROUTER_DEFAULT_MODEL
        self.max_retries = max(1, settings.LLM_MAX_RETRIES)
        self.retry_delay = settings.LLM_RETRY_DELAY
        self.client = None

        if self.enabled:
            if not self.api_key or not self.api_key.strip():
                logger.error("OpenRouter enabled but OPENROUTER_API_KEY is not set or empty!")
                raise ProviderDisabledError(
                    "OpenRouter is enabled but OPENROUTER_API_KEY is not set or empty. "
                    "Set OPENROUTER_API_KEY in your .env file."
                )

            self.client = httpx.AsyncClient(
                timeout=httpx.Timeout(5.0, read=30.0),
                limits=httpx.Limits(max_keepalive_connections=10, max_connections=20),
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "HTTP-Referer": settings.APP_NAME,
                    "X-Title": settings.APP_NAME,
                },
            )
            logger.info(f"OpenRouter provider initialized (enabled, model: {self.default_model})")
        else:
            logger.info("OpenRouter provider initialized (disabled)")

    def _check_enabled(self):
        """Raise exception if provider is disabled."""
        if not self.enabled:
            raise ProviderDisabledError("OpenRouter provider is disabled. Set LLM_ENABLE_OPENROUTER=true to enable.")

    async def ping(self) -> ProviderStatus:
        """
        Check OpenRouter availability by fetching models list.

        Returns:
            ProviderStatus with available models

        Raises:
            ProviderDisabledError: If OpenRouter is disabled
        """
        self._check_enabled()

        try:
            response = await self.client.get(f"{self.base_url}/models", timeout=10.0)
            response.raise_for_status()
            data = response.json()
            models = [model.get("id") for model in data.get("data", [])]

            logger.info(f"OpenRouter ping success ({len(models)} models available)")
            return ProviderStatus(
                available=True,
                base_url=self.base_url,
                models=models[:10] if models else None,
                error=None
            )
        except httpx.TimeoutException:
            logger.warning("OpenRouter ping timeout")
            return ProviderStatus(available=False, base_url=self.base_url, error="Request timed out")
        except httpx.ConnectError:
            logger.warning("OpenRouter not reachable")
            return ProviderStatus(available=False, base_url=self.base_url, error="Connection refused")
        except Exception as e:
            logger.error(f"OpenRouter ping failed: {e}")
            return ProviderStatus(available=False, base_url=self.base_url, error=str(e))

    async def generate(
        self,
        messages: list[ChatMessage],
        *,
        temperature: float,
        max_tokens: int,
        tools: list[ToolSpec] | None = None,
        tool_choice: dict[str, Any] | str | None = None,
        model: str | None = None
    ) -> LLMResult:
        """
        Generate complete response (non-streaming).

        Args:
            messages: Conversation history
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate
            tools: Optional function tools the model may call
            tool_choice: Optional forced tool selection
            model: Optional model name (uses default_model if not provided)

        Returns:
            LLMResult with text, tool calls, usage and model

        Raises:
            ProviderDisabledError: OpenRouter disabled
            ProviderTimeoutError: Request timed out
            ProviderUnavailableError: OpenRouter not reachable
            ProviderResponseError: Invalid response from OpenRouter
        """
        self._check_enabled()

        model_to_use = model or self.default_model
        payload = build_payload(
            model_to_use,
            messages,
            temperature=temperature,
            max_tokens=max_tokens,
            tools=tools,
            tool_choice=tool_choice,
        )

        # Retry logic with exponential backoff
        for attempt in range(self.max_retries):
            try:
                response = await self.client.post(f"{self.base_url}/chat/completions", json=payload)
                response.raise_for_status()
                result = parse_completion(response.json(), model_to_use)

                logger.info(
                    f"OpenRouter generate success (model: {result.model}, "
                    f"tool_calls: {len(result.tool_calls)}, tokens: {result.usage.get('total_tokens', 'unknown')})"
                )
                return result

            except httpx.TimeoutException as e:
                logger.warning(f"OpenRouter timeout (attempt {attempt + 1}/{self.max_retries})")
                if attempt == self.max_retries - 1:
                    raise ProviderTimeoutError(f"Request timed out after {self.max_retries} attempts") from e
                await asyncio.sleep(self.retry_delay * (2 ** attempt))

            except httpx.ConnectError as e:
                logger.error(f"OpenRouter connection refused (attempt {attempt + 1}/{self.max_retries})")
                if attempt == self.max_retries - 1:
                    raise ProviderUnavailableError("OpenRouter is not reachable") from e
                await asyncio.sleep(self.retry_delay * (2 ** attempt))

            except httpx.HTTPStatusError as e:
                if e.response.status_code >= 500:
                    logger.error(f"OpenRouter server error {e.response.status_code} (attempt {attempt + 1}/{self.max_retries})")
                    if attempt == self.max_retries - 1:
                        raise ProviderResponseError(f"Server error: {e.response.status_code}") from e
                    await asyncio.sleep(self.retry_delay * (2 ** attempt))
                else:
                    # Client errors don't retry
                    raise ProviderResponseError(f"HTTP {e.response.status_code}: {e.response.text}") from e

            except json.JSONDecodeError as e:
                logger.error(f"Invalid response from OpenRouter: {e}")
                raise ProviderResponseError(f"Invalid response format: {e}") from e

            except httpx.TransportError as e:
                logger.error(f"OpenRouter transport error {type(e).__name__} (attempt {attempt + 1}/{self.max_retries})")
                if attempt == self.max_retries - 1:
                    raise ProviderUnavailableError(f"OpenRouter connection failed: {e}") from e
                await asyncio.sleep(self.retry_delay * (2 ** attempt))

    async def close(self):
        """Close the HTTP client if enabled."""
        if self.client is not None:
            await self.client.aclose()
