"""
LM Studio provider implementation.

WHAT: Local LLM inference via LM Studio
WHY: Run the negotiation arbiter against a local model during development
HOW: HTTPX client with retries against the OpenAI-compatible endpoint
"""

import httpx
import json
import asyncio
from typing import Any

from .types import (
    ChatMessage,
    LLMResult,
    ProviderStatus,
    ToolSpec,
    ProviderTimeoutError,
    ProviderUnavailableError,
    ProviderResponseError,
)
from .openai_compat import build_payload, parse_completion
from ..core.config import settings
from ..utils.logger import get_logger

logger = get_logger(__name__)


class LMStudioProvider:
    """LM Studio LLM provider with retry logic."""

    def __init__(
        self,
        timeout: float | None = None,
        max_retries: int | None = None,
        retry_delay: float | None = None
    ):
        """Initialize LM Studio provider with httpx client."""
        self.base_url = settings.LM_STUDIO_BASE_URL
        self.default_model = settings.LM_STUDIO_DEFAULT_MODEL
        self.timeout = timeout or settings.LM_STUDIO_TIMEOUT
        self.max_retries = max(1, max_retries or settings.LLM_MAX_RETRIES)
        self.retry_delay = settings.LLM_RETRY_DELAY if retry_delay is None else retry_delay

        self.client = httpx.AsyncClient(
            timeout=httpx.Timeout(5.0, read=self.timeout),
            limits=httpx.Limits(
                max_keepalive_connections=10,
                max_connections=20
            ),
        )

    async def ping(self) -> ProviderStatus:
        """
        Check LM Studio availability.

        Returns:
            ProviderStatus with loaded models
        """
        try:
            response = await self.client.get(f"{self.base_url}/models", timeout=5.0)
            response.raise_for_status()
            data = response.json()
            models = [model.get("id") for model in data.get("data", [])]

            logger.info(f"LM Studio ping success ({len(models)} models)")
            return ProviderStatus(available=True, base_url=self.base_url, models=models, error=None)
        except httpx.TimeoutException:
            logger.warning("LM Studio ping timeout")
            return ProviderStatus(available=False, base_url=self.base_url, error="Request timed out")
        except httpx.ConnectError:
            logger.warning("LM Studio not reachable")
            return ProviderStatus(available=False, base_url=self.base_url, error="Connection refused")
        except Exception as e:
            logger.error(f"LM Studio ping failed: {e}")
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
        Generate complete response with retry logic.

        Raises:
            ProviderTimeoutError: All attempts timed out
            ProviderUnavailableError: LM Studio not running
            ProviderResponseError: Bad status or malformed body
        """
        model_to_use = model or self.default_model
        payload = build_payload(
            model_to_use,
            messages,
            temperature=temperature,
            max_tokens=max_tokens,
            tools=tools,
            tool_choice=tool_choice,
        )

        last_error: Exception | None = None
        for attempt in range(self.max_retries):
            try:
                response = await self.client.post(f"{self.base_url}/chat/completions", json=payload)
                response.raise_for_status()
                result = parse_completion(response.json(), model_to_use)
                logger.info(f"LM Studio generate success (model: {result.model}, tool_calls: {len(result.tool_calls)})")
                return result

            except httpx.TimeoutException as e:
                last_error = ProviderTimeoutError(f"Request timed out after {attempt + 1} attempts")
                logger.warning(f"LM Studio timeout (attempt {attempt + 1}/{self.max_retries})")
                last_error.__cause__ = e

            except httpx.ConnectError as e:
                # Nothing listening; retrying will not help
                raise ProviderUnavailableError(
                    f"LM Studio is not reachable at {self.base_url}"
                ) from e

            except httpx.HTTPStatusError as e:
                raise ProviderResponseError(f"HTTP {e.response.status_code}: {e.response.text}") from e

            except json.JSONDecodeError as e:
                raise ProviderResponseError(f"Invalid JSON from LM Studio: {e}") from e

            except httpx.TransportError as e:
                # Read/write resets, protocol errors and the like
                raise ProviderUnavailableError(f"LM Studio connection failed: {type(e).__name__}: {e}") from e

            if attempt < self.max_retries - 1:
                await asyncio.sleep(self.retry_delay * (2 ** attempt))

        raise last_error

    async def close(self):
        await self.client.aclose()
