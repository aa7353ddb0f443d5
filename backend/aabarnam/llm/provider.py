"""
LLM provider protocol definition.

WHAT: Abstract interface for LLM providers
WHY: Decouple the external arbiter from specific provider implementations
HOW: Use Protocol to define async methods for ping and generate
"""

from typing import Any, Protocol
from .types import ChatMessage, LLMResult, ProviderStatus, ToolSpec


class LLMProvider(Protocol):
    """Protocol defining the interface all LLM providers must implement."""

    async def ping(self) -> ProviderStatus:
        """Check provider health and availability."""
        ...

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
        """Generate a complete response, optionally forcing a tool call."""
        ...
