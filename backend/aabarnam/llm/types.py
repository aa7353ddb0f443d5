"""
LLM provider types, dataclasses, and exceptions.

WHAT: Standard type definitions for LLM interactions
WHY: Ensure consistent contracts across all providers
HOW: TypedDict for messages/tools, dataclasses for results/status, custom exceptions for errors
"""

from typing import Any, TypedDict, Literal
from dataclasses import dataclass, field


# Message format compatible with OpenAI-style APIs
ChatMessage = TypedDict(
    "ChatMessage",
    {"role": Literal["system", "user", "assistant"], "content": str}
)


class ToolFunction(TypedDict):
    name: str
    description: str
    parameters: dict


class ToolSpec(TypedDict):
    """OpenAI-style function tool declaration."""
    type: Literal["function"]
    function: ToolFunction


@dataclass
class ToolCall:
    """A function call requested by the model; arguments still raw JSON text."""
    name: str
    arguments: str
    id: str | None = None


@dataclass
class LLMResult:
    """Complete LLM generation result."""
    text: str
    usage: dict
    model: str
    tool_calls: list[ToolCall] = field(default_factory=list)


@dataclass
class ProviderStatus:
    """Health status of an LLM provider."""
    available: bool
    base_url: str
    models: list[str] | None = None
    error: str | None = None


# Provider exceptions
class ProviderTimeoutError(Exception):
    """Request to provider timed out."""
    pass


class ProviderUnavailableError(Exception):
    """Provider is not reachable or down."""
    pass


class ProviderDisabledError(Exception):
    """Provider is disabled in configuration."""
    pass


class ProviderResponseError(Exception):
    """Provider returned an invalid or error response."""
    pass


def tool_choice_for(name: str) -> dict[str, Any]:
    """Force the model to call exactly this function."""
    return {"type": "function", "function": {"name": name}}
