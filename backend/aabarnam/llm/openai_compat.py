"""
OpenAI-compatible chat-completions helpers.

WHAT: Payload building and response parsing shared by both providers
WHY: OpenRouter and LM Studio speak the same wire format
HOW: Plain dict construction; parsing raises ProviderResponseError on bad shapes
"""

import json
from typing import Any

from .types import ChatMessage, LLMResult, ToolCall, ToolSpec, ProviderResponseError


def build_payload(
    model: str,
    messages: list[ChatMessage],
    *,
    temperature: float,
    max_tokens: int,
    tools: list[ToolSpec] | None = None,
    tool_choice: dict[str, Any] | str | None = None,
) -> dict:
    payload = {
        "model": model,
        "messages": messages,
        "temperature": temperature,
        "max_tokens": max_tokens,
        "stream": False
    }
    if tools:
        payload["tools"] = tools
        if tool_choice is not None:
            payload["tool_choice"] = tool_choice
    return payload


def parse_completion(data: dict, fallback_model: str) -> LLMResult:
    """
    Extract text and tool calls from a chat-completions response body.

    Raises:
        ProviderResponseError: choices/message missing or tool call malformed
    """
    if not isinstance(data, dict):
        raise ProviderResponseError(f"Invalid response format: expected object, got {type(data).__name__}")
    try:
        message = data["choices"][0]["message"]
    except (KeyError, IndexError, TypeError) as e:
        raise ProviderResponseError(f"Invalid response format: {e}") from e
    if not isinstance(message, dict):
        raise ProviderResponseError(f"Invalid response format: message is {type(message).__name__}")

    raw_calls = message.get("tool_calls") or []
    if not isinstance(raw_calls, list):
        raise ProviderResponseError(f"Malformed tool calls: {type(raw_calls).__name__}")

    tool_calls = []
    for raw in raw_calls:
        try:
            function = raw["function"]
            if not isinstance(function, dict):
                raise TypeError(f"function is {type(function).__name__}")
            arguments = function.get("arguments") or ""
            if isinstance(arguments, dict):
                # Some gateways return already-decoded arguments
                arguments = json.dumps(arguments)
            tool_calls.append(ToolCall(name=function["name"], arguments=arguments, id=raw.get("id")))
        except (KeyError, TypeError) as e:
            raise ProviderResponseError(f"Malformed tool call: {e}") from e

    return LLMResult(
        text=message.get("content") or "",
        usage=data.get("usage", {}),
        model=data.get("model", fallback_model),
        tool_calls=tool_calls
    )
