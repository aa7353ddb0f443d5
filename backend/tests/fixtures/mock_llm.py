"""
Mock LLM provider for deterministic testing.

WHAT: Fake provider returning scripted update_live_price tool calls
WHY: Test the external arbiter and sessions without a real LLM
HOW: Implement the LLMProvider protocol; each script entry is a dict of tool
     arguments, a plain string (text-only answer) or an exception to raise
"""

import asyncio
import json
from typing import Any, Dict, List

from aabarnam.llm.types import ChatMessage, LLMResult, ProviderStatus, ToolCall


class RawArguments:
    """Tool arguments passed through verbatim (for malformed JSON cases)."""

    def __init__(self, text: str):
        self.text = text


class MockLLMProvider:
    """
    Scripted tool-calling provider.

    Script entries are consumed in order; the last one repeats.
    """

    def __init__(self, script: List[Any] | None = None, delay: float = 0.0):
        self.script = script or [{"message": "Mock reply", "final_rounded_price": 70000, "status": "negotiating"}]
        self.delay = delay
        self.call_count = 0
        self.calls: List[Dict] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def ping(self) -> ProviderStatus:
        return ProviderStatus(available=True, base_url="http://mock:1234/v1", models=["mock-model"])

    async def generate(
        self,
        messages: List[ChatMessage],
        *,
        temperature: float,
        max_tokens: int,
        tools=None,
        tool_choice=None,
        model=None
    ) -> LLMResult:
        self.calls.append({
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
            "tools": tools,
            "tool_choice": tool_choice,
        })
        entry = self.script[min(self.call_count, len(self.script) - 1)]
        self.call_count += 1

        if self.delay:
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
            try:
                await asyncio.sleep(self.delay)
            finally:
                self.in_flight -= 1

        if isinstance(entry, Exception):
            raise entry

        if isinstance(entry, str):
            return LLMResult(text=entry, usage={}, model="mock-model")

        arguments = entry.text if isinstance(entry, RawArguments) else json.dumps(entry)
        return LLMResult(
            text="",
            usage={"prompt_tokens": 10, "completion_tokens": 5, "total_tokens": 15},
            model="mock-model",
            tool_calls=[ToolCall(name="update_live_price", arguments=arguments, id="call_1")]
        )
