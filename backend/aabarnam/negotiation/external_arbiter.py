"""
External (LLM tool-calling) arbiter.

WHAT: Ask a chat model for the manager's next move via a forced tool call
WHY: Natural conversation, with the price still machine-readable
HOW: Render prompt, call provider with tool_choice, validate the tool
     arguments with pydantic; any fault becomes ArbiterUnavailableError
"""

import json
from decimal import Decimal, InvalidOperation
from typing import Literal, Optional

from pydantic import BaseModel, ValidationError, field_validator

from .arbiter import ArbiterUnavailableError
from .prompts import PRICE_TOOL, PRICE_TOOL_NAME, render_manager_prompt
from ..core.config import settings
from ..llm.provider import LLMProvider
from ..llm.types import (
    ProviderDisabledError,
    ProviderResponseError,
    ProviderTimeoutError,
    ProviderUnavailableError,
    tool_choice_for,
)
from ..models.negotiation import ConversationState, Decision
from ..utils.money import to_rupees
from ..utils.logger import get_logger

logger = get_logger(__name__)

_PROVIDER_ERRORS = (
    ProviderDisabledError,
    ProviderResponseError,
    ProviderTimeoutError,
    ProviderUnavailableError,
)


class PriceToolArguments(BaseModel):
    """Arguments of an update_live_price call, treated as untrusted input."""

    message: str
    final_rounded_price: int
    status: Literal["negotiating", "accepted", "rejected"]

    @field_validator("message")
    @classmethod
    def message_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("message must not be empty")
        return v

    @field_validator("final_rounded_price", mode="before")
    @classmethod
    def parse_price(cls, v) -> int:
        """Accept numbers or numeric strings like "65,000" and round half-up."""
        if isinstance(v, bool):
            raise ValueError("price must be a number")
        if isinstance(v, str):
            v = v.replace(",", "").replace("₹", "").strip()
        try:
            price = to_rupees(Decimal(str(v)))
        except (InvalidOperation, ValueError) as e:
            raise ValueError(f"unparseable price: {v!r}") from e
        if price <= 0:
            raise ValueError("price must be positive")
        return price

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


class ExternalArbiter:
    """Arbiter backed by an OpenAI-compatible chat model."""

    def __init__(
        self,
        provider: Optional[LLMProvider] = None,
        *,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ):
        """
        Args:
            provider: LLM provider; resolved from the factory on first use if omitted
            temperature: Sampling temperature (default from settings)
            max_tokens: Completion budget (default from settings)
        """
        self._provider = provider
        self.temperature = settings.LLM_DEFAULT_TEMPERATURE if temperature is None else temperature
        self.max_tokens = max_tokens or settings.LLM_DEFAULT_MAX_TOKENS

    def _get_provider(self) -> LLMProvider:
        if self._provider is None:
            from ..llm.provider_factory import get_provider
            try:
                self._provider = get_provider()
            except (ProviderDisabledError, ValueError) as e:
                raise ArbiterUnavailableError(f"LLM provider not configured: {e}") from e
        return self._provider

    async def decide(self, state: ConversationState) -> Decision:
        """
        Request one forced update_live_price call and validate it.

        Raises:
            ArbiterUnavailableError: Transport fault, missing tool call,
                malformed arguments or unparseable price
        """
        provider = self._get_provider()
        messages = render_manager_prompt(state)

        try:
            result = await provider.generate(
                messages,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                tools=[PRICE_TOOL],
                tool_choice=tool_choice_for(PRICE_TOOL_NAME),
            )
        except _PROVIDER_ERRORS as e:
            raise ArbiterUnavailableError(f"{type(e).__name__}: {e}") from e
        except Exception as e:
            logger.error(f"Provider {type(provider).__name__} failed unexpectedly: {e}", exc_info=True)
            raise ArbiterUnavailableError(f"Unexpected provider failure: {type(e).__name__}: {e}") from e

        call = next((c for c in result.tool_calls if c.name == PRICE_TOOL_NAME), None)
        if call is None:
            raise ArbiterUnavailableError(f"Model {result.model} answered without calling {PRICE_TOOL_NAME}")

        try:
            args = PriceToolArguments.model_validate(json.loads(call.arguments))
        except json.JSONDecodeError as e:
            raise ArbiterUnavailableError(f"Tool arguments are not JSON: {e}") from e
        except ValidationError as e:
            raise ArbiterUnavailableError(f"Tool arguments rejected: {e.error_count()} error(s)") from e

        # A refusal keeps the haggle going; only "accepted" closes the deal
        status = "accepted" if args.status == "accepted" else "negotiating"

        logger.info(f"External arbiter proposed ₹{args.final_rounded_price} ({status})")
        return Decision(
            message=args.message,
            status=status,
            proposed_price=args.final_rounded_price,
            source="external",
        )
