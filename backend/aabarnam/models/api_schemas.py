"""
Pydantic API schemas for the REST endpoints.

WHAT: Request and response models for FastAPI
WHY: Type-safe validation; money leaves the service as decimal strings
HOW: Pydantic v2 models with validators and constraints
"""

from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Literal, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator

from ..utils.money import D, display_str


# ========== Metal Rates ==========

class RateOut(BaseModel):
    """One grade in the rate table."""
    metal_type: str
    rate_per_gram: str = Field(..., description="Current INR per gram, 2 decimals")
    previous_rate: str = Field(..., description="Rate before the latest write")
    change: str = Field(..., description="rate_per_gram - previous_rate")
    trend: Literal["up", "down", "flat"]
    updated_at: Optional[datetime] = None
    updated_by: Optional[str] = None

    @classmethod
    def from_row(cls, row) -> "RateOut":
        current = D(row.rate_per_gram)
        previous = D(row.previous_rate)
        change = current - previous
        trend = "up" if change > 0 else "down" if change < 0 else "flat"
        return cls(
            metal_type=row.metal_type,
            rate_per_gram=display_str(current),
            previous_rate=display_str(previous),
            change=display_str(change),
            trend=trend,
            updated_at=row.updated_at,
            updated_by=row.updated_by,
        )


class RatesResponse(BaseModel):
    rates: List[RateOut]


class RateOverrideItem(BaseModel):
    """Manual rate for one grade."""
    metal_type: str = Field(..., min_length=1, max_length=30)
    rate_per_gram: Decimal = Field(..., ge=0, description="INR per gram")

    @field_validator("metal_type")
    @classmethod
    def normalize_grade(cls, v: str) -> str:
        return v.strip().upper()


class RateOverrideRequest(BaseModel):
    """Manual override batch; applied atomically."""
    rates: List[RateOverrideItem] = Field(..., min_length=1)

    @field_validator("rates")
    @classmethod
    def unique_grades(cls, v: List[RateOverrideItem]) -> List[RateOverrideItem]:
        grades = [item.metal_type for item in v]
        if len(grades) != len(set(grades)):
            raise ValueError("Each metal_type may appear only once per override")
        return v


# ========== Sync ==========

class SyncConfigRequest(BaseModel):
    interval: float = Field(..., ge=0, description="Hours between automatic syncs (0 = off)")
    premium: float = Field(..., ge=0, le=100, description="Premium over spot, percent")


class SyncConfigResponse(BaseModel):
    interval: float
    premium: float
    enabled: bool
    next_run_time: Optional[datetime] = None


class SyncRequest(BaseModel):
    premium: Optional[float] = Field(default=None, ge=0, le=100, description="Override premium for this run")


class SyncResponse(BaseModel):
    success: bool
    degraded: bool = False
    rates: Dict[str, str] = Field(default_factory=dict)
    error: Optional[str] = None
    synced_at: datetime


# ========== Product Price ==========

class ProductPriceResponse(BaseModel):
    """Customer-facing live price; wholesale cost and floor are never included."""
    product_id: int
    name: str
    metal_type: str
    rate_per_gram: str
    metal_value: str
    wastage_value: str
    making_charge: str
    subtotal: str
    gst_amount: str
    listed_price: str
    discount_amount: str
    final_total_price: str
    fixed_price_applied: bool
    degraded: bool


# ========== One-shot Bargain ==========

class BargainRequest(BaseModel):
    """A single customer bid; no session is kept between calls."""
    product_id: int = Field(..., gt=0)
    user_bid: str = Field(..., min_length=1, max_length=1000, description="Free text or a bare amount")

    @field_validator("user_bid", mode="before")
    @classmethod
    def stringify_bid(cls, v):
        # Numeric bids arrive as JSON numbers
        if isinstance(v, (int, float, Decimal)) and not isinstance(v, bool):
            return str(v)
        return v


class BargainResponse(BaseModel):
    response_message: str
    status: Literal["negotiating", "accepted"]
    counter_offer: int = Field(..., description="Whole rupees, never under the floor")
    listed_price: int


# ========== WebSocket Frames ==========

class InboundFrame(BaseModel):
    """Envelope of every client frame: {"event": ..., "data": {...}}."""
    event: str = Field(..., min_length=1)
    data: Dict = Field(default_factory=dict)

    @field_validator("data", mode="before")
    @classmethod
    def empty_data(cls, v):
        return {} if v is None else v


class StartNegotiationPayload(BaseModel):
    product_id: int = Field(..., validation_alias=AliasChoices("product_id", "productId"), gt=0)


class SendMessagePayload(BaseModel):
    text: str = Field(..., max_length=1000)
