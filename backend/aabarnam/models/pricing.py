"""
Pricing domain models.

WHAT: Metal grades, product pricing record, pricing policy and price breakdown
WHY: Consistent typing between rate store, calculator, sessions and API
HOW: Pydantic v2 model for product input, dataclasses for computed values
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Dict, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from ..utils.money import D, to_rupees, ceil_rupees, display_str


# ========== Metal Grades ==========

GOLD_24K = "24K_GOLD"
GOLD_22K = "22K_GOLD"
GOLD_18K = "18K_GOLD"
SILVER = "SILVER"

ALL_GRADES: Tuple[str, ...] = (GOLD_24K, GOLD_22K, GOLD_18K, SILVER)

# Fineness applied to the pure-metal spot price for each grade
GRADE_PURITY: Dict[str, Decimal] = {
    GOLD_24K: Decimal("0.999"),
    GOLD_22K: Decimal("0.916"),
    GOLD_18K: Decimal("0.750"),
    SILVER: Decimal("0.999"),
}

RateSnapshot = Dict[str, Decimal]


def is_gold_family(metal_type: str) -> bool:
    return "GOLD" in (metal_type or "").upper()


def raw_grade_for(metal_type: str) -> str:
    """Refinable grade used for wholesale costing: 24K for any gold, silver otherwise."""
    return GOLD_24K if is_gold_family(metal_type) else SILVER


# ========== Product Input ==========

class ProductRecord(BaseModel):
    """Read-only product fields the pricing engine needs."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    metal_type: str
    gross_weight: Decimal = Field(ge=0)
    net_weight: Decimal = Field(ge=0)
    stone_weight: Decimal = Decimal("0")

    purchase_touch_pct: Optional[Decimal] = None
    purchase_mc_type: Literal["PER_GRAM", "FIXED", "BUNDLED"] = "FIXED"
    purchase_mc: Decimal = Decimal("0")

    wastage_pct: Decimal = Decimal("0")
    making_charge_type: Literal["FLAT", "PER_GRAM", "PERCENTAGE"] = "FLAT"
    making_charge: Decimal = Decimal("0")
    fixed_price: Optional[Decimal] = None

    discount_type: Optional[Literal["FLAT", "PERCENTAGE"]] = None
    discount_value: Optional[Decimal] = None
    discount_start: Optional[datetime] = None
    discount_end: Optional[datetime] = None


# ========== Policy ==========

@dataclass(frozen=True)
class PricingPolicy:
    """Shop-wide pricing constants."""
    gst_pct: Decimal = Decimal("3")
    floor_margin_pct: Decimal = Decimal("5")
    default_touch_pct: Decimal = Decimal("91.6")

    @classmethod
    def from_settings(cls) -> "PricingPolicy":
        from ..core.config import settings
        return cls(
            gst_pct=D(settings.GST_PCT),
            floor_margin_pct=D(settings.FLOOR_MARGIN_PCT),
            default_touch_pct=D(settings.DEFAULT_TOUCH_PCT),
        )


# ========== Computed Breakdown ==========

@dataclass(frozen=True)
class PriceBreakdown:
    """
    Full price derivation for one product against one rate snapshot.

    Exact Decimal values are kept; rounding happens in the properties so the
    negotiation (whole rupees) and display (2 decimals) conventions never mix.
    """
    product_id: int
    metal_type: str
    raw_rate: Decimal
    retail_rate: Decimal
    pure_weight: Decimal
    wholesale_cost: Decimal
    retail_metal_value: Decimal
    wastage_value: Decimal
    making_charge: Decimal
    subtotal: Decimal
    gst_amount: Decimal
    listed_value: Decimal
    floor_value: Decimal
    selling_value: Decimal
    discount_amount: Decimal = Decimal("0")
    fixed_price_applied: bool = False
    rate_faults: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def listed_price(self) -> int:
        return to_rupees(self.listed_value)

    @property
    def floor_price(self) -> int:
        return ceil_rupees(self.floor_value)

    @property
    def selling_price(self) -> int:
        return to_rupees(self.selling_value)

    @property
    def opening_price(self) -> int:
        """Price a negotiation opens at: the shelf price, never under the floor."""
        return max(self.selling_price, self.floor_price)

    @property
    def degraded(self) -> bool:
        return bool(self.rate_faults)

    def to_display(self) -> dict:
        """Customer-facing breakdown; wholesale cost and floor are never included."""
        return {
            "product_id": self.product_id,
            "metal_type": self.metal_type,
            "rate_per_gram": display_str(self.retail_rate),
            "metal_value": display_str(self.retail_metal_value),
            "wastage_value": display_str(self.wastage_value),
            "making_charge": display_str(self.making_charge),
            "subtotal": display_str(self.subtotal),
            "gst_amount": display_str(self.gst_amount),
            "listed_price": display_str(self.listed_value),
            "discount_amount": display_str(self.discount_amount),
            "final_total_price": display_str(self.selling_value),
            "fixed_price_applied": self.fixed_price_applied,
            "degraded": self.degraded,
        }
