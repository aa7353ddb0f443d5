"""
Price calculator.

WHAT: Turn a product record + rate snapshot into wholesale cost, listed price
      and the absolute floor price
WHY: Every price the shop shows or negotiates derives from these formulas
HOW: Pure functions over Decimal; no database access, no mutation
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from ..models.pricing import (
    PriceBreakdown,
    PricingPolicy,
    ProductRecord,
    RateSnapshot,
    raw_grade_for,
)
from ..utils.money import D, ZERO, display_str
from ..utils.logger import get_logger

logger = get_logger(__name__)

HUNDRED = Decimal("100")


def _rate_for(rates: RateSnapshot, grade: str, faults: list) -> Decimal:
    rate = D(rates.get(grade))
    if rate <= 0:
        faults.append(grade)
        return ZERO
    return rate


def _purchase_making_charge(product: ProductRecord) -> Decimal:
    if product.purchase_mc_type == "BUNDLED":
        return ZERO
    if product.purchase_mc_type == "PER_GRAM":
        return D(product.purchase_mc) * D(product.gross_weight)
    return D(product.purchase_mc)


def _retail_making_charge(product: ProductRecord, retail_metal_value: Decimal) -> Decimal:
    amount = D(product.making_charge)
    if product.making_charge_type == "PERCENTAGE":
        return retail_metal_value * amount / HUNDRED
    if product.making_charge_type == "PER_GRAM":
        return D(product.net_weight) * amount
    return amount


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def discount_active(product: ProductRecord, at: Optional[datetime] = None) -> bool:
    """True when the product's discount window covers `at` (default: now)."""
    if not product.discount_type or not product.discount_value:
        return False
    if product.discount_start is None or product.discount_end is None:
        return False
    at = _as_utc(at or datetime.now(timezone.utc))
    return _as_utc(product.discount_start) <= at <= _as_utc(product.discount_end)


def compute_breakdown(
    product: ProductRecord,
    rates: RateSnapshot,
    policy: PricingPolicy = PricingPolicy(),
    at: Optional[datetime] = None,
) -> PriceBreakdown:
    """
    Compute the full price breakdown for a product.

    WHAT: Wholesale cost, retail components, listed price and floor price
    WHY: Single source of truth for catalog display and negotiation bounds
    HOW:
        wholesale = gross × touch% × raw rate + purchase making charge
        listed    = (metal + wastage + making) × (1 + GST%)
        floor     = wholesale × (1 + floor margin%)

    A missing or zero rate is treated as 0 and reported in `rate_faults`;
    callers must not negotiate on such a breakdown.

    Args:
        product: Product record
        rates: Snapshot of grade -> rate per gram
        policy: GST, floor margin and default touch
        at: Moment used to evaluate the discount window

    Returns:
        PriceBreakdown
    """
    faults: list = []

    raw_grade = raw_grade_for(product.metal_type)
    raw_rate = _rate_for(rates, raw_grade, faults)
    retail_rate = _rate_for(rates, product.metal_type, faults)

    # Purchase side
    touch_pct = D(product.purchase_touch_pct) if product.purchase_touch_pct else policy.default_touch_pct
    pure_weight = D(product.gross_weight) * (touch_pct / HUNDRED)
    wholesale_cost = pure_weight * raw_rate + _purchase_making_charge(product)

    # Retail side
    retail_metal_value = D(product.net_weight) * retail_rate
    wastage_value = retail_metal_value * D(product.wastage_pct) / HUNDRED
    making_charge = _retail_making_charge(product, retail_metal_value)

    subtotal = retail_metal_value + wastage_value + making_charge
    gst_amount = subtotal * policy.gst_pct / HUNDRED
    listed_value = subtotal + gst_amount

    floor_value = wholesale_cost * (1 + policy.floor_margin_pct / HUNDRED)

    # Shelf price: fixed override first, then any active discount
    fixed_applied = product.fixed_price is not None and D(product.fixed_price) > 0
    selling_value = D(product.fixed_price) if fixed_applied else listed_value
    discount_amount = ZERO
    if discount_active(product, at):
        if product.discount_type == "PERCENTAGE":
            discount_amount = selling_value * D(product.discount_value) / HUNDRED
        else:
            discount_amount = D(product.discount_value)
        discount_amount = min(discount_amount, selling_value)
        selling_value -= discount_amount

    if faults:
        logger.warning(
            f"Pricing data fault for product {product.id} ({product.metal_type}): "
            f"missing/zero rate for {', '.join(sorted(set(faults)))}"
        )

    return PriceBreakdown(
        product_id=product.id,
        metal_type=product.metal_type,
        raw_rate=raw_rate,
        retail_rate=retail_rate,
        pure_weight=pure_weight,
        wholesale_cost=wholesale_cost,
        retail_metal_value=retail_metal_value,
        wastage_value=wastage_value,
        making_charge=making_charge,
        subtotal=subtotal,
        gst_amount=gst_amount,
        listed_value=listed_value,
        floor_value=floor_value,
        selling_value=selling_value,
        discount_amount=discount_amount,
        fixed_price_applied=fixed_applied,
        rate_faults=tuple(sorted(set(faults))),
    )


def rebalance_for_price(
    final_price: int,
    base_metal_value: Decimal,
    making_charge: Decimal,
    gst_pct: Decimal = Decimal("3"),
) -> dict:
    """
    Re-derive the wastage component that makes a negotiated price add up.

    WHAT: Breakdown shown with every price update
    WHY: The making charge stays locked; the concession is absorbed by wastage
    HOW: subtotal = price / (1 + GST%), wastage = subtotal - metal - making (>= 0)

    Returns:
        Dict with making_charge, wastage_value, wastage_pct (2-dp strings)
        and final_total_price (int)
    """
    base = D(base_metal_value)
    making = D(making_charge)
    new_subtotal = D(final_price) / (1 + D(gst_pct) / HUNDRED)
    wastage_value = max(new_subtotal - base - making, ZERO)
    wastage_pct = wastage_value / base * HUNDRED if base > 0 else ZERO

    return {
        "making_charge": display_str(making),
        "wastage_value": display_str(wastage_value),
        "wastage_pct": display_str(wastage_pct),
        "final_total_price": int(final_price),
    }
