"""
Unit tests for the price calculator.

WHAT: Wholesale, listed, floor and display values for product records
WHY: Every quoted and negotiated price derives from these formulas
HOW: Pure function calls on ProductRecord + rate dicts, no database
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from aabarnam.models.pricing import PricingPolicy, ProductRecord, is_gold_family, raw_grade_for
from aabarnam.services.price_calculator import compute_breakdown, discount_active, rebalance_for_price

RATES = {
    "24K_GOLD": Decimal("5800"),
    "22K_GOLD": Decimal("6000"),
    "18K_GOLD": Decimal("4500"),
    "SILVER": Decimal("80"),
}


def make_product(**overrides) -> ProductRecord:
    fields = dict(
        id=1,
        name="Lakshmi Kasu Necklace",
        metal_type="22K_GOLD",
        gross_weight=Decimal("10.3"),
        net_weight=Decimal("10"),
        purchase_touch_pct=Decimal("92"),
        purchase_mc_type="BUNDLED",
        wastage_pct=Decimal("12"),
        making_charge_type="FLAT",
        making_charge=Decimal("1500"),
    )
    fields.update(overrides)
    return ProductRecord(**fields)


@pytest.mark.unit
class TestWorkedExample:
    """10 g of 22K at ₹6000/g, 12% wastage, ₹1500 flat making."""

    def test_retail_components(self):
        b = compute_breakdown(make_product(), RATES)

        assert b.retail_metal_value == Decimal("60000")
        assert b.wastage_value == Decimal("7200")
        assert b.making_charge == Decimal("1500")
        assert b.subtotal == Decimal("68700")
        assert b.listed_price == 70761

    def test_wholesale_uses_24k_raw_rate_and_touch(self):
        b = compute_breakdown(make_product(), RATES)

        assert b.raw_rate == Decimal("5800")
        assert b.pure_weight == Decimal("9.476")
        assert b.wholesale_cost == Decimal("54960.8")

    def test_floor_rounds_up_to_whole_rupee(self):
        b = compute_breakdown(make_product(), RATES)

        assert b.floor_value == Decimal("57708.84")
        assert b.floor_price == 57709
        assert b.floor_price >= b.floor_value

    def test_opening_price_is_listed_without_overrides(self):
        b = compute_breakdown(make_product(), RATES)
        assert b.opening_price == b.listed_price == b.selling_price


@pytest.mark.unit
class TestChargeModes:

    def test_purchase_mc_fixed_and_per_gram(self):
        fixed = compute_breakdown(make_product(purchase_mc_type="FIXED", purchase_mc=Decimal("800")), RATES)
        per_gram = compute_breakdown(make_product(purchase_mc_type="PER_GRAM", purchase_mc=Decimal("100")), RATES)

        assert fixed.wholesale_cost == Decimal("54960.8") + 800
        assert per_gram.wholesale_cost == Decimal("54960.8") + Decimal("1030")

    def test_making_charge_per_gram(self):
        b = compute_breakdown(make_product(making_charge_type="PER_GRAM", making_charge=Decimal("250")), RATES)
        assert b.making_charge == Decimal("2500")

    def test_making_charge_percentage_of_metal_value(self):
        b = compute_breakdown(make_product(making_charge_type="PERCENTAGE", making_charge=Decimal("8")), RATES)
        assert b.making_charge == Decimal("4800")

    def test_default_touch_when_missing(self):
        b = compute_breakdown(make_product(purchase_touch_pct=None), RATES)
        assert b.pure_weight == Decimal("10.3") * Decimal("0.916")

    def test_silver_uses_silver_raw_rate(self):
        b = compute_breakdown(make_product(metal_type="SILVER", purchase_touch_pct=Decimal("99")), RATES)
        assert b.raw_rate == Decimal("80")
        assert b.retail_rate == Decimal("80")

    def test_gold_family_detection(self):
        assert is_gold_family("18K_GOLD")
        assert not is_gold_family("SILVER")
        assert raw_grade_for("18K_GOLD") == "24K_GOLD"
        assert raw_grade_for("SILVER") == "SILVER"

    def test_custom_policy(self):
        policy = PricingPolicy(gst_pct=Decimal("0"), floor_margin_pct=Decimal("10"))
        b = compute_breakdown(make_product(), RATES, policy)

        assert b.listed_price == 68700
        assert b.floor_value == Decimal("54960.8") * Decimal("1.10")


@pytest.mark.unit
class TestRateFaults:

    def test_missing_retail_rate_is_flagged(self):
        rates = {k: v for k, v in RATES.items() if k != "22K_GOLD"}
        b = compute_breakdown(make_product(), rates)

        assert b.degraded
        assert b.rate_faults == ("22K_GOLD",)
        assert b.retail_metal_value == 0

    def test_zero_raw_rate_is_flagged(self):
        b = compute_breakdown(make_product(), {**RATES, "24K_GOLD": Decimal("0")})
        assert "24K_GOLD" in b.rate_faults
        assert b.wholesale_cost == 0


@pytest.mark.unit
class TestShelfPrice:

    def test_fixed_price_override(self):
        b = compute_breakdown(make_product(fixed_price=Decimal("72000")), RATES)

        assert b.fixed_price_applied
        assert b.selling_price == 72000
        assert b.listed_price == 70761

    def test_active_percentage_discount(self):
        now = datetime.now(timezone.utc)
        product = make_product(
            discount_type="PERCENTAGE",
            discount_value=Decimal("10"),
            discount_start=now - timedelta(days=1),
            discount_end=now + timedelta(days=1),
        )
        b = compute_breakdown(product, RATES, at=now)

        assert discount_active(product, now)
        assert b.discount_amount == Decimal("7076.1")
        assert b.selling_price == 63685

    def test_expired_discount_ignored(self):
        now = datetime.now(timezone.utc)
        product = make_product(
            discount_type="FLAT",
            discount_value=Decimal("2000"),
            discount_start=now - timedelta(days=10),
            discount_end=now - timedelta(days=1),
        )
        b = compute_breakdown(product, RATES, at=now)

        assert not discount_active(product, now)
        assert b.selling_price == 70761

    def test_discount_never_opens_below_floor(self):
        now = datetime.now(timezone.utc)
        product = make_product(
            discount_type="FLAT",
            discount_value=Decimal("20000"),
            discount_start=now - timedelta(days=1),
            discount_end=now + timedelta(days=1),
        )
        b = compute_breakdown(product, RATES, at=now)

        assert b.selling_price == 50761
        assert b.opening_price == b.floor_price


@pytest.mark.unit
class TestDisplay:

    def test_display_values_are_two_decimal_strings(self):
        display = compute_breakdown(make_product(), RATES).to_display()

        assert display["listed_price"] == "70761.00"
        assert display["gst_amount"] == "2061.00"
        assert display["final_total_price"] == "70761.00"

    def test_display_hides_cost_side(self):
        display = compute_breakdown(make_product(), RATES).to_display()

        assert "floor_price" not in display
        assert "wholesale_cost" not in display

    def test_rebalance_keeps_making_charge_locked(self):
        result = rebalance_for_price(69761, Decimal("60000"), Decimal("1500"))

        assert result["making_charge"] == "1500.00"
        assert result["final_total_price"] == 69761
        # 69761 / 1.03 = 67729.126..., minus metal and making
        assert result["wastage_value"] == "6229.13"
        assert result["wastage_pct"] == "10.38"

    def test_rebalance_never_negative_wastage(self):
        result = rebalance_for_price(50000, Decimal("60000"), Decimal("1500"))
        assert result["wastage_value"] == "0.00"
