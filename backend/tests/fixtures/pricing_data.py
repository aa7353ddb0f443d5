"""Worked-example catalog data shared by unit and integration tests."""

from decimal import Decimal

# 22K retail at ₹6000/g, 24K raw at ₹5800/g
EXAMPLE_RATES = {
    "24K_GOLD": Decimal("5800.00"),
    "22K_GOLD": Decimal("6000.00"),
    "18K_GOLD": Decimal("4500.00"),
    "SILVER": Decimal("80.00"),
}

# listed = (60000 + 7200 + 1500) * 1.03 = 70761
# floor  = ceil(10.3 * 0.92 * 5800 * 1.05) = ceil(57708.84) = 57709
EXAMPLE_LISTED = 70761
EXAMPLE_FLOOR = 57709
