"""
Money and rounding helpers.

WHAT: Decimal conversion plus the two rounding conventions of the shop
WHY: Negotiation deals in whole rupees, display breakdowns in 2 decimals;
     float arithmetic would drift at the boundary
HOW: Decimal quantize with explicit rounding modes
"""

from decimal import Decimal, ROUND_HALF_UP, ROUND_CEILING, InvalidOperation

RUPEE = Decimal("1")
PAISE = Decimal("0.01")
ZERO = Decimal("0")


def D(value) -> Decimal:
    """Convert numbers/strings to Decimal without float artefacts (None -> 0)."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"Not a monetary value: {value!r}") from e


def to_rupees(value) -> int:
    """Round half-up to whole rupees."""
    return int(D(value).quantize(RUPEE, rounding=ROUND_HALF_UP))


def ceil_rupees(value) -> int:
    """Round up to whole rupees (used for floors, which must never be undercut)."""
    return int(D(value).quantize(RUPEE, rounding=ROUND_CEILING))


def to_display(value) -> Decimal:
    """Round half-up to 2 decimals for display."""
    return D(value).quantize(PAISE, rounding=ROUND_HALF_UP)


def display_str(value) -> str:
    """2-decimal string for JSON payloads."""
    return str(to_display(value))
