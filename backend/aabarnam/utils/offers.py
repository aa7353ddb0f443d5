"""
Offer parsing utilities.

WHAT: Pull a rupee amount out of a customer's chat message
WHY: The fallback negotiator needs a machine-readable offer; customers write
     "₹65,000", "Rs. 65000", "65k" or "1.2 lakh"
HOW: Regex scan for number tokens, unit multipliers, and a filter for numbers
     that describe the item (karat, grams, percentages) rather than money
"""

import re
from decimal import Decimal, InvalidOperation
from typing import Optional

from .money import to_rupees
from ..utils.logger import get_logger

logger = get_logger(__name__)

# Smallest amount treated as a price offer; smaller numbers are quantities or times
MIN_OFFER_RUPEES = 100

_NUMBER = re.compile(r"(?<![\d,])(?<!\d\.)(\d[\d,]*(?:\.\d+)?)")

_NOT_MONEY = re.compile(
    r"\s*(?:k\s*gold|karat|carat|ct\b|kt\b|g\b|gms?\b|grams?\b|%|percent|"
    r"minutes?\b|mins?\b|hours?\b|hrs?\b|days?\b|pieces?\b|pcs\b)",
    re.IGNORECASE,
)

_UNIT = re.compile(r"\s*(lakhs?|lacs?|l\b|k\b|thousand)", re.IGNORECASE)

_MULTIPLIERS = {
    "lakh": Decimal("100000"),
    "lakhs": Decimal("100000"),
    "lac": Decimal("100000"),
    "lacs": Decimal("100000"),
    "l": Decimal("100000"),
    "k": Decimal("1000"),
    "thousand": Decimal("1000"),
}


def extract_offer_amount(text: str) -> Optional[int]:
    """
    Extract the customer's offered price from free text.

    When several amounts appear, the last one wins ("70761 is too much,
    I'll pay 65000" offers 65000).

    Args:
        text: Customer message

    Returns:
        Whole-rupee amount, or None when the message carries no offer
    """
    if not text:
        return None

    candidates = []
    for match in _NUMBER.finditer(text):
        rest = text[match.end():]
        if _NOT_MONEY.match(rest):
            continue

        raw = match.group(1).rstrip(",").replace(",", "")
        try:
            value = Decimal(raw)
        except InvalidOperation:
            continue

        unit = _UNIT.match(rest)
        if unit:
            value *= _MULTIPLIERS[unit.group(1).lower()]

        try:
            amount = to_rupees(value)
        except InvalidOperation:
            # More digits than Decimal precision holds; not a price
            continue
        if amount >= MIN_OFFER_RUPEES:
            candidates.append(amount)

    if not candidates:
        logger.debug("No numeric offer found in message")
        return None

    return candidates[-1]


def format_rupees(amount: int) -> str:
    """Indian digit grouping with the rupee sign: 123456 -> ₹1,23,456."""
    sign = "-" if amount < 0 else ""
    digits = str(abs(int(amount)))
    if len(digits) > 3:
        head, tail = digits[:-3], digits[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        digits = ",".join(groups + [tail])
    return f"{sign}₹{digits}"
