"""
Unit tests for offer parsing.

WHAT: extract_offer_amount over the ways customers write prices
WHY: The fallback negotiator branches on whether an offer was made
HOW: Parametrized text -> amount cases
"""

import pytest

from aabarnam.utils.offers import extract_offer_amount, format_rupees


@pytest.mark.unit
@pytest.mark.parametrize(
    "text,expected",
    [
        ("65000", 65000),
        ("I can pay ₹65,000", 65000),
        ("Rs. 65000 final", 65000),
        ("Rs.65000", 65000),
        ("how about 65k?", 65000),
        ("1.2 lakh is my budget", 120000),
        ("₹1,23,456", 123456),
        ("65000.6", 65001),
        ("70761 is too much, I'll pay 65000", 65000),
    ],
)
def test_extracts_amount(text, expected):
    assert extract_offer_amount(text) == expected


@pytest.mark.unit
@pytest.mark.parametrize(
    "text",
    [
        "",
        "hi there",
        "is this 22K gold?",
        "it weighs 10 g",
        "give me 5% off",
        "wait 2 minutes",
    ],
)
def test_no_offer(text):
    assert extract_offer_amount(text) is None


@pytest.mark.unit
def test_format_rupees_uses_indian_grouping():
    assert format_rupees(70761) == "₹70,761"
    assert format_rupees(123456) == "₹1,23,456"
    assert format_rupees(999) == "₹999"
    assert format_rupees(10000000) == "₹1,00,00,000"


@pytest.mark.unit
def test_overlong_number_is_not_an_offer():
    assert extract_offer_amount("order 1234567890123456789012345678901234 please") is None
    assert extract_offer_amount("ref 99999999999999999999999999999999, my offer is 65000") == 65000
