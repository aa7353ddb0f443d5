"""
Error handling unit tests.

WHAT: Exception payloads and their HTTP status mapping
WHY: REST responses and WebSocket error frames share one mapping
HOW: Call status_for() and the handlers directly
"""

import json

import pytest

from aabarnam.llm.types import ProviderResponseError, ProviderTimeoutError
from aabarnam.middleware.error_handler import (
    business_exception_handler,
    provider_response_error_handler,
    provider_timeout_handler,
    status_for,
)
from aabarnam.utils.exceptions import (
    BusinessException,
    InvalidRateException,
    NegotiationNotActiveException,
    PricingDataError,
    ProductNotFoundException,
    ValidationException,
)


@pytest.mark.unit
@pytest.mark.parametrize(
    "exc,status",
    [
        (ProductNotFoundException(7), 404),
        (PricingDataError(7, ["24K_GOLD"]), 409),
        (NegotiationNotActiveException("s1", "accepted"), 409),
        (InvalidRateException("Unknown metal grade: PLATINUM", metal_type="PLATINUM"), 422),
        (ValidationException("bad", field_errors=[{"field": "interval", "error": "must be >= 0"}]), 400),
        (BusinessException("other", "OTHER"), 400),
    ],
)
def test_status_mapping(exc, status):
    assert status_for(exc) == status


@pytest.mark.unit
def test_pricing_fault_details():
    exc = PricingDataError(3, ["SILVER"])

    assert exc.code == "PRICING_DATA_FAULT"
    assert exc.details == {"product_id": 3, "missing_rates": ["SILVER"]}
    assert "SILVER" in exc.message


@pytest.mark.unit
async def test_business_handler_body():
    response = await business_exception_handler(None, ProductNotFoundException(42))
    body = json.loads(response.body)

    assert response.status_code == 404
    assert body["error"] == "PRODUCT_NOT_FOUND"
    assert body["details"] == {"product_id": 42}
    assert "timestamp" in body


@pytest.mark.unit
async def test_provider_handlers():
    timeout = await provider_timeout_handler(None, ProviderTimeoutError("slow"))
    bad = await provider_response_error_handler(None, ProviderResponseError("garbage"))

    assert timeout.status_code == 503
    assert bad.status_code == 502
