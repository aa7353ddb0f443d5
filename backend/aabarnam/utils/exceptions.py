"""
Custom business exceptions.

WHAT: Domain-specific exceptions that map to HTTP status codes
WHY: Consistent error handling across REST endpoints and the socket layer
HOW: Custom exception classes with error codes and messages
"""

from typing import Optional, List, Dict, Any


class BusinessException(Exception):
    """Base class for business logic exceptions."""

    def __init__(self, message: str, code: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details


class ProductNotFoundException(BusinessException):
    """Raised when a product id does not exist in the catalog."""

    def __init__(self, product_id: int):
        super().__init__(
            message=f"Product not found: {product_id}",
            code="PRODUCT_NOT_FOUND",
            details={"product_id": product_id}
        )


class PricingDataError(BusinessException):
    """Raised when a price cannot be trusted (missing or zero metal rate)."""

    def __init__(self, product_id: int, faults: List[str]):
        super().__init__(
            message=f"Pricing data incomplete for product {product_id}: no rate for {', '.join(faults)}",
            code="PRICING_DATA_FAULT",
            details={"product_id": product_id, "missing_rates": list(faults)}
        )


class InvalidRateException(BusinessException):
    """Raised for a rate write that cannot be accepted."""

    def __init__(self, message: str, metal_type: Optional[str] = None):
        super().__init__(
            message=message,
            code="INVALID_RATE",
            details={"metal_type": metal_type} if metal_type else None
        )


class ValidationException(BusinessException):
    """Raised for validation errors."""

    def __init__(self, message: str, field_errors: Optional[List[Dict[str, str]]] = None):
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            details={"field_errors": field_errors} if field_errors else None
        )


class NegotiationNotActiveException(BusinessException):
    """Raised when an event arrives for a session that is not negotiating."""

    def __init__(self, session_id: str, current_state: str):
        super().__init__(
            message=f"Negotiation not active for session {session_id}. Current state: {current_state}",
            code="NEGOTIATION_NOT_ACTIVE",
            details={"session_id": session_id, "current_state": current_state}
        )
