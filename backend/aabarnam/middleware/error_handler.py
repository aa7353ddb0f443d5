"""
Global error handling middleware.

WHAT: Translate exceptions to appropriate HTTP responses
WHY: Consistent error responses with proper status codes
HOW: FastAPI exception handlers for business and provider exceptions
"""

from datetime import datetime

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..llm.types import (
    ProviderTimeoutError,
    ProviderUnavailableError,
    ProviderDisabledError,
    ProviderResponseError,
)
from ..utils.exceptions import (
    BusinessException,
    ProductNotFoundException,
    PricingDataError,
    InvalidRateException,
    ValidationException,
    NegotiationNotActiveException,
)
from ..utils.logger import get_logger

logger = get_logger(__name__)


def _error_body(error: str, message: str, details=None) -> dict:
    return {
        "error": error,
        "message": message,
        "details": details,
        "timestamp": datetime.now().isoformat()
    }


async def provider_disabled_handler(request: Request, exc: ProviderDisabledError):
    """LLM provider switched off in configuration -> 400."""
    logger.warning(f"Provider disabled: {exc}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body("LLM_PROVIDER_DISABLED", str(exc), "Check LLM provider configuration")
    )


async def provider_timeout_handler(request: Request, exc: ProviderTimeoutError):
    """LLM request timed out -> 503."""
    logger.error(f"Provider timeout: {exc}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=_error_body("LLM_TIMEOUT", str(exc), "LLM provider request timed out")
    )


async def provider_unavailable_handler(request: Request, exc: ProviderUnavailableError):
    """LLM provider not reachable -> 503."""
    logger.error(f"Provider unavailable: {exc}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=_error_body("LLM_UNAVAILABLE", str(exc), "LLM provider is not reachable")
    )


async def provider_response_error_handler(request: Request, exc: ProviderResponseError):
    """LLM provider returned garbage -> 502."""
    logger.error(f"Provider response error: {exc}")
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content=_error_body("LLM_BAD_GATEWAY", str(exc), "LLM provider returned an invalid response")
    )


async def validation_error_handler(request: Request, exc: RequestValidationError):
    """
    Handle FastAPI RequestValidationError.

    WHAT: Request validation failed
    WHY: Invalid request payload
    HOW: Return 400 with JSON-safe field errors
    """
    logger.warning(f"Validation error: {exc.errors()}")

    cleaned_errors = []
    for error in exc.errors():
        cleaned_error = {
            "type": error.get("type"),
            "loc": error.get("loc"),
            "msg": error.get("msg"),
            "input": error.get("input")
        }
        if "ctx" in error:
            cleaned_error["ctx"] = {
                k: str(v) if isinstance(v, Exception) else v
                for k, v in error["ctx"].items()
            }
        cleaned_errors.append(cleaned_error)

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body("VALIDATION_ERROR", "Request validation failed", cleaned_errors)
    )


def status_for(exc: BusinessException) -> int:
    """HTTP status for a business exception (also used for WebSocket error frames)."""
    if isinstance(exc, ProductNotFoundException):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, (PricingDataError, NegotiationNotActiveException)):
        return status.HTTP_409_CONFLICT
    if isinstance(exc, InvalidRateException):
        return status.HTTP_422_UNPROCESSABLE_ENTITY
    if isinstance(exc, ValidationException):
        return status.HTTP_400_BAD_REQUEST
    return status.HTTP_400_BAD_REQUEST


async def business_exception_handler(request: Request, exc: BusinessException):
    """
    Handle BusinessException and its subclasses.

    WHAT: Domain error raised by a service
    WHY: Caller needs a stable error code, not a stack trace
    HOW: Status from status_for(), body with code/message/details
    """
    logger.warning(f"Business exception: {exc.code} - {exc.message}")
    return JSONResponse(
        status_code=status_for(exc),
        content=_error_body(exc.code, exc.message, exc.details)
    )


def register_exception_handlers(app):
    """
    Register all exception handlers with FastAPI app.

    Args:
        app: FastAPI application instance
    """
    # LLM Provider exceptions
    app.add_exception_handler(ProviderDisabledError, provider_disabled_handler)
    app.add_exception_handler(ProviderTimeoutError, provider_timeout_handler)
    app.add_exception_handler(ProviderUnavailableError, provider_unavailable_handler)
    app.add_exception_handler(ProviderResponseError, provider_response_error_handler)

    # Request / domain exceptions
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(BusinessException, business_exception_handler)

    logger.info("Exception handlers registered")
