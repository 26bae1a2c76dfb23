"""
Custom exceptions and handlers for consistent API error responses.

Every failure leaves the API in the same envelope:

    {"status": "error", "analysis": <analysis kind or null>,
     "error": {"kind": <machine readable>, "message": ..., "details": {...}}}
"""

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from typing import Any, Dict, Optional
import logging

logger = logging.getLogger(__name__)


class APIError(Exception):
    """Base exception for API errors"""

    kind = "api_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "message": self.message, "details": self.details}


class APIValidationError(APIError):
    """Input validation error - renamed from ValidationError to avoid Pydantic collision"""

    kind = "validation_error"
    status_code = status.HTTP_400_BAD_REQUEST


def format_validation_errors(errors) -> str:
    """Flatten pydantic error entries into one readable message"""
    parts = []
    for error in errors:
        location = ".".join(str(loc) for loc in error.get("loc", ()) if loc != "body")
        message = error.get("msg", "invalid value")
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts) or "Validation failed"


def jsonable_validation_errors(errors) -> list:
    return [
        {
            "loc": [str(loc) for loc in error.get("loc", ())],
            "msg": str(error.get("msg", "")),
            "type": str(error.get("type", "")),
        }
        for error in errors
    ]


def _error_response(request: Request, exc: APIError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "status": "error",
            "analysis": getattr(request.state, "analysis", None),
            "error": exc.to_dict(),
        },
    )


async def handle_api_error(request: Request, exc: APIError) -> JSONResponse:
    """Handle custom API errors"""
    if exc.status_code >= 500:
        logger.error(f"{exc.__class__.__name__} at {request.url.path}: {exc.message}")
    else:
        logger.warning(f"{exc.__class__.__name__} at {request.url.path}: {exc.message}")
    return _error_response(request, exc)


async def handle_request_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Convert FastAPI body validation failures into validation_error envelopes"""
    errors = exc.errors()
    logger.warning(f"Request validation failed at {request.url.path}: {errors}")
    error = APIValidationError(
        format_validation_errors(errors),
        details={"validation_errors": jsonable_validation_errors(errors)},
    )
    return _error_response(request, error)


async def handle_value_error(request: Request, exc: ValueError) -> JSONResponse:
    """Convert ValueError to consistent API response"""
    logger.warning(f"ValueError at {request.url.path}: {str(exc)}")
    return _error_response(request, APIValidationError(str(exc)))


def register_exception_handlers(app):
    """Register all exception handlers with the FastAPI app"""
    app.add_exception_handler(APIError, handle_api_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(ValueError, handle_value_error)
