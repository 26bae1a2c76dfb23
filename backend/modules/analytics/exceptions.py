# backend/modules/analytics/exceptions.py

"""
Custom exceptions for the analytics module.

Only two things can go wrong inside the analytics core: the request is
malformed, or an internal invariant broke while computing. An empty data set
is a normal result and has no exception type.
"""

from typing import Optional, Dict, Any

from fastapi import status

from core.exceptions import APIError, APIValidationError


class AnalyticsValidationError(APIValidationError):
    """Raised when an analysis request is malformed"""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = dict(details or {})
        if field:
            details["field"] = field
        super().__init__(message, details)
        self.field = field


class InvalidPeriodError(AnalyticsValidationError):
    """Raised when a relative period token cannot be resolved"""

    def __init__(self, token: str, message: str):
        super().__init__(message, field="period", details={"token": token})
        self.token = token


class ComputationError(APIError):
    """Raised when an internal invariant is violated during a computation"""

    kind = "computation_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        stage: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = dict(details or {})
        if stage:
            details["stage"] = stage
        super().__init__(message, details)
        self.stage = stage
