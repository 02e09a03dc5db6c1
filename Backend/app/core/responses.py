"""
Standardized API Response Module

Provides consistent response formatting across the shipping API.

RESPONSE FORMAT:
    Successful reads return the resource itself (address, package, list).
    Successful writes return an empty 200 body.

    Errors always follow this structure:
        {
            "error": {
                "code": "ERROR_CODE",
                "message": "Human-readable message",
                "details": {...}  # Optional extra context
            },
            "status": "error"
        }

ERROR CODES:
    - AUTHENTICATION_REQUIRED: No valid auth credentials provided
    - INSUFFICIENT_ROLE: Caller lacks a role required for the store
    - STORE_NOT_FOUND: Merchant store could not be resolved
    - RESOURCE_NOT_FOUND: Package code does not exist for the store
    - VALIDATION_ERROR: Request data failed validation
    - ALREADY_EXISTS: Package code already used in the store
    - INTERNAL_ERROR: Server-side error
"""

from typing import Any, Optional
from pydantic import BaseModel


class ErrorDetail(BaseModel):
    """Structured error information."""
    code: str
    message: str
    details: Optional[dict[str, Any]] = None


class ErrorResponse(BaseModel):
    """Error envelope, used to document error responses in OpenAPI."""
    error: ErrorDetail
    status: str = "error"


# ============================================================================
# COMMON ERROR CODES
# ============================================================================

class ErrorCodes:
    """Standard error codes for API responses."""

    # Authentication errors (401)
    AUTHENTICATION_REQUIRED = "AUTHENTICATION_REQUIRED"
    INVALID_TOKEN = "INVALID_TOKEN"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"

    # Authorization errors (403)
    INSUFFICIENT_ROLE = "INSUFFICIENT_ROLE"
    NOT_STORE_MEMBER = "NOT_STORE_MEMBER"

    # Not found errors (404)
    STORE_NOT_FOUND = "STORE_NOT_FOUND"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"

    # Validation errors (422)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_INPUT = "INVALID_INPUT"

    # Conflict errors (409)
    ALREADY_EXISTS = "ALREADY_EXISTS"

    # Server errors (500)
    INTERNAL_ERROR = "INTERNAL_ERROR"


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def success_response(data: Any) -> dict:
    """
    Create a standardized success response dict.

    Use this for simple responses where a Pydantic model isn't needed.
    """
    return {"data": data, "status": "success"}


def error_response(
    code: str,
    message: str,
    details: Optional[dict] = None,
) -> dict:
    """
    Create a standardized error response dict.

    Used by the exception handlers registered in main.py.
    """
    response = {
        "error": {
            "code": code,
            "message": message,
        },
        "status": "error",
    }
    if details:
        response["error"]["details"] = details
    return response
