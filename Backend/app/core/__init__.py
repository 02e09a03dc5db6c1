"""
Core module - configuration, database, request context, and response formatting.
"""
from .config import get_settings
from .db import get_session, Base, engine, AsyncSessionLocal
from .request_context import (
    RequestContext,
    authenticated_user,
    resolve_request_context,
    require_store_access,
    get_request_context,
    AuthenticationError,
    AuthorizationError,
)
from .responses import (
    ErrorDetail,
    ErrorResponse,
    ErrorCodes,
    success_response,
    error_response,
)

__all__ = [
    # Config
    "get_settings",
    # Database
    "get_session",
    "Base",
    "engine",
    "AsyncSessionLocal",
    # Request Context
    "RequestContext",
    "authenticated_user",
    "resolve_request_context",
    "require_store_access",
    "get_request_context",
    "AuthenticationError",
    "AuthorizationError",
    # Responses
    "ErrorDetail",
    "ErrorResponse",
    "ErrorCodes",
    "success_response",
    "error_response",
]
