"""
Request Context Resolution Module

This module provides the SINGLE SOURCE OF TRUTH for identity resolution.
All private API routes use this module for authentication.

ARCHITECTURE:
    1. resolve_request_context() extracts identity from the request
    2. It verifies the Bearer JWT (see app.jwt_auth)
    3. Returns a standardized RequestContext object
    4. require_store_access() checks the caller's roles for one store

AUTH METHODS:
    - JWT Bearer token (always accepted)
    - X-User-Id header, ONLY when DISABLE_AUTH_CHECKS=true (development)
    - There is no anonymous fallback identity
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional, TYPE_CHECKING

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from .config import get_settings
from .db import get_session
from .responses import ErrorCodes

if TYPE_CHECKING:
    from ..tenancy.context import StoreContext

logger = logging.getLogger(__name__)


@dataclass
class RequestContext:
    """
    Resolved request context containing identity and access information.

    This is the SINGLE SOURCE OF TRUTH for who is making the request
    and what they can access.
    """
    # Identity (required once authenticated)
    user_id: str

    # Auth metadata
    auth_method: str  # 'jwt', 'header'
    is_authenticated: bool = True

    # Role bindings, keyed by store id
    roles_by_store: dict[int, set[str]] = field(default_factory=dict)

    # Request metadata
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None

    @property
    def accessible_store_ids(self) -> list[int]:
        return sorted(self.roles_by_store)

    def roles_for(self, store_id: int) -> set[str]:
        return self.roles_by_store.get(store_id, set())


class AuthenticationError(Exception):
    """Raised when authentication fails."""
    def __init__(
        self,
        message: str,
        status_code: int = 401,
        code: str = ErrorCodes.AUTHENTICATION_REQUIRED,
    ):
        self.message = message
        self.status_code = status_code
        self.code = code
        super().__init__(message)


class AuthorizationError(Exception):
    """Raised when authorization fails."""
    def __init__(
        self,
        message: str,
        store_id: Optional[int] = None,
        code: str = ErrorCodes.INSUFFICIENT_ROLE,
    ):
        self.message = message
        self.store_id = store_id
        self.code = code
        super().__init__(message)


def _bearer_token(request: Request) -> Optional[str]:
    auth_header = request.headers.get("Authorization", "")
    if not auth_header:
        return None
    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise AuthenticationError(
            "Invalid Authorization header format. Use: Bearer <token>",
            code=ErrorCodes.INVALID_TOKEN,
        )
    return parts[1]


def authenticated_user(request: Request) -> tuple[str, str]:
    """
    Return (user_id, auth_method) for the caller.

    Raises:
        AuthenticationError: if no valid identity can be resolved
    """
    from ..jwt_auth import verify_access_token

    token = _bearer_token(request)
    if token:
        payload = verify_access_token(token)
        user_id = str(payload.get("sub") or "").strip()
        if not user_id:
            logger.error("JWT verified but missing 'sub' claim")
            raise AuthenticationError(
                "Invalid token: missing user identifier",
                code=ErrorCodes.INVALID_TOKEN,
            )
        logger.debug(f"Auth via JWT: {user_id}")
        return user_id, "jwt"

    if get_settings().disable_auth_checks:
        header_user = (request.headers.get("X-User-Id") or "").strip()
        if header_user:
            logger.warning(f"Dev mode: Using X-User-Id header: {header_user}")
            return header_user, "header"

    logger.warning("Authentication failed: No valid credentials found")
    raise AuthenticationError("Authentication required. Please sign in.")


async def resolve_request_context(
    request: Request,
    session: AsyncSession,
) -> RequestContext:
    """
    Resolve the identity and role bindings of the caller.

    Args:
        request: The FastAPI request object
        session: Database session for looking up memberships

    Returns:
        RequestContext with resolved identity and access info

    Raises:
        AuthenticationError: If no valid identity found (mapped to 401)
    """
    user_id, auth_method = authenticated_user(request)

    ctx = RequestContext(
        user_id=user_id,
        auth_method=auth_method,
        is_authenticated=True,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("User-Agent"),
    )

    await _populate_access_info(ctx, session)

    return ctx


async def _populate_access_info(ctx: RequestContext, session: AsyncSession) -> None:
    """Load every store role binding of the caller into roles_by_store."""
    # Import here to avoid circular dependency
    from ..tenancy.queries import list_memberships

    memberships = await list_memberships(session, ctx.user_id)
    roles_by_store: dict[int, set[str]] = {}
    for member in memberships:
        roles_by_store.setdefault(member.store_id, set()).add(member.role.upper())
    ctx.roles_by_store = roles_by_store

    logger.debug(
        f"User {ctx.user_id} has roles in {len(ctx.roles_by_store)} stores: "
        f"{ctx.accessible_store_ids}"
    )


def require_store_access(
    ctx: RequestContext,
    store: "StoreContext",
    allowed_roles: Iterable[str],
) -> set[str]:
    """
    Check that the caller holds one of allowed_roles in the given store.

    This is the ONE authorization rule for store access: roles held in any
    other store never count.

    Returns:
        The caller's granted roles in the store that matched allowed_roles

    Raises:
        AuthorizationError: If the caller lacks every allowed role (mapped to 403)
    """
    allowed_values = sorted(getattr(r, "value", r) for r in allowed_roles)
    user_roles = ctx.roles_for(store.store_id)

    if not user_roles:
        logger.warning(
            f"Authorization failed: User {ctx.user_id} has no roles in store {store.store_code}"
        )
        raise AuthorizationError(
            f"Access denied. You are not a member of store {store.store_code}.",
            store_id=store.store_id,
            code=ErrorCodes.NOT_STORE_MEMBER,
        )

    granted = user_roles.intersection(allowed_values)
    if not granted:
        logger.warning(
            f"Authorization failed: User {ctx.user_id} has roles {sorted(user_roles)}, "
            f"needs one of {allowed_values} for store {store.store_code}"
        )
        raise AuthorizationError(
            f"Access denied. Required role: {', '.join(allowed_values)}.",
            store_id=store.store_id,
        )

    logger.debug(
        f"Authorization successful: User {ctx.user_id} has {sorted(granted)} in store {store.store_code}"
    )
    return granted


async def get_request_context(
    request: Request,
    session: AsyncSession = Depends(get_session),
) -> RequestContext:
    """
    FastAPI dependency for getting request context.

        @router.get("/something")
        async def handler(ctx: RequestContext = Depends(get_request_context)):
            # ctx.user_id is the authenticated user
            pass
    """
    return await resolve_request_context(request, session)
