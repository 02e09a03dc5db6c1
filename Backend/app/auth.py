"""
Authorization Module

Role-based access control (RBAC) for store-scoped operations.

ARCHITECTURE:
    - RequestContext (app.core.request_context) is the SINGLE SOURCE OF TRUTH
      for identity
    - All authorization flows through require_store_access()
    - Role sets are named constants, never built inline per route

USAGE:
    from app.auth import SHIPPING_MANAGER_ROLES, StoreRoleGate

    router.add_api_route(
        "/private/shipping/origin",
        handler,
        methods=["GET"],
        dependencies=[Depends(StoreRoleGate(SHIPPING_MANAGER_ROLES))],
    )
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Coroutine, Iterable

from fastapi import Depends, Request, Response
from fastapi.routing import APIRoute

from .core.request_context import (
    RequestContext,
    authenticated_user,
    get_request_context,
    require_store_access,
)
from .models import StoreMemberRole
from .tenancy.context import StoreContext, get_store_context


logger = logging.getLogger(__name__)


# Everyone allowed to read and change a store's shipping configuration
SHIPPING_MANAGER_ROLES: frozenset[StoreMemberRole] = frozenset({
    StoreMemberRole.SUPERADMIN,
    StoreMemberRole.ADMIN,
    StoreMemberRole.SHIPPING,
    StoreMemberRole.ADMIN_RETAIL,
})


@dataclass(frozen=True)
class AuthorizedCaller:
    """An authenticated caller that passed the role check for one store."""
    user_id: str
    store: StoreContext
    granted_roles: frozenset[str]


def authorize_user(
    ctx: RequestContext,
    allowed_roles: Iterable[StoreMemberRole],
    store: StoreContext,
) -> AuthorizedCaller:
    """
    Require the caller to hold one of allowed_roles in store.

    Raises:
        AuthorizationError: mapped to 403 by the API exception handlers
    """
    granted = require_store_access(ctx, store, allowed_roles)
    return AuthorizedCaller(user_id=ctx.user_id, store=store, granted_roles=frozenset(granted))


class StoreRoleGate:
    """
    FastAPI dependency enforcing a role set for the request's store.

    Resolution order is store, then identity, then roles, so every check
    happens before the route handler (and its facade call) runs.
    """

    def __init__(self, allowed_roles: Iterable[StoreMemberRole]):
        self.allowed_roles = frozenset(allowed_roles)
        if not self.allowed_roles:
            raise ValueError("StoreRoleGate needs at least one allowed role")

    async def __call__(
        self,
        store: StoreContext = Depends(get_store_context),
        ctx: RequestContext = Depends(get_request_context),
    ) -> AuthorizedCaller:
        return authorize_user(ctx, self.allowed_roles, store)

    def __repr__(self) -> str:
        roles = ", ".join(sorted(r.value for r in self.allowed_roles))
        return f"StoreRoleGate({roles})"


class AuthenticatedRoute(APIRoute):
    """
    APIRoute that rejects unauthenticated callers before the request body is read.

    FastAPI parses the body ahead of route dependencies. StoreRoleGate still
    resolves the full RequestContext afterwards.
    """

    def get_route_handler(self) -> Callable[[Request], Coroutine[Any, Any, Response]]:
        handler = super().get_route_handler()

        async def authenticated_handler(request: Request) -> Response:
            authenticated_user(request)
            return await handler(request)

        return authenticated_handler
