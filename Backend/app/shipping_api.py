"""
Shipping configuration routes (Shipping Management API).

Store-scoped, role-gated endpoints for the shipping origin and the package
specifications of a merchant store:

    GET    /api/v1/private/shipping/origin          -> ReadableAddress
    POST   /api/v1/private/shipping/origin          -> replace origin
    GET    /api/v1/private/shipping/packages        -> list[PackageDetails]
    GET    /api/v1/private/shipping/package/{code}  -> PackageDetails
    POST   /api/v1/private/shipping/package         -> create package
    PUT    /api/v1/private/shipping/package/{code}  -> replace package
    DELETE /api/v1/private/shipping/package/{code}  -> delete package

The store comes from ?store=<code> (or X-Store-Code, or the default store),
the language from ?lang=<code>. Every route requires one of
SHIPPING_MANAGER_ROLES in that store. AuthenticatedRoute rejects anonymous
callers before the body is read; the store and role checks run as route
dependencies. Handlers only forward to the ShippingFacade.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from fastapi import APIRouter, Depends, Response

from .auth import SHIPPING_MANAGER_ROLES, AuthenticatedRoute, StoreRoleGate
from .core.responses import ErrorResponse
from .models import StoreMemberRole
from .shipping_facade import ShippingFacade, get_shipping_facade
from .shipping_schemas import PackageDetails, PersistableAddress, ReadableAddress
from .tenancy.context import (
    LanguageContext,
    StoreContext,
    get_language_context,
    get_store_context,
)

logger = logging.getLogger(__name__)


# ────────────────────────────────────────────────────────────────
# Handlers
# ────────────────────────────────────────────────────────────────

async def shipping_origin(
    store: StoreContext = Depends(get_store_context),
    language: LanguageContext = Depends(get_language_context),
    facade: ShippingFacade = Depends(get_shipping_facade),
) -> ReadableAddress:
    logger.debug(f"Shipping origin requested for store {store.store_code} (lang={language.code})")
    return await facade.get_origin(store)


async def save_shipping_origin(
    address: PersistableAddress,
    store: StoreContext = Depends(get_store_context),
    language: LanguageContext = Depends(get_language_context),
    facade: ShippingFacade = Depends(get_shipping_facade),
) -> None:
    await facade.save_origin(address, store)


async def list_packages(
    store: StoreContext = Depends(get_store_context),
    language: LanguageContext = Depends(get_language_context),
    facade: ShippingFacade = Depends(get_shipping_facade),
) -> list[PackageDetails]:
    return await facade.list_packages(store)


async def get_package(
    code: str,
    store: StoreContext = Depends(get_store_context),
    language: LanguageContext = Depends(get_language_context),
    facade: ShippingFacade = Depends(get_shipping_facade),
) -> PackageDetails:
    return await facade.get_package(code, store)


async def create_package(
    details: PackageDetails,
    store: StoreContext = Depends(get_store_context),
    language: LanguageContext = Depends(get_language_context),
    facade: ShippingFacade = Depends(get_shipping_facade),
) -> None:
    await facade.create_package(details, store)


async def update_package(
    code: str,
    details: PackageDetails,
    store: StoreContext = Depends(get_store_context),
    language: LanguageContext = Depends(get_language_context),
    facade: ShippingFacade = Depends(get_shipping_facade),
) -> None:
    await facade.update_package(code, details, store)


async def delete_package(
    code: str,
    store: StoreContext = Depends(get_store_context),
    language: LanguageContext = Depends(get_language_context),
    facade: ShippingFacade = Depends(get_shipping_facade),
) -> None:
    await facade.delete_package(code, store)


# ────────────────────────────────────────────────────────────────
# Route Table
# ────────────────────────────────────────────────────────────────

ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    401: {"model": ErrorResponse, "description": "Authentication required"},
    403: {"model": ErrorResponse, "description": "Missing shipping role for the store"},
    404: {"model": ErrorResponse, "description": "Store or package not found"},
}


@dataclass(frozen=True)
class ShippingRoute:
    """One (method, path) of the API and what it takes to call it."""
    method: str
    path: str
    endpoint: Callable[..., Any]
    summary: str
    response_model: Optional[Any] = None
    allowed_roles: frozenset[StoreMemberRole] = field(default=SHIPPING_MANAGER_ROLES)

    @property
    def returns_body(self) -> bool:
        return self.response_model is not None


SHIPPING_ROUTES: tuple[ShippingRoute, ...] = (
    ShippingRoute(
        "GET", "/private/shipping/origin", shipping_origin,
        "Get shipping origin for a specific merchant store",
        response_model=ReadableAddress,
    ),
    ShippingRoute(
        "POST", "/private/shipping/origin", save_shipping_origin,
        "Replace shipping origin for a specific merchant store",
    ),
    ShippingRoute(
        "GET", "/private/shipping/packages", list_packages,
        "Get list of configured packages types for a specific merchant store",
        response_model=list[PackageDetails],
    ),
    ShippingRoute(
        "GET", "/private/shipping/package/{code}", get_package,
        "Get package details",
        response_model=PackageDetails,
    ),
    ShippingRoute(
        "POST", "/private/shipping/package", create_package,
        "Create new package specification",
    ),
    ShippingRoute(
        "PUT", "/private/shipping/package/{code}", update_package,
        "Edit package specification",
    ),
    ShippingRoute(
        "DELETE", "/private/shipping/package/{code}", delete_package,
        "Delete a package specification",
    ),
)


def build_shipping_router(routes: tuple[ShippingRoute, ...] = SHIPPING_ROUTES) -> APIRouter:
    """Register every route of the table on a fresh /api/v1 router."""
    router = APIRouter(
        prefix="/api/v1",
        tags=["Shipping management resource"],
        route_class=AuthenticatedRoute,
    )

    for route in routes:
        extra: dict[str, Any] = {}
        if route.returns_body:
            extra["response_model"] = route.response_model
        else:
            extra["response_class"] = Response

        router.add_api_route(
            route.path,
            route.endpoint,
            methods=[route.method],
            summary=route.summary,
            status_code=200,
            dependencies=[Depends(StoreRoleGate(route.allowed_roles))],
            responses=ERROR_RESPONSES,
            **extra,
        )

    return router


router = build_shipping_router()
