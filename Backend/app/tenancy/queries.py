"""
Tenant-scoped query helpers.

These functions provide store-isolated database queries.
ALL queries for shipping configuration MUST use these helpers or include an
explicit store_id filter.

Usage:
    from app.tenancy.queries import get_package_by_code, scoped_select

    package = await get_package_by_code(session, store.store_id, "BOX-A")

    # Or using composable helpers:
    stmt = scoped_select(PackageSpecification, store_id).where(...)
"""

from typing import Optional, Sequence, Type, TypeVar

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import DeclarativeBase

from ..models import PackageSpecification, ShippingOrigin, StoreMember

T = TypeVar("T", bound=DeclarativeBase)


# ────────────────────────────────────────────────────────────────
# Composable Query Helpers
# ────────────────────────────────────────────────────────────────

def scoped_select(model: Type[T], store_id: int) -> Select:
    """
    Create a SELECT statement pre-filtered by store_id.

    Usage:
        stmt = scoped_select(PackageSpecification, store.store_id).order_by(...)
        result = await session.execute(stmt)
    """
    return select(model).where(model.store_id == store_id)


# ────────────────────────────────────────────────────────────────
# Shipping configuration
# ────────────────────────────────────────────────────────────────

async def get_shipping_origin(session: AsyncSession, store_id: int) -> Optional[ShippingOrigin]:
    """Fetch the origin row of a store, None when not configured."""
    result = await session.execute(scoped_select(ShippingOrigin, store_id))
    return result.scalar_one_or_none()


async def get_package_by_code(
    session: AsyncSession,
    store_id: int,
    code: str,
) -> Optional[PackageSpecification]:
    """Get a package by code, scoped to store."""
    result = await session.execute(
        scoped_select(PackageSpecification, store_id).where(PackageSpecification.code == code)
    )
    return result.scalar_one_or_none()


async def list_packages(session: AsyncSession, store_id: int) -> Sequence[PackageSpecification]:
    """List all packages of a store, ordered by code."""
    result = await session.execute(
        scoped_select(PackageSpecification, store_id).order_by(PackageSpecification.code)
    )
    return result.scalars().all()


# ────────────────────────────────────────────────────────────────
# Membership
# ────────────────────────────────────────────────────────────────

async def list_memberships(session: AsyncSession, user_id: str) -> Sequence[StoreMember]:
    """All role bindings of a user, across every store."""
    result = await session.execute(select(StoreMember).where(StoreMember.user_id == user_id))
    return result.scalars().all()
