"""
Shipping facade.

The service layer behind the shipping configuration endpoints. Routes only
authenticate, authorize and forward; everything about how origins and
packages are stored lives here.

ShippingFacade is the abstract contract. DatabaseShippingFacade implements it
on the SQLAlchemy session of the request, scoping every query to the store it
is given.
"""

import logging
from abc import ABC, abstractmethod

from fastapi import Depends
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from .core.db import get_session
from .models import PackageSpecification, ShippingOrigin
from .shipping_schemas import PackageDetails, PersistableAddress, ReadableAddress
from .tenancy.context import StoreContext
from .tenancy.queries import get_package_by_code, get_shipping_origin, list_packages


logger = logging.getLogger(__name__)


# ============================================================================
# ERRORS
# ============================================================================

class ShippingError(Exception):
    """Base class for shipping configuration failures."""
    def __init__(self, message: str, store_code: str | None = None):
        self.message = message
        self.store_code = store_code
        super().__init__(message)


class PackageNotFoundError(ShippingError):
    def __init__(self, code: str, store_code: str):
        self.package_code = code
        super().__init__(f"Package '{code}' not found for store {store_code}", store_code)


class PackageConflictError(ShippingError):
    def __init__(self, code: str, store_code: str):
        self.package_code = code
        super().__init__(f"Package '{code}' already exists for store {store_code}", store_code)


class ShippingValidationError(ShippingError):
    def __init__(self, message: str, store_code: str | None = None, field: str | None = None):
        self.field = field
        super().__init__(message, store_code)


# ============================================================================
# CONTRACT
# ============================================================================

class ShippingFacade(ABC):
    """Shipping configuration operations for one merchant store at a time."""

    @abstractmethod
    async def get_origin(self, store: StoreContext) -> ReadableAddress:
        ...

    @abstractmethod
    async def save_origin(self, address: PersistableAddress, store: StoreContext) -> None:
        ...

    @abstractmethod
    async def list_packages(self, store: StoreContext) -> list[PackageDetails]:
        ...

    @abstractmethod
    async def get_package(self, code: str, store: StoreContext) -> PackageDetails:
        ...

    @abstractmethod
    async def create_package(self, details: PackageDetails, store: StoreContext) -> None:
        ...

    @abstractmethod
    async def update_package(self, code: str, details: PackageDetails, store: StoreContext) -> None:
        ...

    @abstractmethod
    async def delete_package(self, code: str, store: StoreContext) -> None:
        ...


def validate_package(details: PackageDetails, store: StoreContext) -> None:
    """Domain rules that go beyond field-level schema validation."""
    if details.shipping_max_weight and details.shipping_max_weight < details.shipping_weight:
        raise ShippingValidationError(
            "shipping_max_weight cannot be lower than shipping_weight",
            store.store_code,
            field="shipping_max_weight",
        )


def _apply_address(row: ShippingOrigin, address: PersistableAddress) -> None:
    # Wholesale replace: fields left out of the payload are cleared
    row.address = address.address
    row.city = address.city
    row.postal_code = address.postal_code
    row.state_province = address.state_province
    row.zone = address.zone
    row.country = address.country
    row.active = address.active


def _apply_package(row: PackageSpecification, details: PackageDetails) -> None:
    row.type = details.type
    row.shipping_weight = details.shipping_weight
    row.shipping_max_weight = details.shipping_max_weight
    row.shipping_length = details.shipping_length
    row.shipping_width = details.shipping_width
    row.shipping_height = details.shipping_height
    row.shipping_quantity = details.shipping_quantity
    row.treshold = details.treshold
    row.default_package = details.default_package


# ============================================================================
# DATABASE IMPLEMENTATION
# ============================================================================

class DatabaseShippingFacade(ShippingFacade):
    """ShippingFacade backed by the request's AsyncSession."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_origin(self, store: StoreContext) -> ReadableAddress:
        origin = await get_shipping_origin(self.session, store.store_id)
        if origin is None:
            logger.debug(f"No shipping origin configured for store {store.store_code}")
            return ReadableAddress()
        return ReadableAddress.model_validate(origin)

    async def save_origin(self, address: PersistableAddress, store: StoreContext) -> None:
        origin = await get_shipping_origin(self.session, store.store_id)
        if origin is None:
            origin = ShippingOrigin(store_id=store.store_id)
            self.session.add(origin)
        _apply_address(origin, address)

        try:
            await self.session.commit()
        except IntegrityError:
            # A concurrent first save inserted the row
            await self.session.rollback()
            origin = await get_shipping_origin(self.session, store.store_id)
            if origin is None:
                raise
            _apply_address(origin, address)
            await self.session.commit()

        logger.info(f"Shipping origin saved for store {store.store_code}")

    async def list_packages(self, store: StoreContext) -> list[PackageDetails]:
        rows = await list_packages(self.session, store.store_id)
        return [PackageDetails.model_validate(row) for row in rows]

    async def get_package(self, code: str, store: StoreContext) -> PackageDetails:
        row = await get_package_by_code(self.session, store.store_id, code)
        if row is None:
            raise PackageNotFoundError(code, store.store_code)
        return PackageDetails.model_validate(row)

    async def create_package(self, details: PackageDetails, store: StoreContext) -> None:
        validate_package(details, store)

        existing = await get_package_by_code(self.session, store.store_id, details.code)
        if existing is not None:
            raise PackageConflictError(details.code, store.store_code)

        row = PackageSpecification(store_id=store.store_id, code=details.code)
        _apply_package(row, details)
        self.session.add(row)

        try:
            await self.session.commit()
        except IntegrityError as e:
            # Lost a race against a concurrent create of the same code
            await self.session.rollback()
            raise PackageConflictError(details.code, store.store_code) from e

        logger.info(f"Package '{details.code}' created for store {store.store_code}")

    async def update_package(self, code: str, details: PackageDetails, store: StoreContext) -> None:
        row = await get_package_by_code(self.session, store.store_id, code)
        if row is None:
            raise PackageNotFoundError(code, store.store_code)

        # Codes are identifiers; renaming is delete + create
        if details.code != code:
            raise ShippingValidationError(
                f"Package code in body ('{details.code}') does not match '{code}'",
                store.store_code,
                field="code",
            )
        validate_package(details, store)

        _apply_package(row, details)
        await self.session.commit()
        logger.info(f"Package '{code}' updated for store {store.store_code}")

    async def delete_package(self, code: str, store: StoreContext) -> None:
        row = await get_package_by_code(self.session, store.store_id, code)
        if row is None:
            raise PackageNotFoundError(code, store.store_code)

        await self.session.delete(row)
        await self.session.commit()
        logger.info(f"Package '{code}' deleted for store {store.store_code}")


async def get_shipping_facade(
    session: AsyncSession = Depends(get_session),
) -> ShippingFacade:
    """FastAPI dependency providing the facade for the current request."""
    return DatabaseShippingFacade(session)
