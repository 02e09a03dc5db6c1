"""
Tests for DatabaseShippingFacade.

Exercise the service layer directly against the test database, without HTTP,
auth or store resolution in the way.
"""
import pytest
from sqlalchemy import func, select

from app import shipping_facade
from app.models import PackageSpecification, PackageType, ShippingOrigin
from app.shipping_facade import (
    DatabaseShippingFacade,
    PackageConflictError,
    PackageNotFoundError,
    ShippingValidationError,
    validate_package,
)
from app.shipping_schemas import PackageDetails, PersistableAddress
from app.tenancy.context import StoreContext, store_context_from_model


@pytest.fixture
def facade(async_session):
    return DatabaseShippingFacade(async_session)


@pytest.fixture
def t1(stores):
    return store_context_from_model(stores["T1"])


@pytest.fixture
def t2(stores):
    return store_context_from_model(stores["T2"])


def make_package(code: str = "BOX-A", **overrides) -> PackageDetails:
    fields = {
        "code": code,
        "type": PackageType.BOX,
        "shipping_weight": 0.5,
        "shipping_max_weight": 10.0,
        "shipping_length": 30.0,
        "shipping_width": 20.0,
        "shipping_height": 15.0,
        "shipping_quantity": 1,
        "treshold": 0,
    }
    fields.update(overrides)
    return PackageDetails(**fields)


def make_address(**overrides) -> PersistableAddress:
    fields = {
        "address": "1 Warehouse Way",
        "city": "Montreal",
        "postal_code": "H2X 1Y4",
        "country": "CA",
    }
    fields.update(overrides)
    return PersistableAddress(**fields)


async def count_rows(session, model) -> int:
    result = await session.execute(select(func.count()).select_from(model))
    return result.scalar_one()


class TestOrigin:

    async def test_get_without_origin_returns_empty_address(self, facade, t1):
        origin = await facade.get_origin(t1)

        assert origin.address is None
        assert origin.country is None
        assert origin.active is False

    async def test_save_creates_one_row_per_store(self, facade, async_session, t1):
        await facade.save_origin(make_address(), t1)
        await facade.save_origin(make_address(city="Laval"), t1)

        assert await count_rows(async_session, ShippingOrigin) == 1
        assert (await facade.get_origin(t1)).city == "Laval"

    async def test_save_stores_inactive_flag(self, facade, t1):
        await facade.save_origin(make_address(active=False), t1)

        assert (await facade.get_origin(t1)).active is False

    async def test_save_recovers_from_concurrent_first_save(self, facade, async_session, t1, monkeypatch):
        # Another request inserted the origin between our read and our commit
        await facade.save_origin(make_address(), t1)

        real_lookup = shipping_facade.get_shipping_origin
        lookups = []

        async def stale_then_real(session, store_id):
            lookups.append(store_id)
            if len(lookups) == 1:
                return None
            return await real_lookup(session, store_id)

        monkeypatch.setattr(shipping_facade, "get_shipping_origin", stale_then_real)

        await facade.save_origin(make_address(city="Quebec City"), t1)

        assert len(lookups) == 2
        assert await count_rows(async_session, ShippingOrigin) == 1
        assert (await facade.get_origin(t1)).city == "Quebec City"

    async def test_origins_are_scoped_to_store(self, facade, t1, t2):
        await facade.save_origin(make_address(), t1)

        assert (await facade.get_origin(t2)).address is None


class TestPackages:

    async def test_create_and_get(self, facade, t1):
        details = make_package(default_package=True)
        await facade.create_package(details, t1)

        assert await facade.get_package("BOX-A", t1) == details

    async def test_get_missing_raises_not_found(self, facade, t1):
        with pytest.raises(PackageNotFoundError) as exc_info:
            await facade.get_package("NOPE", t1)

        assert exc_info.value.package_code == "NOPE"
        assert exc_info.value.store_code == "T1"

    async def test_create_duplicate_raises_conflict(self, facade, t1):
        await facade.create_package(make_package(), t1)

        with pytest.raises(PackageConflictError):
            await facade.create_package(make_package(shipping_weight=2.0), t1)

    async def test_create_rejects_max_weight_below_weight(self, facade, async_session, t1):
        with pytest.raises(ShippingValidationError) as exc_info:
            await facade.create_package(make_package(shipping_weight=3.0, shipping_max_weight=1.0), t1)

        assert exc_info.value.field == "shipping_max_weight"
        assert await count_rows(async_session, PackageSpecification) == 0

    async def test_list_is_store_scoped_and_ordered(self, facade, t1, t2):
        await facade.create_package(make_package("Z-1"), t1)
        await facade.create_package(make_package("A-1"), t1)
        await facade.create_package(make_package("M-1"), t2)

        assert [p.code for p in await facade.list_packages(t1)] == ["A-1", "Z-1"]
        assert [p.code for p in await facade.list_packages(t2)] == ["M-1"]

    async def test_update_missing_raises_not_found(self, facade, async_session, t1):
        with pytest.raises(PackageNotFoundError):
            await facade.update_package("BOX-A", make_package(), t1)

        assert await count_rows(async_session, PackageSpecification) == 0

    async def test_update_missing_wins_over_code_mismatch(self, facade, t1):
        with pytest.raises(PackageNotFoundError):
            await facade.update_package("BOX-A", make_package("BOX-B"), t1)

    async def test_update_rejects_code_mismatch(self, facade, t1):
        await facade.create_package(make_package(), t1)

        with pytest.raises(ShippingValidationError) as exc_info:
            await facade.update_package("BOX-A", make_package("BOX-B"), t1)

        assert exc_info.value.field == "code"
        assert [p.code for p in await facade.list_packages(t1)] == ["BOX-A"]

    async def test_update_replaces_fields(self, facade, t1):
        await facade.create_package(make_package(), t1)
        replacement = make_package(type=PackageType.ITEM, shipping_height=5.0, treshold=4)

        await facade.update_package("BOX-A", replacement, t1)

        assert await facade.get_package("BOX-A", t1) == replacement

    async def test_delete_removes_row(self, facade, async_session, t1):
        await facade.create_package(make_package(), t1)

        await facade.delete_package("BOX-A", t1)

        assert await count_rows(async_session, PackageSpecification) == 0
        with pytest.raises(PackageNotFoundError):
            await facade.delete_package("BOX-A", t1)

    async def test_delete_other_store_package_is_not_found(self, facade, t1, t2):
        await facade.create_package(make_package(), t2)

        with pytest.raises(PackageNotFoundError):
            await facade.delete_package("BOX-A", t1)

        assert [p.code for p in await facade.list_packages(t2)] == ["BOX-A"]


def test_validate_package_ignores_unset_max_weight():
    t1 = StoreContext(store_id=1, store_code="T1")

    validate_package(make_package(shipping_weight=5.0, shipping_max_weight=0), t1)
