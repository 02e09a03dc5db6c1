from datetime import datetime
from enum import Enum

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum as SqlEnum,
    Float,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from .core.db import Base


class StoreMemberRole(str, Enum):
    """Permission groups a user can hold within a merchant store."""
    SUPERADMIN = "SUPERADMIN"
    ADMIN = "ADMIN"
    ADMIN_RETAIL = "ADMIN_RETAIL"
    ADMIN_STORE = "ADMIN_STORE"
    ADMIN_CATALOGUE = "ADMIN_CATALOGUE"
    ADMIN_ORDER = "ADMIN_ORDER"
    ADMIN_CONTENT = "ADMIN_CONTENT"
    SHIPPING = "SHIPPING"
    CUSTOMER = "CUSTOMER"


class PackageType(str, Enum):
    BOX = "BOX"
    ITEM = "ITEM"


class MerchantStore(Base):
    __tablename__ = "merchant_stores"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    default_language: Mapped[str] = mapped_column(String(10), nullable=False, default="en")
    supported_languages: Mapped[str] = mapped_column(String(255), nullable=False, default="en")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    @property
    def supported_languages_list(self) -> list[str]:
        languages = [code.strip().lower() for code in self.supported_languages.split(",") if code.strip()]
        if self.default_language not in languages:
            languages.insert(0, self.default_language)
        return languages


class StoreMember(Base):
    __tablename__ = "store_members"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    store_id: Mapped[int] = mapped_column(ForeignKey("merchant_stores.id"), nullable=False, index=True)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    role: Mapped[str] = mapped_column(String(50), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (UniqueConstraint("store_id", "user_id", "role", name="uq_store_member_role"),)


class ShippingOrigin(Base):
    __tablename__ = "shipping_origins"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    store_id: Mapped[int] = mapped_column(
        ForeignKey("merchant_stores.id"), nullable=False, unique=True, index=True
    )
    address: Mapped[str | None] = mapped_column(String(255), nullable=True)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    postal_code: Mapped[str | None] = mapped_column(String(20), nullable=True)
    state_province: Mapped[str | None] = mapped_column(String(100), nullable=True)
    zone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    country: Mapped[str | None] = mapped_column(String(2), nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class PackageSpecification(Base):
    __tablename__ = "shipping_packages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    store_id: Mapped[int] = mapped_column(ForeignKey("merchant_stores.id"), nullable=False, index=True)
    code: Mapped[str] = mapped_column(String(100), nullable=False)
    type: Mapped[PackageType] = mapped_column(
        SqlEnum(PackageType, native_enum=False, length=10), nullable=False, default=PackageType.BOX
    )
    shipping_weight: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    shipping_max_weight: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    shipping_length: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    shipping_width: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    shipping_height: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    shipping_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    treshold: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    default_package: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (UniqueConstraint("store_id", "code", name="uq_package_store_code"),)
