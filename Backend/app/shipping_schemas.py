"""
Shipping configuration schemas.

Pydantic models for the shipping origin address and package specifications,
used both as API bodies and as the facade's return values.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .models import PackageType


PACKAGE_CODE_PATTERN = r"^[A-Za-z0-9_-]+$"


# ==================== Address Schemas ====================


class PersistableAddress(BaseModel):
    """Origin address as written by the merchant. Replaces the stored one wholesale."""
    address: str = Field(..., min_length=1, max_length=255)
    city: str = Field(..., min_length=1, max_length=100)
    postal_code: str = Field(..., min_length=1, max_length=20)
    state_province: Optional[str] = Field(None, max_length=100)
    zone: Optional[str] = Field(None, max_length=20, description="State / province code")
    country: str = Field(..., min_length=2, max_length=2, description="ISO 3166-1 alpha-2 code")
    active: bool = True

    @field_validator("country")
    @classmethod
    def validate_country(cls, v: str) -> str:
        if not v.isalpha():
            raise ValueError("country must be a 2-letter ISO code")
        return v.upper()

    @field_validator("zone")
    @classmethod
    def normalize_zone(cls, v: Optional[str]) -> Optional[str]:
        return v.upper() if v else v


class ReadableAddress(BaseModel):
    """Origin address as returned to the merchant. All empty when none is configured."""
    address: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    state_province: Optional[str] = None
    zone: Optional[str] = None
    country: Optional[str] = None
    active: bool = False

    model_config = ConfigDict(from_attributes=True)


# ==================== Package Schemas ====================


class PackageDetails(BaseModel):
    """A reusable box or item template, identified by a store-unique code."""
    code: str = Field(..., min_length=1, max_length=100, pattern=PACKAGE_CODE_PATTERN)
    type: PackageType = PackageType.BOX
    shipping_weight: float = Field(0, ge=0)
    shipping_max_weight: float = Field(0, ge=0)
    shipping_length: float = Field(0, ge=0)
    shipping_width: float = Field(0, ge=0)
    shipping_height: float = Field(0, ge=0)
    shipping_quantity: int = Field(0, ge=0)
    treshold: int = Field(0, ge=0)
    default_package: bool = False

    model_config = ConfigDict(from_attributes=True, allow_inf_nan=False)
