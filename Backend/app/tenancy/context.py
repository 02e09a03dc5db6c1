"""
Multi-tenancy context module.

This module provides the StoreContext and LanguageContext abstractions that
every tenant-scoped route receives as explicit parameters.

Resolution order for the merchant store (first match wins):
    1. ?store=<code> query parameter
    2. X-Store-Code header
    3. Settings.default_store_code ("DEFAULT")

Resolution order for the language:
    1. ?lang=<code> query parameter
    2. Primary tag of the Accept-Language header
    3. The store's default language

A requested language the store does not support falls back to the store's
default language.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import get_settings
from ..core.db import get_session
from ..models import MerchantStore
from .config import (
    LANGUAGE_HEADER,
    LANGUAGE_QUERY_PARAM,
    STORE_CODE_PATTERN,
    STORE_HEADER,
    STORE_QUERY_PARAM,
)


logger = logging.getLogger(__name__)


class StoreResolutionSource(str, Enum):
    """How the store context was determined."""

    QUERY_PARAM = "query_param"     # From ?store=<code>
    HEADER = "header"               # From X-Store-Code
    DEFAULT = "default"             # Settings.default_store_code


class StoreNotFoundError(Exception):
    """Raised when the requested merchant store does not exist."""
    def __init__(self, store_code: str):
        self.store_code = store_code
        self.message = f"Merchant store not found: {store_code}"
        super().__init__(self.message)


@dataclass(frozen=True)
class StoreContext:
    """
    Immutable context representing the current tenant for a request.

    This object MUST be established before any tenant-specific database operation.

    Attributes:
        store_id: The database ID of the store (merchant_stores.id)
        store_code: Public identifier (e.g., "DEFAULT")
        store_name: Human-readable store name
        default_language: Language used when the request does not pick one
        supported_languages: Languages the store is configured for
        source: How this context was determined (for audit logging)
    """

    store_id: int
    store_code: str
    store_name: Optional[str] = None
    default_language: str = "en"
    supported_languages: tuple[str, ...] = ("en",)
    source: StoreResolutionSource = StoreResolutionSource.DEFAULT

    def __post_init__(self):
        if self.store_id <= 0:
            raise ValueError(f"store_id must be positive, got {self.store_id}")


@dataclass(frozen=True)
class LanguageContext:
    """Locale resolved for the request. Passed through to handlers."""

    code: str
    requested: Optional[str] = None

    @property
    def is_fallback(self) -> bool:
        return self.requested is not None and self.requested != self.code


# ────────────────────────────────────────────────────────────────
# Resolution Functions
# ────────────────────────────────────────────────────────────────

def store_context_from_model(
    store: MerchantStore,
    source: StoreResolutionSource = StoreResolutionSource.DEFAULT,
) -> StoreContext:
    return StoreContext(
        store_id=store.id,
        store_code=store.code,
        store_name=store.name,
        default_language=store.default_language,
        supported_languages=tuple(store.supported_languages_list),
        source=source,
    )


async def resolve_store_from_code(
    session: AsyncSession,
    code: str,
    source: StoreResolutionSource = StoreResolutionSource.QUERY_PARAM,
) -> Optional[StoreContext]:
    """
    Resolve store context from a store code.

    Returns:
        StoreContext if found, None if the code is malformed or unknown
    """
    if not code or not re.match(STORE_CODE_PATTERN, code):
        return None

    result = await session.execute(select(MerchantStore).where(MerchantStore.code == code))
    store = result.scalar_one_or_none()

    if not store:
        return None

    return store_context_from_model(store, source)


def extract_store_code(request: Request) -> tuple[str, StoreResolutionSource]:
    """Pick the store code from the request, falling back to the configured default."""
    code = request.query_params.get(STORE_QUERY_PARAM)
    if code and code.strip():
        return code.strip(), StoreResolutionSource.QUERY_PARAM

    code = request.headers.get(STORE_HEADER)
    if code and code.strip():
        return code.strip(), StoreResolutionSource.HEADER

    return get_settings().default_store_code, StoreResolutionSource.DEFAULT


def parse_language_tag(value: Optional[str]) -> Optional[str]:
    """
    Reduce a language value to its primary subtag.

        "fr"                  -> "fr"
        "en-US,en;q=0.9"      -> "en"
        "*"                   -> None
    """
    if not value:
        return None
    first = value.split(",")[0].split(";")[0].strip()
    primary = first.split("-")[0].split("_")[0].strip().lower()
    if not primary or primary == "*" or not primary.isalpha():
        return None
    return primary


def resolve_language(store: StoreContext, requested: Optional[str]) -> LanguageContext:
    """Match the requested language against the store's supported languages."""
    if requested and requested in store.supported_languages:
        return LanguageContext(code=requested, requested=requested)

    if requested:
        logger.debug(
            f"Language '{requested}' not supported by store {store.store_code}, "
            f"using '{store.default_language}'"
        )
    return LanguageContext(code=store.default_language, requested=requested)


# ────────────────────────────────────────────────────────────────
# FastAPI Dependencies
# ────────────────────────────────────────────────────────────────

async def get_store_context(
    request: Request,
    session: AsyncSession = Depends(get_session),
) -> StoreContext:
    """
    FastAPI dependency to resolve the merchant store from the request.

    Raises:
        StoreNotFoundError: if the code does not match any store (mapped to 404)

    Usage:
        @router.get("/private/shipping/origin")
        async def handler(store: StoreContext = Depends(get_store_context)):
            ...
    """
    code, source = extract_store_code(request)
    ctx = await resolve_store_from_code(session, code, source)
    if not ctx:
        logger.warning(f"Store resolution failed for code '{code}' (source={source.value})")
        raise StoreNotFoundError(code)

    logger.debug(f"Resolved store '{code}' -> store_id={ctx.store_id} via {source.value}")
    return ctx


async def get_language_context(
    request: Request,
    store: StoreContext = Depends(get_store_context),
) -> LanguageContext:
    """FastAPI dependency resolving the request language for the resolved store."""
    requested = parse_language_tag(request.query_params.get(LANGUAGE_QUERY_PARAM))
    if requested is None:
        requested = parse_language_tag(request.headers.get(LANGUAGE_HEADER))
    return resolve_language(store, requested)


__all__ = [
    "StoreContext",
    "LanguageContext",
    "StoreResolutionSource",
    "StoreNotFoundError",
    "store_context_from_model",
    "resolve_store_from_code",
    "extract_store_code",
    "parse_language_tag",
    "resolve_language",
    "get_store_context",
    "get_language_context",
]
