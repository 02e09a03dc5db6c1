"""
Multi-tenancy package.

This package provides tenant isolation primitives for the merchant stores.

Modules:
    context: StoreContext / LanguageContext resolution from the request
    config: Where store and language are read from on a request
    queries: Store-scoped query helpers
"""

from .context import (
    StoreContext,
    LanguageContext,
    StoreResolutionSource,
    StoreNotFoundError,
    store_context_from_model,
    resolve_store_from_code,
    extract_store_code,
    parse_language_tag,
    resolve_language,
    get_store_context,
    get_language_context,
)

from .queries import (
    # Composable helpers
    scoped_select,
    # Shipping configuration
    get_shipping_origin,
    get_package_by_code,
    list_packages,
    # Membership
    list_memberships,
)

__all__ = [
    # Context
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
    # Query helpers
    "scoped_select",
    "get_shipping_origin",
    "get_package_by_code",
    "list_packages",
    "list_memberships",
]
