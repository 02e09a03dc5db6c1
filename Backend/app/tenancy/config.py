"""
Tenancy configuration constants.

Where the merchant store and language are read from on an incoming request.
Defaults (store code, language) live in core.config.Settings.
"""

# ────────────────────────────────────────────────────────────────
# Store resolution
# ────────────────────────────────────────────────────────────────

# ?store=<code> wins over the header
STORE_QUERY_PARAM: str = "store"
STORE_HEADER: str = "X-Store-Code"

# Store codes are case-sensitive identifiers like "DEFAULT" or "acme-eu"
STORE_CODE_PATTERN: str = r"^[A-Za-z0-9_-]{1,100}$"


# ────────────────────────────────────────────────────────────────
# Language resolution
# ────────────────────────────────────────────────────────────────

LANGUAGE_QUERY_PARAM: str = "lang"
LANGUAGE_HEADER: str = "Accept-Language"
