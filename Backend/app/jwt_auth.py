"""
JWT Authentication Module - Bearer token verification for the shipping API

This module verifies access tokens with PyJWT. It handles:
- HS256 tokens signed with JWT_SECRET (default)
- RS256 tokens signed by an identity provider, verified against the
  provider's JWKS document when JWKS_URL is configured
- Validating expiration and, when JWT_ISSUER is set, the issuer
- Minting HS256 tokens for operator scripts and tests

Usage:
    from app.jwt_auth import verify_access_token, issue_access_token

    token = issue_access_token("user_123")
    payload = verify_access_token(token)
    user_id = payload["sub"]
"""

import logging
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any, Optional

import httpx
import jwt

from .core.config import get_settings
from .core.request_context import AuthenticationError
from .core.responses import ErrorCodes

logger = logging.getLogger(__name__)


class JWKSFetchError(Exception):
    """Raised when the signing keys of the identity provider cannot be fetched."""


@lru_cache(maxsize=1)
def fetch_jwks(url: str) -> dict:
    """
    Fetch the JWKS document of the identity provider.

    This is cached to avoid repeated requests.
    """
    try:
        with httpx.Client(timeout=10.0) as client:
            response = client.get(url, headers={"User-Agent": "Shipping-Config-API/1.0"})
            response.raise_for_status()
            jwks_data = response.json()
            logger.info(f"Fetched JWKS from {url} ({len(jwks_data.get('keys', []))} keys)")
            return jwks_data
    except httpx.HTTPStatusError as e:
        logger.error(f"HTTP {e.response.status_code} fetching JWKS from {url}")
        raise JWKSFetchError(f"HTTP Error {e.response.status_code}") from e
    except httpx.HTTPError as e:
        logger.error(f"Failed to fetch JWKS from {url}: {e}")
        raise JWKSFetchError(str(e)) from e


def _jwks_signing_key(token: str, url: str) -> Any:
    unverified_header = jwt.get_unverified_header(token)
    kid = unverified_header.get("kid")
    if not kid:
        raise AuthenticationError(
            "Token header missing key ID (kid)",
            code=ErrorCodes.INVALID_TOKEN,
        )

    try:
        jwks_data = fetch_jwks(url)
    except JWKSFetchError as e:
        raise AuthenticationError(
            "Unable to verify token: signing keys unavailable",
            code=ErrorCodes.INVALID_TOKEN,
        ) from e

    for key in jwks_data.get("keys", []):
        if key.get("kid") == kid:
            return jwt.PyJWK.from_dict(key).key

    raise AuthenticationError(
        f"No matching key found for kid: {kid}",
        code=ErrorCodes.INVALID_TOKEN,
    )


def verify_access_token(token: str) -> dict:
    """
    Verify a Bearer token and return the decoded payload.

    Raises:
        AuthenticationError: If token is invalid, expired, or signature doesn't match
    """
    settings = get_settings()

    options = {
        "verify_signature": True,
        "verify_exp": True,
        "verify_iss": settings.jwt_issuer is not None,
        "require": ["sub"],
    }

    try:
        if settings.jwks_url:
            key = _jwks_signing_key(token, settings.jwks_url)
            algorithms = ["RS256"]
        else:
            key = settings.jwt_secret
            algorithms = [settings.jwt_algorithm]

        decoded = jwt.decode(
            token,
            key,
            algorithms=algorithms,
            issuer=settings.jwt_issuer,
            options=options,
        )
    except jwt.ExpiredSignatureError as e:
        logger.warning("Token verification failed: Token has expired")
        raise AuthenticationError("Token has expired", code=ErrorCodes.TOKEN_EXPIRED) from e
    except jwt.InvalidTokenError as e:
        logger.warning(f"Token verification failed: {e}")
        raise AuthenticationError("Invalid token", code=ErrorCodes.INVALID_TOKEN) from e

    logger.debug(f"Token verified for user: {decoded.get('sub')}")
    return decoded


def issue_access_token(
    user_id: str,
    ttl: Optional[timedelta] = None,
    extra_claims: Optional[dict] = None,
) -> str:
    """
    Mint an HS256 access token for user_id, signed with JWT_SECRET.

    Example:
        token = issue_access_token("shipping-manager", ttl=timedelta(hours=8))
    """
    settings = get_settings()
    now = datetime.now(timezone.utc)
    if ttl is None:
        ttl = timedelta(minutes=settings.jwt_ttl_minutes)

    payload = {
        "sub": user_id,
        "iat": now,
        "exp": now + ttl,
    }
    if settings.jwt_issuer:
        payload["iss"] = settings.jwt_issuer
    if extra_claims:
        payload.update(extra_claims)

    return jwt.encode(payload, settings.jwt_secret, algorithm="HS256")
