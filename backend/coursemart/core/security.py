"""
Security utilities for CourseMart.

Authentication is delegated to an external identity provider. This module
only verifies the bearer tokens it issues and maps their claims onto the
fields of a local user record.
"""

from typing import Optional, Dict, Any
from jose import JWTError, jwt

from .config import settings


# Claim names tried, in order, for each profile field
NAME_CLAIMS = ("name", "full_name", "username")
EMAIL_CLAIMS = ("email", "email_address")
IMAGE_CLAIMS = ("picture", "image_url", "imageUrl")


def verify_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Verify and decode an identity provider token.

    Args:
        token: The JWT token to verify

    Returns:
        Optional[Dict[str, Any]]: The decoded token payload if valid, None otherwise
    """
    if not settings.IDP_JWT_KEY:
        return None

    try:
        payload = jwt.decode(
            token,
            settings.IDP_JWT_KEY,
            algorithms=settings.IDP_JWT_ALGORITHMS,
            audience=settings.IDP_AUDIENCE,
            issuer=settings.IDP_ISSUER,
            options={"verify_aud": settings.IDP_AUDIENCE is not None}
        )
    except JWTError:
        return None

    if not payload.get("sub"):
        return None
    return payload


def _first_claim(payload: Dict[str, Any], names: tuple) -> Optional[str]:
    for name in names:
        value = payload.get(name)
        if value:
            return str(value)
    return None


def profile_from_claims(payload: Dict[str, Any], with_fallbacks: bool = True) -> Dict[str, str]:
    """
    Extract profile fields for the local user record from token claims.

    With ``with_fallbacks``, a missing name falls back to the local part of
    the email, then to the subject. Without it, missing claims come back
    empty so they never overwrite stored values.
    """
    email = _first_claim(payload, EMAIL_CLAIMS) or ""
    name = _first_claim(payload, NAME_CLAIMS)
    if not name and with_fallbacks:
        name = email.split("@")[0] if email else str(payload["sub"])

    return {
        "name": name or "",
        "email": email,
        "image_url": _first_claim(payload, IMAGE_CLAIMS) or "",
    }
