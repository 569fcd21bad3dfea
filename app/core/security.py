"""Bearer token handling.

Tokens are issued by the surrounding login flow; this service only needs to
read the caller identity from them (and mint tokens for scripts and tests).
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt

from app.config import settings
from app.schemas.identity import Identity

logger = logging.getLogger("release_tracker.security")


def display_name_from_email(email: str) -> str:
    """'jane.doe@corp.com' -> 'Jane.doe'"""
    username = email.split("@")[0]
    return username[:1].upper() + username[1:]


def create_access_token(
    email: str,
    display_name: Optional[str] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    claims = {"sub": email, "exp": expire}
    if display_name:
        claims["name"] = display_name
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> Optional[Identity]:
    """Return the identity carried by *token*, or None when it is invalid."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError as exc:
        logger.debug("Rejected bearer token: %s", exc)
        return None

    email = payload.get("sub")
    if not email:
        return None
    return Identity(
        email=email,
        display_name=payload.get("name") or display_name_from_email(email),
    )
