from typing import Generator, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.config import settings
from app.core.security import decode_access_token
from app.db.session import SessionLocal
from app.schemas.identity import Identity

bearer_scheme = HTTPBearer(auto_error=False)


def get_db() -> Generator:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[Identity]:
    """Identity of the caller, or None when no valid bearer token was sent."""
    if credentials is None:
        return None
    return decode_access_token(credentials.credentials)


def require_identity(
    identity: Optional[Identity] = Depends(get_current_identity),
) -> Optional[Identity]:
    """Gate for writes. With AUTH_REQUIRED off, anonymous writes are recorded without an author."""
    if identity is None and settings.AUTH_REQUIRED:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return identity
