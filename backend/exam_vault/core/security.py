"""
Security utilities: session JWTs and auth dependencies
"""
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from .config import SECRET_KEY, ALGORITHM, ACCESS_TOKEN_EXPIRE_MINUTES
from .database import get_db
from .errors import AuthenticationRequired, AuthorizationDenied
from ..modules.auth.identity import SessionIdentity, refresh_credential

# Bearer token scheme
security = HTTPBearer(auto_error=False)

SESSION_CLAIMS = ("sub", "role", "name", "image", "firstName")


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token"""
    to_encode = {key: data.get(key) for key in SESSION_CLAIMS if data.get(key) is not None}
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)
    return encoded_jwt


def decode_token(token: str) -> Optional[dict]:
    """Decode and validate a JWT token"""
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        return payload
    except JWTError:
        return None


def _identity_from_credentials(
    credentials: Optional[HTTPAuthorizationCredentials],
    db: Session,
    required: bool,
) -> Optional[SessionIdentity]:
    if not credentials:
        if required:
            raise AuthenticationRequired()
        return None

    payload = decode_token(credentials.credentials)
    if not payload or not payload.get("sub"):
        if required:
            raise AuthenticationRequired("Session token is invalid or has expired. Please sign in again.")
        return None

    # The token only caches the user row; role always comes from the store
    claims = refresh_credential(db, payload)
    return SessionIdentity.from_claims(claims)


async def get_current_identity(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> Optional[SessionIdentity]:
    """
    Get the refreshed session identity.
    Returns None if no token or invalid token (for optional auth).
    """
    return _identity_from_credentials(credentials, db, required=False)


async def require_identity(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> SessionIdentity:
    """
    Get the refreshed session identity (required).
    Raises 401 if no token or invalid token.
    """
    return _identity_from_credentials(credentials, db, required=True)


async def require_admin(
    identity: SessionIdentity = Depends(require_identity)
) -> SessionIdentity:
    """Require admin role"""
    if not identity.is_admin:
        raise AuthorizationDenied()
    return identity
