"""
Auth router: provider sign-in and session refresh
"""
import hmac
from typing import Optional

from fastapi import APIRouter, Depends, Header
from sqlalchemy.orm import Session

from ...core.config import IDENTITY_PROVIDER_SECRET
from ...core.database import get_db
from ...core.errors import SignInRejected
from ...core.security import create_access_token, require_identity
from .identity import (
    ProviderIdentity,
    SessionIdentity,
    claims_for_user,
    resolve_on_sign_in,
)
from .schemas import SignInRequest, SessionUser, Token

router = APIRouter()


def _session_user(identity: SessionIdentity) -> SessionUser:
    return SessionUser(
        email=identity.email,
        name=identity.name,
        role=identity.role,
        image=identity.image,
        first_name=identity.first_name,
    )


@router.post("/signin", response_model=Token)
def sign_in(
    request: SignInRequest,
    x_identity_provider_secret: Optional[str] = Header(None),
    db: Session = Depends(get_db)
):
    """Exchange a verified provider identity for a session token"""
    if not x_identity_provider_secret or not hmac.compare_digest(
        x_identity_provider_secret.encode(), IDENTITY_PROVIDER_SECRET.encode()
    ):
        raise SignInRejected("Sign-in must come from a trusted identity provider.")

    user = resolve_on_sign_in(
        db, ProviderIdentity(email=request.email, name=request.name, image=request.image)
    )
    claims = claims_for_user(user)

    return {
        "access_token": create_access_token(claims),
        "token_type": "bearer",
        "user": _session_user(SessionIdentity.from_claims(claims)),
    }


@router.get("/session", response_model=Token)
def get_session(identity: SessionIdentity = Depends(require_identity)):
    """Current session, refreshed from the user record, with a re-signed token"""
    claims = {
        "sub": identity.email,
        "role": identity.role,
        "name": identity.name,
        "image": identity.image,
        "firstName": identity.first_name,
    }
    return {
        "access_token": create_access_token(claims),
        "token_type": "bearer",
        "user": _session_user(identity),
    }
