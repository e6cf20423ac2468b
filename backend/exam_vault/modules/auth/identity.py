"""
Identity & role resolution.

Maps an identity-provider assertion to a persisted ``User`` on sign-in and
keeps the session claims in step with the stored record on every request.
The session token is treated as a cache of the user row, never as the
authority on role.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...core.errors import SignInRejected
from ...models.user import User, ROLE_ADMIN, ROLE_USER, ROLES

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProviderIdentity:
    """Verified assertion handed over by the external identity provider"""
    email: str
    name: Optional[str] = None
    image: Optional[str] = None


@dataclass(frozen=True)
class SessionIdentity:
    email: str
    role: str = ROLE_USER
    name: Optional[str] = None
    image: Optional[str] = None
    first_name: str = "User"

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @classmethod
    def from_claims(cls, claims: dict) -> "SessionIdentity":
        email = claims["sub"]
        name = claims.get("name")
        return cls(
            email=email,
            role=claims.get("role") or ROLE_USER,
            name=name,
            image=claims.get("image"),
            first_name=claims.get("firstName") or derive_display_first_name(name, email),
        )


def email_local_part(email: Optional[str]) -> str:
    if not email:
        return ""
    return email.split("@")[0]


def derive_display_first_name(name: Optional[str], email: Optional[str]) -> str:
    """First word of the name, else the e-mail local part, else "User"."""
    if name and name.strip():
        return name.split()[0]
    local = email_local_part(email)
    if local:
        return local
    return "User"


def claims_for_user(user: User) -> dict:
    return {
        "sub": user.email,
        "role": user.role or ROLE_USER,
        "name": user.name,
        "image": user.image,
        "firstName": derive_display_first_name(user.name, user.email),
    }


def resolve_on_sign_in(db: Session, identity: ProviderIdentity) -> User:
    """
    Find or create the user behind a provider sign-in.

    New users get role=user. Existing users only get their name and avatar
    backfilled, and only when the stored value is missing or was derived from
    the e-mail. Any persistence error rejects the sign-in outright.
    """
    email = (identity.email or "").strip()
    if not email:
        raise SignInRejected("Identity provider did not supply an e-mail address.")

    try:
        user = db.query(User).filter(User.email == email).first()
        if user is None:
            user = User(
                email=email,
                name=identity.name or email_local_part(email) or "User",
                role=ROLE_USER,
                image=identity.image or None,
            )
            db.add(user)
            db.commit()
            db.refresh(user)
            logger.info(f"Created user record for {email}")
            return user

        changed = False
        if identity.name and (not user.name or user.name == email_local_part(user.email)):
            user.name = identity.name
            changed = True
        if not user.image and identity.image:
            user.image = identity.image
            changed = True
        if changed:
            db.commit()
            db.refresh(user)
            logger.info(f"Backfilled profile for {email}")
        return user
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Sign-in rejected for {email}: {e}")
        raise SignInRejected() from e


def refresh_credential(db: Session, claims: dict) -> dict:
    """
    Overwrite role/name/avatar in ``claims`` with the stored values.

    Read failures keep the previous claims; they never raise and never
    elevate the role.
    """
    email = claims.get("sub")
    if not email:
        return claims
    try:
        user = db.query(User).filter(User.email == email).first()
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(f"Could not refresh credential for {email}, keeping previous claims: {e}")
        return claims

    if user is None:
        return claims

    refreshed = dict(claims)
    refreshed["role"] = user.role or ROLE_USER
    refreshed["name"] = user.name or claims.get("name")
    refreshed["image"] = user.image or claims.get("image")
    refreshed["firstName"] = derive_display_first_name(refreshed["name"], email)
    return refreshed


def set_user_role(db: Session, email: str, role: str) -> Optional[User]:
    """Operator-side role change; returns None when no such user exists"""
    if role not in ROLES:
        raise ValueError(f"Unknown role {role!r}, expected one of {', '.join(ROLES)}")
    user = db.query(User).filter(User.email == email).first()
    if user is None:
        return None
    user.role = role
    db.commit()
    db.refresh(user)
    logger.info(f"Set role of {email} to {role}")
    return user
