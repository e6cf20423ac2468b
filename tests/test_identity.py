import pytest
from sqlalchemy.exc import OperationalError

from exam_vault.core.errors import SignInRejected
from exam_vault.models.user import User
from exam_vault.modules.auth.identity import (
    ProviderIdentity,
    SessionIdentity,
    derive_display_first_name,
    refresh_credential,
    resolve_on_sign_in,
    set_user_role,
)


class BrokenSession:
    """Session whose every query fails like a dropped connection"""

    def __init__(self):
        self.rolled_back = False

    def query(self, *args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("connection lost"))

    def rollback(self):
        self.rolled_back = True


@pytest.mark.parametrize(
    "name, email, expected",
    [
        ("Ada Lovelace", "ada@x.com", "Ada"),
        ("  Grace  Hopper ", "g@x.com", "Grace"),
        (None, "linus@x.com", "linus"),
        ("", "linus@x.com", "linus"),
        (None, None, "User"),
        ("   ", "", "User"),
    ],
)
def test_derive_display_first_name(name, email, expected):
    assert derive_display_first_name(name, email) == expected


def test_sign_in_creates_user_with_default_role(db):
    user = resolve_on_sign_in(db, ProviderIdentity(email="new@x.com", name="New Person", image="https://img/1"))

    assert user.id is not None
    assert user.role == "user"
    assert user.name == "New Person"
    assert user.image == "https://img/1"
    assert db.query(User).filter(User.email == "new@x.com").count() == 1


def test_sign_in_falls_back_to_email_local_part(db):
    user = resolve_on_sign_in(db, ProviderIdentity(email="anon@x.com"))
    assert user.name == "anon"
    assert user.image is None


def test_sign_in_backfills_derived_name_and_missing_avatar(db, make_user):
    make_user("bob@x.com", name="bob")

    user = resolve_on_sign_in(db, ProviderIdentity(email="bob@x.com", name="Bob Builder", image="https://img/b"))

    assert user.name == "Bob Builder"
    assert user.image == "https://img/b"


def test_sign_in_keeps_existing_profile_and_role(db, make_user):
    make_user("carol@x.com", role="admin", name="Carol Admin", image="https://img/old")

    user = resolve_on_sign_in(db, ProviderIdentity(email="carol@x.com", name="Other", image="https://img/new"))

    assert user.name == "Carol Admin"
    assert user.image == "https://img/old"
    assert user.role == "admin"
    assert db.query(User).count() == 1


def test_sign_in_rejected_on_persistence_error():
    session = BrokenSession()
    with pytest.raises(SignInRejected):
        resolve_on_sign_in(session, ProviderIdentity(email="x@x.com"))
    assert session.rolled_back


def test_sign_in_without_email_is_rejected(db):
    with pytest.raises(SignInRejected):
        resolve_on_sign_in(db, ProviderIdentity(email="  "))


def test_refresh_overwrites_claims_from_store(db, make_user):
    make_user("dan@x.com", role="admin", name="Dan Stored", image="https://img/d")

    claims = refresh_credential(db, {"sub": "dan@x.com", "role": "user", "name": "Old", "image": None})

    assert claims["role"] == "admin"
    assert claims["name"] == "Dan Stored"
    assert claims["image"] == "https://img/d"
    assert claims["firstName"] == "Dan"


def test_refresh_demotes_stale_admin_claim(db, make_user):
    make_user("eve@x.com", role="user")
    claims = refresh_credential(db, {"sub": "eve@x.com", "role": "admin"})
    assert SessionIdentity.from_claims(claims).is_admin is False


def test_refresh_keeps_previous_claims_on_read_failure():
    previous = {"sub": "f@x.com", "role": "user", "name": "Fay"}
    claims = refresh_credential(BrokenSession(), previous)
    assert claims == previous


def test_refresh_keeps_claims_when_user_missing(db):
    previous = {"sub": "ghost@x.com", "role": "user", "name": "Ghost"}
    assert refresh_credential(db, previous) == previous


def test_set_user_role(db, make_user):
    make_user("h@x.com")

    user = set_user_role(db, "h@x.com", "admin")

    assert user.role == "admin"
    assert set_user_role(db, "nobody@x.com", "admin") is None
    with pytest.raises(ValueError):
        set_user_role(db, "h@x.com", "superuser")
