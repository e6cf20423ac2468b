import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["IDENTITY_PROVIDER_SECRET"] = "test-provider-secret"

from datetime import datetime, timedelta, timezone
from typing import List

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from exam_vault.core.database import Base, get_db
from exam_vault.core.security import create_access_token
from exam_vault.core.storage import ObjectStoreError, get_object_store
from exam_vault.main import app
from exam_vault.models.paper import Paper
from exam_vault.models.user import User
from exam_vault.modules.auth.identity import SessionIdentity


engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class FakeObjectStore:
    """Records calls; ``fail_delete`` simulates an object store outage"""

    def __init__(self):
        self.objects = {}
        self.deleted: List[str] = []
        self.fail_delete = False

    def public_url(self, key: str) -> str:
        return f"https://storage.test/Vault/{key}"

    def put(self, key: str, data: bytes, content_type: str = "application/pdf") -> str:
        self.objects[key] = data
        return self.public_url(key)

    def delete(self, key: str) -> None:
        self.deleted.append(key)
        if self.fail_delete:
            raise ObjectStoreError("storage is down")
        self.objects.pop(key, None)


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def object_store():
    return FakeObjectStore()


@pytest.fixture
def client(db, object_store):
    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_object_store] = lambda: object_store
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    def _make_user(email: str, role: str = "user", name: str = None, image: str = None) -> User:
        user = User(email=email, name=name or email.split("@")[0], role=role, image=image)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make_user


@pytest.fixture
def make_paper(db):
    counter = {"n": 0}

    def _make_paper(approved: bool = False, **overrides) -> Paper:
        counter["n"] += 1
        values = dict(
            title="Midterm",
            subject="CS101",
            semester=3,
            year=2024,
            specialization="CSE",
            program="B.Tech",
            file_name=f"{counter['n']}-paper.pdf",
            url=f"https://storage.test/Vault/{counter['n']}-paper.pdf",
            uploaded_by="a@x.com",
            admin_approved=approved,
            created_at=datetime(2024, 1, 1, tzinfo=timezone.utc) + timedelta(minutes=counter["n"]),
        )
        values.update(overrides)
        paper = Paper(**values)
        db.add(paper)
        db.commit()
        db.refresh(paper)
        return paper
    return _make_paper


def auth_headers(email: str, role: str = "user", name: str = None) -> dict:
    token = create_access_token({"sub": email, "role": role, "name": name})
    return {"Authorization": f"Bearer {token}"}


def identity(email: str = "a@x.com", role: str = "user") -> SessionIdentity:
    return SessionIdentity(email=email, role=role, name=None, first_name=email.split("@")[0])


SUBMISSION = {
    "title": "Midterm",
    "subject": "CS101",
    "semester": 3,
    "year": 2024,
    "specialization": "CSE",
    "program": "B.Tech",
    "url": "https://x/y.pdf",
    "fileName": "y.pdf",
}
