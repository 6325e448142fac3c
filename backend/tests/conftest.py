"""Shared fixtures: in-memory SQLite database, seeded stores, principals and an API client."""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.config import get_settings
from app.core.database import Base, get_db
from app.main import app
from app.models import Store, Brand
from app.services.access_scope import Principal, Role

STORES = [
    ("anna", "Anna Maria Island", Brand.KILWINS),
    ("A", "Store A", Brand.KILWINS),
    ("B", "Store B", Brand.KILWINS),
    ("C", "Store C", Brand.RENOJA),
]


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    for code, name, brand in STORES:
        session.add(Store(code=code, name=name, brand=brand))
    session.commit()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def executive():
    return Principal(id=1, role=Role.EXECUTIVE)


@pytest.fixture
def manager():
    return Principal(id=2, role=Role.MANAGER, assigned_stores=frozenset({"A", "B"}))


def make_token(user_id: int, role: str, stores=None) -> str:
    settings = get_settings()
    claims = {"sub": str(user_id), "role": role}
    if stores is not None:
        claims["stores"] = list(stores)
    return jwt.encode(claims, settings.secret_key, algorithm=settings.algorithm)


def auth_header(user_id: int, role: str, stores=None) -> dict:
    return {"Authorization": f"Bearer {make_token(user_id, role, stores)}"}


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    return auth_header


@pytest.fixture
def executive_headers():
    return auth_header(1, "executive")


@pytest.fixture
def manager_headers():
    return auth_header(2, "manager", ["A", "B"])
