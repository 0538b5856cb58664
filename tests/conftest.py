import itertools
import os
from datetime import date

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOG_FILE"] = ""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.db import Base, get_session
from app.core.security import login_limiter
from app.create_admin import create_admin
from app.dependencies import get_today
from app.main import app
from app.schemas.invoice import Invoice

TODAY = date(2026, 3, 1)
ADMIN_PASSWORD = "secreto-123"

_ids = itertools.count(1)


def build_invoice(**overrides) -> Invoice:
    values = {
        "id": f"inv-{next(_ids)}",
        "proveedor": "Proveedor A",
        "clasificacion": "Servicios",
        "fecha": date(2026, 2, 1),
        "subtotal": "1000",
        "iva": "160",
        "total": "1160",
    }
    values.update(overrides)
    return Invoice(**values)


@pytest.fixture
def make_invoice():
    return build_invoice


@pytest.fixture
def db_session():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def client(db_session):
    app.dependency_overrides[get_session] = lambda: db_session
    app.dependency_overrides[get_today] = lambda: TODAY
    login_limiter.reset()
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def admin(db_session):
    return create_admin(db_session, "Admin", ADMIN_PASSWORD)


def _login(client: TestClient, username: str = "admin", password: str = ADMIN_PASSWORD):
    token = client.get("/login").json()["csrfToken"]
    return client.post(
        "/login",
        json={"username": username, "password": password},
        headers={"X-CSRF-Token": token},
    )


@pytest.fixture
def login():
    return _login


@pytest.fixture
def auth_client(client, admin):
    resp = _login(client)
    assert resp.status_code == 200
    client.headers.update({"X-CSRF-Token": resp.json()["csrfToken"]})
    return client
