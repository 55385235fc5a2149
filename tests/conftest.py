# tests/conftest.py
# Test setup: temporary SQLite DB per test and dependency override for sessions.

import os
import sys
from pathlib import Path

# Keep the app's own engine away from any real database file.
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlmodel import Session, SQLModel  # noqa: E402

# Ensure repo root on sys.path so "import finance_tracker" works uninstalled
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import finance_tracker.models as _models  # noqa: F401,E402  # registers tables
from finance_tracker.db import get_session, make_engine  # noqa: E402
from finance_tracker.main import app as fastapi_app  # noqa: E402
from finance_tracker.models import FinancialProfile, User  # noqa: E402


@pytest.fixture()
def tmp_db_path(tmp_path: Path) -> Path:
    return tmp_path / "test_finance.db"


@pytest.fixture()
def test_engine(tmp_db_path: Path):
    # File-based SQLite so the app and the test share the same data;
    # make_engine also switches foreign keys on.
    engine = make_engine(f"sqlite:///{tmp_db_path}")
    SQLModel.metadata.create_all(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture()
def session(test_engine):
    with Session(test_engine) as s:
        yield s


@pytest.fixture()
def user(session) -> User:
    """A registered user with an empty financial profile."""
    u = User(full_name="Ana Souza", email="ana@test.com", login="ana")
    session.add(u)
    session.commit()
    session.refresh(u)
    session.add(FinancialProfile(user_id=u.id))
    session.commit()
    return u


@pytest.fixture()
def client(test_engine):
    def _get_test_session():
        with Session(test_engine) as s:
            yield s

    fastapi_app.dependency_overrides[get_session] = _get_test_session
    with TestClient(fastapi_app) as c:
        yield c
    fastapi_app.dependency_overrides.clear()


SIGNUP_DATA = {
    "full_name": "Maria Silva",
    "birth_date": "1990-05-01",
    "phone": "11999998888",
    "email": "maria@test.com",
    "login": "maria_s",
    "password": "secret1",
    "confirm_password": "secret1",
}


@pytest.fixture()
def signup_data() -> dict:
    return dict(SIGNUP_DATA)


@pytest.fixture()
def signed_in(client):
    """Client with a freshly registered, signed-in user."""
    r = client.post("/auth/signup", data=SIGNUP_DATA, follow_redirects=False)
    assert r.status_code == 303
    return client
