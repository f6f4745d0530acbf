"""
Pytest configuration and fixtures for Workflow Atlas tests.

Tests run against an in-memory SQLite database created once per session;
rows are wiped after every test. Job functions run inline so their outcome is
visible as soon as the triggering request returns.
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"  # tables are wiped after every test
os.environ.setdefault("SKIP_DB_INIT", "1")
os.environ["JOBS_RUN_INLINE"] = "true"
os.environ.setdefault("OPENAI_API_KEY", "")
os.environ.setdefault("ANTHROPIC_API_KEY", "")
os.environ.setdefault("GOOGLE_API_KEY", "")

from uuid import uuid4  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from app.core.security import create_access_token, create_user  # noqa: E402
from app.core.subscriptions import grant_subscription  # noqa: E402
from app.db.session import Base, get_engine, init_db  # noqa: E402
from app.main import app  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def initialize_test_database():
    """Create every table once for the test session."""
    init_db()
    yield


@pytest.fixture(autouse=True)
def clean_tables():
    yield
    engine = get_engine()
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture
def db_session():
    session = Session(get_engine())
    yield session
    session.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def user_factory(db_session):
    """
    Create users directly via the ORM.
    Returns a callable so tests can create premium and standard users.
    """

    def _create_user(*, role: str = "user", premium: bool = False, password: str = "Password123!") -> dict:
        email = f"{role}_{uuid4().hex}@example.com"
        user = create_user(
            db=db_session,
            email=email,
            password=password,
            full_name="Pytest User",
            role=role,
        )
        if premium:
            grant_subscription(db_session, user.id)
        token = create_access_token({"sub": user.email})
        return {
            "id": user.id,
            "email": email,
            "password": password,
            "token": token,
            "headers": {"Authorization": f"Bearer {token}"},
        }

    return _create_user
