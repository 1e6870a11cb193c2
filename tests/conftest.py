"""Shared test fixtures for the Worldforge test suite.

Every test builds its own app around a private in-memory SQLite database,
so tests never share rows, sessions or rate-limit state. The lifespan
(entered by ``TestClient``) creates the tables and seeds the role catalog.
"""

from typing import Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from worldforge.core.config import Settings
from worldforge.core.seeder import seed_roles
from worldforge.database import Database
from worldforge.main import create_app
from worldforge.models.user import UserRole
from worldforge.services import auth_service, session_service
from worldforge.services.session_service import SessionUser

# Low work factor keeps registration fast; production config rejects it.
TEST_HASH_ROUNDS = 1000


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        database_url="sqlite://",
        log_format="text",
        log_level="WARNING",
        rate_limit_per_minute=0,
        password_hash_rounds=TEST_HASH_ROUNDS,
    )


@pytest.fixture()
def app(settings):
    return create_app(settings)


@pytest.fixture()
def client(app):
    """FastAPI TestClient with the lifespan running."""
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def db(client) -> Session:
    """Session on the same database the client's app uses."""
    session = client.app.state.database.session()
    yield session
    session.close()


@pytest.fixture()
def database():
    """A standalone schema-initialised database for service-level tests."""
    database = Database("sqlite://")
    database.create_schema()
    session = database.session()
    seed_roles(session)
    session.close()
    yield database
    database.dispose()


@pytest.fixture()
def service_db(database) -> Session:
    session = database.session()
    yield session
    session.close()


def _create_user(
    db: Session,
    username: str,
    role: Optional[str] = "world_builder",
    password: str = "correct horse",
) -> SessionUser:
    """Register a user and give them exactly *role* (``None`` for no role rows)."""
    user = auth_service.register_user(
        db, username, f"{username}@example.com", password, hash_rounds=TEST_HASH_ROUNDS
    )
    if role != "free":
        db.query(UserRole).filter(UserRole.user_id == user.id).delete()
        if role is not None:
            db.add(UserRole(user_id=user.id, role_code=role))
        db.commit()
    return auth_service.to_session_user(db, user)


@pytest.fixture()
def make_user(db):
    """Factory: ``make_user("mira", role="admin")`` -> SessionUser."""
    def _make(username: str, role: Optional[str] = "world_builder", password: str = "correct horse"):
        return _create_user(db, username, role, password)
    return _make


@pytest.fixture()
def make_service_user(service_db):
    def _make(username: str, role: Optional[str] = "world_builder"):
        return _create_user(service_db, username, role)
    return _make


@pytest.fixture()
def session_headers(db):
    """Factory: cookie header for a fresh session owned by the given user."""
    def _headers(user: SessionUser) -> dict:
        session_id, _ = session_service.create_session(db, user.id)
        return {"Cookie": f"st_sess={session_id}"}
    return _headers
