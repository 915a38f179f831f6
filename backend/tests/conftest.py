"""
Pytest fixtures for rfidtrack backend tests.

Provides the app on in-memory SQLite, a per-test table wipe, user fixtures,
and a service container pinned to a fixed clock (2025-06-15 UTC).
"""

import random
from datetime import datetime, timezone

import pytest

from rfidtrack import create_app
from rfidtrack.container import ServiceContainer
from rfidtrack.extensions import db
from rfidtrack.identifiers import UserCode
from rfidtrack.models import User
from rfidtrack.services.auth_service import PasswordHasher


DEFAULT_PASSWORD = "Password123!"
FIXED_NOW = datetime(2025, 6, 15, 12, 0, 0, tzinfo=timezone.utc)


def fixed_clock() -> datetime:
    return FIXED_NOW


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_ROUNDS': 4,
        'LOG_LEVEL': 'WARNING',
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def container(app, db_session):
    """Service container with a pinned clock and seeded randomness."""
    return ServiceContainer(db_session, app.config, clock=fixed_clock, rng=random.Random(1234))


def make_user(db_session, account, code, user_type="user", is_active=True, password=DEFAULT_PASSWORD):
    user = User(
        account=account,
        password_hash=PasswordHasher(rounds=4).hash(password),
        code=UserCode(code),
        name=account.title(),
        user_type=user_type,
        is_active=is_active,
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def admin_user(db_session):
    return make_user(db_session, "admin", "ADM", user_type="admin")


@pytest.fixture(scope='function')
def operator_user(db_session):
    return make_user(db_session, "operator", "001", user_type="user")


@pytest.fixture(scope='function')
def supplier_user(db_session):
    return make_user(db_session, "supplier", "S01", user_type="supplier")


@pytest.fixture(scope='function')
def inactive_user(db_session):
    return make_user(db_session, "inactive", "X99", is_active=False)


def login_headers(client, account, password=DEFAULT_PASSWORD):
    resp = client.post("/api/auth/login", json={"account": account, "password": password})
    assert resp.status_code == 200, resp.get_json()
    token = resp.get_json()["tokens"]["access_token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope='function')
def admin_headers(client, admin_user):
    return login_headers(client, "admin")


@pytest.fixture(scope='function')
def operator_headers(client, operator_user):
    return login_headers(client, "operator")


@pytest.fixture(scope='function')
def supplier_headers(client, supplier_user):
    return login_headers(client, "supplier")
