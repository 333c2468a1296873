"""Shared fixtures: a storage-backed credential core and a Flask app on a temporary SQLite file."""
import os
from datetime import datetime, timedelta, timezone

os.environ.setdefault("APP_ENV", "test")

import pytest  # noqa: E402

from api import create_app  # noqa: E402
from models import DBStorage, SQLUserStore  # noqa: E402
from services.credentials import CredentialService, TokenSettings  # noqa: E402
from services.session_guard import SessionGuard  # noqa: E402
from utils.security import Argon2SecretHasher, TokenCodec  # noqa: E402

ACCESS_SECRET = "test-access-secret-for-automation-only-0123456789"
REFRESH_SECRET = "test-refresh-secret-for-automation-only-9876543210"


class FrozenClock:
    """Callable clock for TokenCodec that only moves when told to."""

    def __init__(self, start=None):
        self.now = start or datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def storage(tmp_path):
    db = DBStorage(f"sqlite:///{tmp_path / 'auth.db'}", timeout=1)
    db.reload()
    yield db
    db.dispose()


@pytest.fixture
def store(storage):
    return SQLUserStore(storage)


@pytest.fixture
def hasher():
    return Argon2SecretHasher(time_cost=1, memory_cost=8, parallelism=1)


@pytest.fixture
def codec(clock):
    return TokenCodec(clock=clock)


@pytest.fixture
def token_settings():
    return TokenSettings(
        access_secret=ACCESS_SECRET,
        refresh_secret=REFRESH_SECRET,
        access_ttl=timedelta(minutes=1),
        refresh_ttl=timedelta(days=7),
    )


@pytest.fixture
def credentials(store, hasher, codec, token_settings):
    return CredentialService(store, hasher, codec, token_settings)


@pytest.fixture
def guard(credentials, store):
    return SessionGuard(credentials, store)


@pytest.fixture
def app(tmp_path):
    app = create_app(
        "testing",
        {
            "DATABASE_URL": f"sqlite:///{tmp_path / 'api.db'}",
            "JWT_ACCESS_SECRET": ACCESS_SECRET,
            "JWT_REFRESH_SECRET": REFRESH_SECRET,
        },
    )
    yield app
    app.extensions["session_auth"].storage.dispose()


@pytest.fixture
def client(app):
    return app.test_client()
