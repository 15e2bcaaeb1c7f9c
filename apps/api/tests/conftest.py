"""
Pytest configuration and fixtures

Every test gets a fresh in-memory SQLite database with the full schema,
so nothing leaks between tests and no external services are needed.
"""
import os
import sys

# Settings are read at import time; configure them before any app import.
os.environ.setdefault("SECRET_KEY", "test-secret-key-that-is-at-least-32-characters")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_FORMAT", "text")
os.environ.setdefault("REDIS_URL", "redis://localhost:1/0")

# Add the parent directory to the path so we can import from services
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import json
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from core import events
from core.database import Base
from core.realtime import RealtimeBroadcaster
import models  # noqa: F401


@pytest.fixture(scope="function")
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(engine):
    """Session bound to the per-test database. Services commit freely."""
    TestingSession = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)
    session = TestingSession()
    yield session
    session.close()


@pytest.fixture(autouse=True)
def _isolate_event_handlers():
    """Handlers subscribed during a test are dropped afterwards."""
    saved = {name: list(handlers) for name, handlers in events._event_handlers.items()}
    yield
    events._event_handlers.clear()
    events._event_handlers.update(saved)


class FakeRedis:
    """Records pub/sub publishes; can be told to fail."""

    def __init__(self, fail_with=None):
        self.published = []
        self.fail_with = fail_with

    def publish(self, channel, message):
        if self.fail_with is not None:
            raise self.fail_with
        self.published.append((channel, json.loads(message)))
        return 1

    def ping(self):
        return True


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def broadcaster(fake_redis):
    return RealtimeBroadcaster(client=fake_redis, channel="training_progress")


@pytest.fixture
def user_id():
    return "user-123"


@pytest.fixture
def auth_headers(user_id):
    from core.security import create_access_token
    token = create_access_token(user_id)
    return {"Authorization": f"Bearer {token}"}
