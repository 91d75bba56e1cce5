"""
Pytest configuration and fixtures for the API tests.

The application runs against an in-memory SQLite database and an in-memory
stand-in for the Redis client, so no external services are needed.
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import fnmatch
import pytest
from fastapi.testclient import TestClient
from ..main import app as fastapi_app
from ..core import cache, invalidation_helpers
from ..core.auth import create_access_token
from ..core.database import Base, engine, SessionLocal
from ..user.crud import create_user


class InMemoryRedis:
    """Async subset of the redis client used by the cache helpers."""

    def __init__(self):
        self.store = {}

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        self.store[key] = value
        return True

    async def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                removed += 1
        return removed

    async def scan(self, cursor=0, match=None, count=None):
        keys = [key for key in self.store if match is None or fnmatch.fnmatchcase(key, match)]
        return 0, keys


@pytest.fixture(autouse=True)
def fake_redis(monkeypatch):
    """Replace the Redis client everywhere it is bound"""
    client = InMemoryRedis()
    monkeypatch.setattr(cache, "redis_client", client)
    monkeypatch.setattr(invalidation_helpers, "redis_client", client)
    return client


@pytest.fixture(autouse=True)
def setup_database():
    """Fresh schema for every test"""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db(setup_database):
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(setup_database):
    """Create FastAPI test client"""
    with TestClient(fastapi_app) as test_client:
        yield test_client


@pytest.fixture
def make_user(db):
    """Factory that persists an account with sensible defaults"""
    counter = {"n": 0}

    def _make_user(**overrides):
        counter["n"] += 1
        data = {
            "email": f"user{counter['n']}@courierhub.in",
            "password": "secret123",
            "first_name": "Test",
            "last_name": f"User{counter['n']}",
            "role": "transporter",
        }
        data.update(overrides)
        return create_user(db, data)

    return _make_user


def auth_headers(user):
    """Bearer header for a persisted user"""
    token = create_access_token({"user_id": user.user_id, "role": user.role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def transporter(make_user):
    return make_user(first_name="Ravi", last_name="Transport", company_name="Ravi Logistics")


@pytest.fixture
def admin_user(make_user):
    return make_user(email="admin@courierhub.in", role="admin", subscription_status="active",
                     subscription_plan="enterprise")


@pytest.fixture
def office_user(make_user, transporter):
    return make_user(
        email="agent@courierhub.in",
        first_name="Anil",
        last_name="Agent",
        office_name="Pune Branch",
        role="office",
        parent_user_id=transporter.user_id,
        subscription_status="active",
        commission_rate=5.0,
    )


def booking_payload(**overrides):
    """Minimal valid booking body"""
    payload = {
        "booking_type": "FTL",
        "pickup_address": "12 MG Road",
        "pickup_city": "Mumbai",
        "delivery_address": "44 Park Street",
        "delivery_city": "Pune",
        "sender_name": "Sita Sender",
        "sender_phone": "9000000001",
        "receiver_name": "Ram Receiver",
        "receiver_phone": "9000000002",
        "receiver_email": "ram@courierhub.in",
        "weight": 120,
        "total_amount": 1000,
    }
    payload.update(overrides)
    return payload
