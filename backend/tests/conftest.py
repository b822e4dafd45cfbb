"""Pytest configuration and fixtures for AIBotClip tests.

Provides a row store on in-memory SQLite, an in-process Redis double,
a mocked lead webhook and an API client wired to all three.
"""

import asyncio
from typing import AsyncGenerator, Callable

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import aibotclip.models  # noqa: F401
from aibotclip.auth.jwt import create_access_token
from aibotclip.auth.password import hash_password
from aibotclip.database import Base
from aibotclip.main import app
from aibotclip.models.user import ADMIN_ROLE
from aibotclip.routers.request_form import get_lead_webhook
from aibotclip.services.lead_webhook import LeadWebhookClient
from aibotclip.store.changes import ChangeBroker
from aibotclip.store.rows import RowStore, get_store
from aibotclip.utils.redis_client import get_redis


# ── Redis double ─────────────────────────────────────────────────

class FakeRedis:
    """The handful of Redis commands the app uses, kept in a dict."""

    def __init__(self):
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int] = {}

    async def setex(self, key, ttl, value):
        self.data[key] = value
        self.ttls[key] = ttl
        return True

    async def set(self, key, value, nx=False, ex=None):
        if nx and key in self.data:
            return None
        self.data[key] = value
        if ex is not None:
            self.ttls[key] = ex
        return True

    async def exists(self, key):
        return int(key in self.data)

    async def delete(self, key):
        self.ttls.pop(key, None)
        return int(self.data.pop(key, None) is not None)

    async def ping(self):
        return True


@pytest.fixture
def fake_redis(monkeypatch) -> FakeRedis:
    fake = FakeRedis()

    async def _get_redis():
        return fake

    monkeypatch.setattr("aibotclip.auth.revocation.get_redis", _get_redis)
    return fake


# ── Row store on in-memory SQLite ────────────────────────────────

@pytest_asyncio.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def store(test_engine) -> RowStore:
    session_factory = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)
    return RowStore(session_factory, ChangeBroker())


# ── Lead webhook ─────────────────────────────────────────────────

class WebhookRecorder:
    """Mock transport for the lead webhook; records every request."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.status_code = 200
        self.fail_with: Exception | None = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_with is not None:
            raise self.fail_with
        return httpx.Response(self.status_code, json={"ok": self.status_code < 400})

    def client(self) -> LeadWebhookClient:
        return LeadWebhookClient(
            url="https://hooks.test/lead",
            timeout=5.0,
            transport=httpx.MockTransport(self.handler),
        )


@pytest.fixture
def webhook() -> WebhookRecorder:
    return WebhookRecorder()


# ── API client ───────────────────────────────────────────────────

@pytest_asyncio.fixture
async def client(store, fake_redis, webhook) -> AsyncGenerator[AsyncClient, None]:
    """API client with storage, Redis and the webhook overridden."""

    async def override_get_redis():
        return fake_redis

    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_redis] = override_get_redis
    app.dependency_overrides[get_lead_webhook] = webhook.client

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# ── Test Data Fixtures ───────────────────────────────────────────

@pytest_asyncio.fixture
async def admin_user(store: RowStore) -> dict:
    user = await store.insert("users", {
        "email": "admin@example.com",
        "hashed_password": hash_password("adminpass123"),
        "full_name": "Site Admin",
    })
    await store.insert("user_roles", {"user_id": user["id"], "role": ADMIN_ROLE})
    return user


@pytest_asyncio.fixture
async def plain_user(store: RowStore) -> dict:
    return await store.insert("users", {
        "email": "visitor@example.com",
        "hashed_password": hash_password("visitorpass123"),
        "full_name": "Visitor",
    })


@pytest.fixture
def admin_headers(admin_user) -> dict:
    return {"Authorization": f"Bearer {create_access_token(admin_user['id'])}"}


@pytest.fixture
def user_headers(plain_user) -> dict:
    return {"Authorization": f"Bearer {create_access_token(plain_user['id'])}"}


@pytest_asyncio.fixture
async def sample_agent(store: RowStore) -> dict:
    return await store.insert("agents", {
        "name": "SupportGenie",
        "short_description": "Answers customer tickets",
        "description": "A support agent that triages and answers tickets.",
        "starter_features": ["Email support"],
        "pro_features": ["Email support", "Chat widget"],
        "features": [
            {"id": "f2", "order": 2, "icon": "⚡", "title": "Fast", "description": "Replies in seconds"},
            {"id": "f1", "order": 1, "icon": "🧠", "title": "Smart", "description": "Understands context"},
            {"id": "f3", "order": 3, "icon": "🙈", "title": "Hidden", "description": "Not shown", "visible": False},
        ],
        "comparison_table": {
            "headers": ["Starter", "Pro", "Business", "Enterprise"],
            "rows": [
                {"id": "r1", "order": 1, "type": "section", "label": "Channels", "values": ["", "", "", ""]},
                {"id": "r2", "order": 2, "type": "feature", "label": "Email", "values": ["check", "check", "check", "check"]},
            ],
        },
        "comparison_enabled": True,
    })


# ── Helpers ──────────────────────────────────────────────────────

async def wait_until(condition: Callable[[], bool], timeout: float = 2.0) -> None:
    """Poll until `condition()` holds; fail the test on timeout."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not condition():
        if loop.time() > deadline:
            pytest.fail("condition not met before timeout")
        await asyncio.sleep(0.01)
