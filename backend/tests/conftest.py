import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from fakeredis.aioredis import FakeRedis

# Ensure backend package is importable when tests run from repo root
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
	sys.path.insert(0, str(BACKEND_ROOT))

from sanga.infra import store as store_registry
from sanga.infra.memory_store import InMemoryDocumentStore
from sanga.main import app
from sanga.settings import settings


@pytest_asyncio.fixture(autouse=True)
async def fake_redis():
	from sanga.infra.redis import redis_client, set_redis_client

	original = redis_client.client
	client = FakeRedis(decode_responses=True)
	set_redis_client(client)
	try:
		yield client
	finally:
		set_redis_client(original)
		await client.flushall()


@pytest.fixture(autouse=True)
def force_test_settings():
	"""Ensure a consistent test environment.

	API tests authenticate via X-User-* headers, which are only accepted in dev mode.
	"""
	original_env = settings.environment
	original_sweep = settings.notification_sweep_enabled
	settings.environment = "dev"
	settings.notification_sweep_enabled = False
	try:
		yield
	finally:
		settings.environment = original_env
		settings.notification_sweep_enabled = original_sweep


@pytest.fixture
def memory_store():
	store = InMemoryDocumentStore()
	store_registry.set_store(store)
	try:
		yield store
	finally:
		store_registry.set_store(None)


class FakeClock:
	def __init__(self, start: datetime | None = None) -> None:
		self.now = start or datetime(2024, 3, 1, 6, 0, tzinfo=timezone.utc)

	def __call__(self) -> datetime:
		return self.now

	def advance(self, **kwargs) -> datetime:
		self.now = self.now + timedelta(**kwargs)
		return self.now


@pytest.fixture
def clock():
	return FakeClock()


@pytest_asyncio.fixture
async def api_client(memory_store):
	transport = ASGITransport(app=app)
	async with AsyncClient(transport=transport, base_url="http://testserver") as client:
		yield client


@pytest.fixture
def headers_for():
	"""Build dev-mode identity headers for a user."""

	def _build(user_id: str, name: str | None = None, *, roles: str | None = None) -> dict[str, str]:
		headers = {"X-User-Id": user_id, "X-User-Name": name or user_id.title()}
		if roles:
			headers["X-User-Roles"] = roles
		return headers

	return _build
