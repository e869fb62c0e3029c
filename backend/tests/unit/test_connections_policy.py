import pytest

from sanga.domain.connections import policy
from sanga.domain.connections.exceptions import RequestRateLimitExceeded, SelfConnectionError
from sanga.domain.connections.models import ConnectionStatus
from sanga.domain.connections.status import StatusResolver
from sanga.infra.memory_store import InMemoryDocumentStore
from sanga.settings import settings


@pytest.mark.asyncio
async def test_enforce_request_limits_minute(fake_redis, clock):
	user_id = "alice"
	for _ in range(settings.connection_requests_per_minute):
		await policy.enforce_request_limits(user_id, now=clock.now)
	with pytest.raises(RequestRateLimitExceeded) as exc_info:
		await policy.enforce_request_limits(user_id, now=clock.now)
	assert "per_minute" in str(exc_info.value)

	clock.advance(minutes=1)
	await policy.enforce_request_limits(user_id, now=clock.now)


@pytest.mark.asyncio
async def test_enforce_request_limits_day(fake_redis, clock, monkeypatch):
	monkeypatch.setattr(settings, "connection_requests_per_day", 3)
	for _ in range(3):
		await policy.enforce_request_limits("bob", now=clock.now)
		clock.advance(minutes=2)
	with pytest.raises(RequestRateLimitExceeded) as exc_info:
		await policy.enforce_request_limits("bob", now=clock.now)
	assert exc_info.value.reason == "per_day"


def test_guard_not_self():
	with pytest.raises(SelfConnectionError):
		policy.guard_not_self("abc", "abc")
	policy.guard_not_self("abc", "abd")


def test_pair_key_is_order_independent():
	assert policy.pair_key("bob", "alice") == policy.pair_key("alice", "bob") == "alice:bob"
	assert policy.pair_path("bob", "alice") == "connectionPairs/alice:bob"


@pytest.mark.asyncio
async def test_status_checks_edge_before_requests():
	store = InMemoryDocumentStore()
	resolver = StatusResolver(store)
	assert await resolver.resolve("alice", "bob") == ConnectionStatus.NONE

	request = {
		"id": "r1",
		"from_user_id": "bob",
		"from_user_name": "Bob",
		"to_user_id": "alice",
		"to_user_name": "Alice",
		"status": "pending",
		"timestamp": "2024-03-01T06:00:00Z",
	}
	await store.write("userRequests/alice/incoming/r1", request)
	await store.write("userRequests/bob/outgoing/r1", request)
	assert await resolver.resolve("alice", "bob") == ConnectionStatus.PENDING
	assert await resolver.resolve("bob", "alice") == ConnectionStatus.PENDING
	assert await resolver.resolve("alice", "carol") == ConnectionStatus.NONE

	await store.write("connections/alice/bob", {"user_id": "bob", "user_name": "Bob", "connected_at": "2024-03-01T07:00:00Z"})
	assert await resolver.resolve("alice", "bob") == ConnectionStatus.CONNECTED
