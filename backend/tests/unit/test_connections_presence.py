import pytest

from sanga.domain.connections import presence
from sanga.domain.connections.ledger import RelationshipLedger
from sanga.infra.memory_store import InMemoryDocumentStore


@pytest.fixture
def store():
	return InMemoryDocumentStore()


@pytest.fixture
def ledger(store, clock):
	return RelationshipLedger(store, clock=clock, enforce_limits=False)


@pytest.mark.asyncio
async def test_pending_and_sent_views_follow_the_request_lifecycle(ledger, store, clock):
	pending, sent = [], []
	stop_pending = await presence.subscribe_pending(store, "bob", pending.append)
	stop_sent = await presence.subscribe_sent(store, "alice", sent.append)
	assert pending[-1] == [] and sent[-1] == []

	first = await ledger.send_request("alice", "Alice", "bob", "Bob")
	clock.advance(minutes=1)
	second = await ledger.send_request("carol", "Carol", "bob", "Bob")

	assert [r.id for r in pending[-1]] == [second.id, first.id]
	assert [r.id for r in sent[-1]] == [first.id]

	await ledger.accept_request(first.id)
	assert [r.id for r in pending[-1]] == [second.id]
	assert sent[-1] == []

	stop_pending()
	stop_sent()
	assert store.listener_count == 0


@pytest.mark.asyncio
async def test_connections_view_lists_peer_ids(ledger, store):
	seen = []
	stop = await presence.subscribe_connections(store, "alice", seen.append)
	assert seen == [[]]

	request = await ledger.send_request("alice", "Alice", "bob", "Bob")
	await ledger.accept_request(request.id)
	assert seen[-1] == ["bob"]

	await ledger.remove_connection("alice", "bob")
	assert seen[-1] == []
	stop()


@pytest.mark.asyncio
async def test_notification_view_updates_on_request(ledger, store):
	seen = []
	stop = await presence.subscribe_notifications(store, "bob", seen.append)
	await ledger.send_request("alice", "Alice", "bob", "Bob")
	assert [n.title for n in seen[-1]] == ["New Connection Request"]
	stop()


def test_pending_view_filters_and_deduplicates():
	base = {
		"from_user_id": "alice",
		"from_user_name": "Alice",
		"to_user_id": "bob",
		"to_user_name": "Bob",
		"status": "pending",
		"timestamp": "2024-03-01T06:00:00Z",
	}
	raw = {
		"r1": {**base, "id": "r1"},
		"r1-copy": {**base, "id": "r1"},
		"r2": {**base, "id": "r2", "status": "accepted"},
		"r3": {**base, "id": "r3", "to_user_id": "carol"},
	}
	assert [r.id for r in presence.pending_view(raw, "bob")] == ["r1"]
	assert presence.pending_view(None, "bob") == []
	assert sorted(r.id for r in presence.sent_view(raw, "alice")) == ["r1", "r3"]
