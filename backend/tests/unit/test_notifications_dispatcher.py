import pytest

from sanga.domain.notifications import directory
from sanga.domain.notifications.dispatcher import NotificationDispatcher
from sanga.domain.notifications.models import NotificationType, Priority
from sanga.infra.memory_store import InMemoryDocumentStore
from sanga.infra.store import InvalidKeyError


@pytest.fixture
def store():
	return InMemoryDocumentStore()


@pytest.fixture
def dispatcher(store, clock):
	return NotificationDispatcher(store, clock=clock)


async def _ping(dispatcher, user_id="alice", title="Hello"):
	return await dispatcher.notify(user_id, NotificationType.BROADCAST, title, "message body")


@pytest.mark.asyncio
async def test_visibility_window_boundary(dispatcher, clock):
	created = await _ping(dispatcher)

	clock.advance(hours=23, minutes=59)
	assert [n.id for n in await dispatcher.list_visible("alice")] == [created.id]

	clock.advance(minutes=2)
	assert await dispatcher.list_visible("alice") == []
	assert await dispatcher.unread_count("alice") == 0


@pytest.mark.asyncio
async def test_list_is_newest_first(dispatcher, clock):
	first = await _ping(dispatcher, title="first")
	clock.advance(minutes=1)
	second = await _ping(dispatcher, title="second")

	assert [n.id for n in await dispatcher.list_visible("alice")] == [second.id, first.id]


@pytest.mark.asyncio
async def test_notify_purges_expired_records_first(dispatcher, store, clock):
	old = await _ping(dispatcher, title="old")
	clock.advance(hours=25)
	fresh = await _ping(dispatcher, title="fresh")

	stored = await store.read("userNotifications/alice")
	assert set(stored) == {fresh.id}
	assert old.id not in stored


@pytest.mark.asyncio
async def test_cleanup_old_returns_purged_count(dispatcher, clock):
	await _ping(dispatcher)
	await _ping(dispatcher)
	clock.advance(hours=30)
	assert await dispatcher.cleanup_old("alice") == 2
	assert await dispatcher.cleanup_old("alice") == 0


@pytest.mark.asyncio
async def test_mark_all_read_is_idempotent_and_never_resurrects(dispatcher, store):
	kept = await _ping(dispatcher, title="kept")
	gone = await _ping(dispatcher, title="gone")
	assert await dispatcher.unread_count("alice") == 2

	assert await dispatcher.delete("alice", gone.id) is True
	assert await dispatcher.mark_all_read("alice") == 1
	assert await dispatcher.mark_all_read("alice") == 0

	assert await dispatcher.mark_read("alice", gone.id) is False
	assert await store.read(f"userNotifications/alice/{gone.id}") is None
	[only] = await dispatcher.list_visible("alice")
	assert only.id == kept.id
	assert only.read is True
	assert await dispatcher.unread_count("alice") == 0


@pytest.mark.asyncio
async def test_mark_read_single(dispatcher):
	created = await _ping(dispatcher)
	assert await dispatcher.mark_read("alice", created.id) is True
	assert (await dispatcher.list_visible("alice"))[0].read is True
	assert await dispatcher.delete("alice", "missing") is False


@pytest.mark.asyncio
async def test_sweep_expired_covers_every_user(dispatcher, clock):
	for user_id in ("alice", "bob", "carol"):
		await _ping(dispatcher, user_id=user_id)
	clock.advance(hours=12)
	await _ping(dispatcher, user_id="bob", title="recent")
	clock.advance(hours=13)

	assert await dispatcher.sweep_expired() == 3
	assert [n.title for n in await dispatcher.list_visible("bob")] == ["recent"]
	assert await dispatcher.sweep_expired() == 0


@pytest.mark.asyncio
async def test_broadcast_reaches_every_registered_user(dispatcher, store, clock):
	for index in range(100):
		await directory.upsert_profile(store, f"user-{index:03d}", display_name=f"User {index}", clock=clock)

	result = await dispatcher.broadcast("Ekadashi fast tomorrow", sent_by="admin-1", sent_by_name="Admin")

	assert result.recipients == 100
	assert result.delivered == 100
	assert result.failed == 0
	for index in range(100):
		[notification] = await dispatcher.list_visible(f"user-{index:03d}")
		assert notification.type == NotificationType.BROADCAST
		assert notification.title == "📢 Admin Announcement"
		assert notification.from_user_name == "Admin Team"
		assert notification.priority == Priority.HIGH.value
		assert notification.message == "Ekadashi fast tomorrow"

	record = await store.read(f"broadcasts/{result.broadcast_id}")
	assert record["recipient_count"] == 100
	assert record["sent_by"] == "admin-1"


class _FlakyStore(InMemoryDocumentStore):
	def __init__(self, failing: set[str]) -> None:
		super().__init__()
		self._failing = failing

	async def write(self, path, value):
		parts = path.split("/")
		if parts[0] == "userNotifications" and parts[1] in self._failing:
			raise ConnectionError("store unavailable")
		await super().write(path, value)


@pytest.mark.asyncio
async def test_broadcast_partial_delivery(clock):
	store = _FlakyStore({"bob"})
	dispatcher = NotificationDispatcher(store, clock=clock)
	for user_id in ("alice", "bob", "carol"):
		await directory.upsert_profile(store, user_id, clock=clock)

	result = await dispatcher.broadcast("Kirtan tonight", sent_by="admin-1")

	assert (result.recipients, result.delivered, result.failed) == (3, 2, 1)
	assert len(await dispatcher.list_visible("alice")) == 1
	assert len(await dispatcher.list_visible("carol")) == 1
	assert await dispatcher.list_visible("bob") == []


@pytest.mark.asyncio
async def test_subscribe_feeds_visible_notifications(dispatcher, store, clock):
	seen = []
	unsubscribe = await dispatcher.subscribe("alice", seen.append)
	assert seen == [[]]

	created = await _ping(dispatcher)
	assert [n.id for n in seen[-1]] == [created.id]

	await dispatcher.mark_read("alice", created.id)
	assert seen[-1][0].read is True

	unsubscribe()
	assert store.listener_count == 0


@pytest.mark.asyncio
async def test_subscribe_awaits_any_awaitable_callback_result(dispatcher):
	awaited = []

	class _Ack:
		def __init__(self, count):
			self.count = count

		def __await__(self):
			awaited.append(self.count)
			return iter(())

	await dispatcher.subscribe("alice", lambda items: _Ack(len(items)))
	await _ping(dispatcher)

	assert awaited == [0, 1]


@pytest.mark.asyncio
async def test_notify_rejects_ids_that_are_not_store_keys(dispatcher, store):
	with pytest.raises(InvalidKeyError):
		await dispatcher.notify("bob/outgoing", NotificationType.BROADCAST, "Hi", "body")
	with pytest.raises(InvalidKeyError):
		await dispatcher.mark_read("bob", "a.b")
	assert await store.read("userNotifications") is None
