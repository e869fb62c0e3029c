import pytest

from sanga.domain.notifications import jobs, moderation
from sanga.domain.notifications.dispatcher import NotificationDispatcher
from sanga.domain.notifications.models import AdminNotificationType, NotificationType
from sanga.infra.memory_store import InMemoryDocumentStore
from sanga.infra.scheduler import JobScheduler
from sanga.infra.store import InvalidKeyError
from sanga.settings import settings


@pytest.fixture
def dispatcher(clock):
	return NotificationDispatcher(InMemoryDocumentStore(), clock=clock)


@pytest.mark.asyncio
async def test_festival_approval_message(dispatcher):
	notification = await moderation.notify_review_decision(
		dispatcher,
		user_id="alice",
		kind="festival",
		approved=True,
		request_id="fest-1",
		request_title="Gaura Purnima",
	)
	assert notification.type == NotificationType.FESTIVAL_APPROVED
	assert notification.title == "Festival Request Approved"
	assert notification.message == (
		'Your festival "Gaura Purnima" has been approved and is now live in the Festivals section.'
	)
	assert notification.request_title == "Gaura Purnima"


@pytest.mark.asyncio
async def test_sloka_rejection_uses_comment_or_default_hint(dispatcher):
	with_comment = await moderation.notify_review_decision(
		dispatcher,
		user_id="alice",
		kind="sloka",
		approved=False,
		request_id="s-1",
		request_title="BG 2.47",
		admin_comment="Please add the translation.",
	)
	assert with_comment.type == NotificationType.SLOKA_REJECTED
	assert with_comment.title == "Sloka Request Declined"
	assert with_comment.message == 'Your sloka request "BG 2.47" was not approved. Please add the translation.'
	assert with_comment.admin_comment == "Please add the translation."

	without = await moderation.notify_review_decision(
		dispatcher, user_id="alice", kind="sloka", approved=False, request_id="s-2", request_title="BG 9.22"
	)
	assert without.message.endswith("Please review the details and resubmit if needed.")
	assert without.admin_comment is None


def test_sloka_approval_text():
	assert moderation.decision_message("sloka", True, "BG 18.66") == (
		'Your sloka "BG 18.66" has been approved and is now available in the Slokas Library.'
	)


@pytest.mark.asyncio
async def test_run_sweep_purges_expired(dispatcher, clock):
	await dispatcher.notify("alice", NotificationType.BROADCAST, "t", "m")
	clock.advance(days=2)
	assert await jobs.run_sweep(dispatcher) == 1


def test_install_respects_setting(monkeypatch):
	scheduler = JobScheduler()
	assert jobs.install(scheduler) is False
	assert scheduler.job_ids() == []

	monkeypatch.setattr(settings, "notification_sweep_enabled", True)
	assert jobs.install(scheduler) is True
	assert scheduler.job_ids() == [jobs.SWEEP_JOB_ID]


@pytest.fixture
def inbox(clock):
	return moderation.AdminInbox(InMemoryDocumentStore(), clock=clock)


@pytest.mark.asyncio
async def test_submissions_land_in_admin_inbox_newest_first(inbox, clock):
	festival = await inbox.notify_admins("festival", request_id="fest-1", requester_name="Radha", title="Gaura Purnima")
	clock.advance(minutes=5)
	sloka = await inbox.notify_admins("sloka", request_id="sloka-1", requester_name="Madhava", title="Evening Prayer")

	entries = await inbox.list_all()
	assert [entry.id for entry in entries] == [sloka.id, festival.id]
	assert entries[0].type == AdminNotificationType.SLOKA_REQUEST
	assert entries[1].type == AdminNotificationType.FESTIVAL_REQUEST
	assert entries[1].requester_name == "Radha"
	assert all(entry.read is False for entry in entries)


@pytest.mark.asyncio
async def test_admin_mark_read_never_creates_entries(inbox):
	entry = await inbox.notify_admins("festival", request_id="fest-1", requester_name="Radha", title="Holi")

	assert await inbox.mark_read(entry.id) is True
	assert await inbox.mark_read("missing") is False
	[stored] = await inbox.list_all()
	assert stored.read is True


@pytest.mark.asyncio
async def test_admin_inbox_subscription_follows_changes(inbox, clock):
	views = []
	unsubscribe = await inbox.subscribe(views.append)
	assert views == [[]]

	entry = await inbox.notify_admins("sloka", request_id="sloka-1", requester_name="Madhava", title="Japa")
	assert [item.id for item in views[-1]] == [entry.id]

	await inbox.mark_read(entry.id)
	assert views[-1][0].read is True

	unsubscribe()
	await inbox.notify_admins("sloka", request_id="sloka-2", requester_name="Madhava", title="Kirtan")
	assert len(views[-1]) == 1


@pytest.mark.asyncio
async def test_admin_inbox_rejects_unknown_kind_and_bad_ids(inbox):
	with pytest.raises(ValueError):
		await inbox.notify_admins("journal", request_id="j-1", requester_name="Radha", title="Diary")
	with pytest.raises(InvalidKeyError):
		await inbox.notify_admins("sloka", request_id="a/b", requester_name="Radha", title="Diary")
	assert await inbox.list_all() == []
