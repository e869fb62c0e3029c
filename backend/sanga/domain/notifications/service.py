"""Caller-facing notification operations bound to the configured store."""

from __future__ import annotations

from typing import List, Optional

from sanga.domain.notifications import directory, moderation
from sanga.domain.notifications.dispatcher import NotificationDispatcher, NotificationsCallback
from sanga.domain.notifications.exceptions import NotificationNotFoundError
from sanga.domain.notifications.moderation import AdminCallback, AdminInbox
from sanga.domain.notifications.schemas import AdminNotification, BroadcastResult, UserNotification, UserProfile
from sanga.infra.auth import AuthenticatedUser
from sanga.infra.store import Unsubscribe, get_store


def get_dispatcher() -> NotificationDispatcher:
	return NotificationDispatcher(get_store())


def get_admin_inbox() -> AdminInbox:
	return AdminInbox(get_store())


async def get_user_notifications(user_id: str, callback: NotificationsCallback) -> Unsubscribe:
	return await get_dispatcher().subscribe(user_id, callback)


async def list_user_notifications(user_id: str) -> List[UserNotification]:
	return await get_dispatcher().list_visible(user_id)


async def get_unread_notification_count(user_id: str) -> int:
	return await get_dispatcher().unread_count(user_id)


async def mark_notification_as_read(user_id: str, notification_id: str) -> None:
	if not await get_dispatcher().mark_read(user_id, notification_id):
		raise NotificationNotFoundError()


async def mark_all_notifications_as_read(user_id: str) -> int:
	return await get_dispatcher().mark_all_read(user_id)


async def delete_notification(user_id: str, notification_id: str) -> None:
	if not await get_dispatcher().delete(user_id, notification_id):
		raise NotificationNotFoundError()


async def broadcast_announcement(admin: AuthenticatedUser, message: str, *, title: Optional[str] = None) -> BroadcastResult:
	return await get_dispatcher().broadcast(message, sent_by=admin.id, sent_by_name=admin.name, title=title)


async def notify_review_decision(
	*,
	user_id: str,
	kind: moderation.ReviewKind,
	approved: bool,
	request_id: str,
	request_title: str,
	admin_comment: Optional[str] = None,
) -> UserNotification:
	return await moderation.notify_review_decision(
		get_dispatcher(),
		user_id=user_id,
		kind=kind,
		approved=approved,
		request_id=request_id,
		request_title=request_title,
		admin_comment=admin_comment,
	)


async def register_profile(user: AuthenticatedUser, *, display_name: Optional[str] = None, photo_url: Optional[str] = None) -> UserProfile:
	return await directory.upsert_profile(
		get_store(),
		user.id,
		display_name=display_name or user.display_name,
		photo_url=photo_url or user.photo_url,
	)


async def notify_admins_of_submission(
	requester: AuthenticatedUser,
	*,
	kind: moderation.ReviewKind,
	request_id: str,
	title: str,
) -> AdminNotification:
	return await get_admin_inbox().notify_admins(kind, request_id=request_id, requester_name=requester.name, title=title)


async def get_admin_notifications(callback: AdminCallback) -> Unsubscribe:
	return await get_admin_inbox().subscribe(callback)


async def list_admin_notifications() -> List[AdminNotification]:
	return await get_admin_inbox().list_all()


async def mark_admin_notification_as_read(notification_id: str) -> None:
	if not await get_admin_inbox().mark_read(notification_id):
		raise NotificationNotFoundError()
