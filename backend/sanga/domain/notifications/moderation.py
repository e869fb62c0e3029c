"""Both halves of content review: the admin inbox of new festival and sloka
submissions, and the notifications sent back to submitters once an admin decides.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Awaitable, Callable, List, Literal, Optional, Union

from sanga.domain.notifications.dispatcher import NotificationDispatcher, new_id
from sanga.domain.notifications.models import (
	ADMIN_NOTIFICATIONS_ROOT,
	AdminNotificationType,
	Clock,
	NotificationType,
	utcnow,
)
from sanga.domain.notifications.schemas import AdminNotification, UserNotification
from sanga.infra.store import DocumentStore, Unsubscribe, join, key
from sanga.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)

ReviewKind = Literal["festival", "sloka"]
AdminCallback = Callable[[List[AdminNotification]], Union[Awaitable[None], None]]

_SUBMISSION_TYPES = {
	"festival": AdminNotificationType.FESTIVAL_REQUEST,
	"sloka": AdminNotificationType.SLOKA_REQUEST,
}

_TYPES = {
	("festival", True): NotificationType.FESTIVAL_APPROVED,
	("festival", False): NotificationType.FESTIVAL_REJECTED,
	("sloka", True): NotificationType.SLOKA_APPROVED,
	("sloka", False): NotificationType.SLOKA_REJECTED,
}

_TITLES = {
	("festival", True): "Festival Request Approved",
	("festival", False): "Festival Request Declined",
	("sloka", True): "Sloka Request Approved",
	("sloka", False): "Sloka Request Declined",
}

_DEFAULT_REJECTION_HINT = "Please review the details and resubmit if needed."


def decision_message(kind: ReviewKind, approved: bool, request_title: str, admin_comment: Optional[str] = None) -> str:
	if kind == "festival":
		if approved:
			return f'Your festival "{request_title}" has been approved and is now live in the Festivals section.'
		return f'Your festival request "{request_title}" was not approved. {admin_comment or _DEFAULT_REJECTION_HINT}'
	if approved:
		return f'Your sloka "{request_title}" has been approved and is now available in the Slokas Library.'
	return f'Your sloka request "{request_title}" was not approved. {admin_comment or _DEFAULT_REJECTION_HINT}'


async def notify_review_decision(
	dispatcher: NotificationDispatcher,
	*,
	user_id: str,
	kind: ReviewKind,
	approved: bool,
	request_id: str,
	request_title: str,
	admin_comment: Optional[str] = None,
) -> UserNotification:
	if (kind, approved) not in _TYPES:
		raise ValueError(f"unsupported review kind: {kind}")
	return await dispatcher.notify(
		user_id,
		_TYPES[(kind, approved)],
		_TITLES[(kind, approved)],
		decision_message(kind, approved, request_title, admin_comment),
		admin_comment=admin_comment or None,
		request_id=request_id,
		request_title=request_title,
	)


def admin_view(raw: Any) -> List[AdminNotification]:
	if not isinstance(raw, dict):
		return []
	items = [AdminNotification.model_validate(value) for value in raw.values() if isinstance(value, dict)]
	items.sort(key=lambda item: item.timestamp, reverse=True)
	return items


class AdminInbox:
	"""Shared ``adminNotifications/<id>`` set that every admin reads.

	Entries do not expire; admins clear them by marking them read.
	"""

	def __init__(self, store: DocumentStore, *, clock: Clock = utcnow) -> None:
		self._store = store
		self._clock = clock

	@staticmethod
	def _path(notification_id: str) -> str:
		return join(ADMIN_NOTIFICATIONS_ROOT, key(notification_id))

	async def notify_admins(self, kind: ReviewKind, *, request_id: str, requester_name: str, title: str) -> AdminNotification:
		"""Record a new festival or sloka submission for review."""
		if kind not in _SUBMISSION_TYPES:
			raise ValueError(f"unsupported review kind: {kind}")
		notification = AdminNotification(
			id=new_id(self._clock),
			type=_SUBMISSION_TYPES[kind],
			request_id=key(request_id),
			requester_name=requester_name,
			title=title,
			timestamp=self._clock(),
			read=False,
		)
		await self._store.write(self._path(notification.id), notification.model_dump(mode="json"))
		obs_metrics.inc_notification_created(notification.type.value)
		logger.info("admin review requested", extra={"kind": kind, "request_id": request_id})
		return notification

	async def list_all(self) -> List[AdminNotification]:
		return admin_view(await self._store.read(ADMIN_NOTIFICATIONS_ROOT))

	async def mark_read(self, notification_id: str) -> bool:
		return await self._store.update(self._path(notification_id), {"read": True})

	async def subscribe(self, callback: AdminCallback) -> Unsubscribe:
		"""Feed ``callback`` the whole inbox, newest first, on every change."""

		async def _on_change(raw: Any) -> None:
			result = callback(admin_view(raw))
			if inspect.isawaitable(result):
				await result

		return await self._store.subscribe(ADMIN_NOTIFICATIONS_ROOT, _on_change)
