"""Per-user notification sets with a rolling visibility window.

Every user owns ``userNotifications/<user_id>/<notification_id>``. Records older
than the retention window are never returned, are purged before the next write
to the same user, and are swept periodically by :mod:`sanga.domain.notifications.jobs`.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, List, Optional, Union

import ulid

from sanga.domain.notifications import directory
from sanga.domain.notifications.models import (
	BROADCAST_SENDER,
	BROADCAST_TITLE,
	BROADCASTS_ROOT,
	NOTIFICATIONS_ROOT,
	Clock,
	NotificationType,
	Priority,
	retention,
	utcnow,
)
from sanga.domain.notifications.schemas import BroadcastResult, UserNotification
from sanga.infra.store import DocumentStore, Unsubscribe, WriteBatch, join, key
from sanga.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)

NotificationsCallback = Callable[[List[UserNotification]], Union[Awaitable[None], None]]


def new_id(clock: Clock = utcnow) -> str:
	return str(ulid.from_timestamp(clock()))


def parse_set(raw: Any) -> List[UserNotification]:
	if not isinstance(raw, dict):
		return []
	return [UserNotification.model_validate(value) for value in raw.values() if isinstance(value, dict)]


def is_visible(notification: UserNotification, now: datetime, window: timedelta) -> bool:
	return now - notification.timestamp <= window


def visible_notifications(raw: Any, now: datetime, window: timedelta) -> List[UserNotification]:
	"""Filter a raw notification set down to what a user may see, newest first."""
	items = [item for item in parse_set(raw) if is_visible(item, now, window)]
	items.sort(key=lambda item: item.timestamp, reverse=True)
	return items


class NotificationDispatcher:
	def __init__(
		self,
		store: DocumentStore,
		*,
		clock: Clock = utcnow,
		window: Optional[timedelta] = None,
	) -> None:
		self._store = store
		self._clock = clock
		self._window = window if window is not None else retention()

	@property
	def window(self) -> timedelta:
		return self._window

	@staticmethod
	def user_path(user_id: str) -> str:
		return join(NOTIFICATIONS_ROOT, key(user_id))

	def _path(self, user_id: str, notification_id: str) -> str:
		return join(NOTIFICATIONS_ROOT, key(user_id), key(notification_id))

	async def _load(self, user_id: str) -> List[UserNotification]:
		return parse_set(await self._store.read(self.user_path(user_id)))

	async def notify(
		self,
		user_id: str,
		type: NotificationType,
		title: str,
		message: str,
		*,
		from_user_id: Optional[str] = None,
		from_user_name: Optional[str] = None,
		admin_comment: Optional[str] = None,
		request_id: Optional[str] = None,
		request_title: Optional[str] = None,
		priority: Priority = Priority.NORMAL,
	) -> UserNotification:
		"""Purge the user's expired records, then append an unread notification."""
		await self.cleanup_old(user_id)
		notification = UserNotification(
			id=new_id(self._clock),
			type=type,
			title=title,
			message=message,
			admin_comment=admin_comment,
			from_user_id=from_user_id,
			from_user_name=from_user_name,
			request_id=request_id,
			request_title=request_title,
			priority=Priority(priority).value,
			timestamp=self._clock(),
			read=False,
		)
		await self._store.write(self._path(user_id, notification.id), notification.model_dump(mode="json"))
		obs_metrics.inc_notification_created(notification.type.value)
		return notification

	async def list_visible(self, user_id: str) -> List[UserNotification]:
		raw = await self._store.read(self.user_path(user_id))
		return visible_notifications(raw, self._clock(), self._window)

	async def unread_count(self, user_id: str) -> int:
		return sum(1 for item in await self.list_visible(user_id) if not item.read)

	async def mark_read(self, user_id: str, notification_id: str) -> bool:
		"""Flag one notification as read. Returns False when it no longer exists."""
		return await self._store.update(self._path(user_id, notification_id), {"read": True})

	async def mark_all_read(self, user_id: str) -> int:
		batch = WriteBatch()
		for item in await self._load(user_id):
			if not item.read:
				batch.merge(self._path(user_id, item.id), {"read": True})
		if batch:
			await self._store.commit(batch)
		return len(batch)

	async def delete(self, user_id: str, notification_id: str) -> bool:
		path = self._path(user_id, notification_id)
		if await self._store.read(path) is None:
			return False
		await self._store.remove(path)
		return True

	async def cleanup_old(self, user_id: str, *, trigger: str = "write") -> int:
		"""Delete the user's notifications older than the retention window."""
		now = self._clock()
		batch = WriteBatch()
		for item in await self._load(user_id):
			if not is_visible(item, now, self._window):
				batch.delete(self._path(user_id, item.id))
		if batch:
			await self._store.commit(batch)
			obs_metrics.inc_notifications_expired(trigger, len(batch))
			logger.debug("expired notifications purged", extra={"user_id": user_id, "count": len(batch)})
		return len(batch)

	async def sweep_expired(self) -> int:
		raw = await self._store.read(NOTIFICATIONS_ROOT)
		if not isinstance(raw, dict):
			return 0
		total = 0
		for user_id in list(raw.keys()):
			total += await self.cleanup_old(user_id, trigger="sweep")
		return total

	async def broadcast(
		self,
		message: str,
		*,
		sent_by: str,
		sent_by_name: Optional[str] = None,
		title: Optional[str] = None,
	) -> BroadcastResult:
		"""Send one announcement to every known user.

		Deliveries run concurrently and independently; a failed write for one user
		does not undo the others.
		"""
		recipients = await directory.list_user_ids(self._store)
		results = await asyncio.gather(
			*(
				self.notify(
					user_id,
					NotificationType.BROADCAST,
					title or BROADCAST_TITLE,
					message,
					from_user_id=sent_by,
					from_user_name=BROADCAST_SENDER,
					priority=Priority.HIGH,
				)
				for user_id in recipients
			),
			return_exceptions=True,
		)
		failed = [(user_id, result) for user_id, result in zip(recipients, results) if isinstance(result, BaseException)]
		for user_id, exc in failed:
			logger.warning("broadcast delivery failed", extra={"user_id": user_id, "error": repr(exc)})
		delivered = len(recipients) - len(failed)

		broadcast_id = new_id(self._clock)
		await self._store.write(
			join(BROADCASTS_ROOT, broadcast_id),
			{
				"message": message,
				"title": title or BROADCAST_TITLE,
				"sent_by": sent_by,
				"sent_by_name": sent_by_name,
				"timestamp": self._clock().isoformat(),
				"recipient_count": len(recipients),
				"delivered": delivered,
				"failed": len(failed),
			},
		)
		obs_metrics.inc_broadcast("delivered", delivered)
		if failed:
			obs_metrics.inc_broadcast("failed", len(failed))
		logger.info(
			"broadcast sent",
			extra={"broadcast_id": broadcast_id, "recipients": len(recipients), "failed": len(failed)},
		)
		return BroadcastResult(
			broadcast_id=broadcast_id,
			recipients=len(recipients),
			delivered=delivered,
			failed=len(failed),
		)

	async def subscribe(self, user_id: str, callback: NotificationsCallback) -> Unsubscribe:
		"""Feed ``callback`` the user's visible notifications on every change."""

		async def _on_change(raw: Any) -> None:
			result = callback(visible_notifications(raw, self._clock(), self._window))
			if inspect.isawaitable(result):
				await result

		return await self._store.subscribe(self.user_path(user_id), _on_change)
