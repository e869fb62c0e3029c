"""Domain-level exceptions for notifications."""

from __future__ import annotations


class NotificationsError(Exception):
	"""Base class for notification errors."""

	reason: str = "unknown"

	def __init__(self, reason: str | None = None) -> None:
		super().__init__(reason or self.reason)
		if reason:
			self.reason = reason


class NotificationNotFoundError(NotificationsError):
	reason = "notification_not_found"
