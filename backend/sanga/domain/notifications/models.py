"""Domain constants for per-user notifications."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable

from sanga.settings import settings

Clock = Callable[[], datetime]


def utcnow() -> datetime:
	return datetime.now(timezone.utc)


class NotificationType(str, Enum):
	"""Kinds of notification a user can receive."""

	CONNECTION_REQUEST = "connection_request"
	CONNECTION_ACCEPTED = "connection_accepted"
	BROADCAST = "broadcast"
	FESTIVAL_APPROVED = "festival_approved"
	FESTIVAL_REJECTED = "festival_rejected"
	SLOKA_APPROVED = "sloka_approved"
	SLOKA_REJECTED = "sloka_rejected"


class Priority(str, Enum):
	NORMAL = "normal"
	HIGH = "high"


class AdminNotificationType(str, Enum):
	"""Content submissions waiting for an admin review."""

	FESTIVAL_REQUEST = "festival_request"
	SLOKA_REQUEST = "sloka_request"


NOTIFICATIONS_ROOT = "userNotifications"
BROADCASTS_ROOT = "broadcasts"
USERS_ROOT = "users"
ADMIN_NOTIFICATIONS_ROOT = "adminNotifications"

BROADCAST_TITLE = "📢 Admin Announcement"
BROADCAST_SENDER = "Admin Team"


def retention() -> timedelta:
	return timedelta(hours=settings.notification_retention_hours)
