"""Notification domain exports."""

from . import directory, dispatcher, jobs, moderation, service  # noqa: F401
from .models import AdminNotificationType, NotificationType, Priority  # noqa: F401
from .schemas import AdminNotification, BroadcastResult, UserNotification  # noqa: F401
