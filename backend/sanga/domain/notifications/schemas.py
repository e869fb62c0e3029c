"""Pydantic schemas for notifications and admin announcements."""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

from sanga.domain.notifications.models import AdminNotificationType, NotificationType
from sanga.infra.store import KEY_PATTERN


class UserNotification(BaseModel):
	id: str
	type: NotificationType
	title: str
	message: str
	admin_comment: Optional[str] = None
	from_user_id: Optional[str] = None
	from_user_name: Optional[str] = None
	request_id: Optional[str] = None
	request_title: Optional[str] = None
	priority: Literal["normal", "high"] = "normal"
	timestamp: datetime
	read: bool = False


class AdminNotification(BaseModel):
	"""Entry in the shared admin inbox, one per submitted festival or sloka."""

	id: str
	type: AdminNotificationType
	request_id: str
	requester_name: str
	title: str
	timestamp: datetime
	read: bool = False


class SubmissionNotice(BaseModel):
	kind: Literal["festival", "sloka"]
	request_id: str = Field(..., min_length=1, max_length=128, pattern=KEY_PATTERN)
	title: str = Field(..., min_length=1, max_length=200, description="Festival name or sloka title")


class UnreadCount(BaseModel):
	unread: int


class BroadcastRequest(BaseModel):
	message: str = Field(..., min_length=1, max_length=2000, description="Announcement body")
	title: Optional[str] = Field(default=None, max_length=120)


class BroadcastResult(BaseModel):
	broadcast_id: str
	recipients: int
	delivered: int
	failed: int


class ReviewDecisionRequest(BaseModel):
	user_id: str = Field(..., min_length=1, max_length=128, pattern=KEY_PATTERN, description="Submitter of the reviewed content")
	kind: Literal["festival", "sloka"]
	approved: bool
	request_id: str = Field(..., min_length=1, max_length=128, pattern=KEY_PATTERN)
	request_title: str = Field(..., min_length=1, description="Festival name or sloka title")
	admin_comment: Optional[str] = Field(default=None, max_length=1000)


class UserProfile(BaseModel):
	user_id: str
	display_name: Optional[str] = None
	photo_url: Optional[str] = None
	updated_at: datetime


class ProfileUpdate(BaseModel):
	display_name: Optional[str] = Field(default=None, max_length=120)
	photo_url: Optional[str] = Field(default=None, max_length=2048)
