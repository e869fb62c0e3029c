"""REST API surface for the notification bell and admin announcements."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends

from sanga.api.errors import map_domain_error
from sanga.domain.notifications import service
from sanga.domain.notifications.exceptions import NotificationsError
from sanga.domain.notifications.schemas import (
	AdminNotification,
	BroadcastRequest,
	BroadcastResult,
	ProfileUpdate,
	ReviewDecisionRequest,
	SubmissionNotice,
	UnreadCount,
	UserNotification,
	UserProfile,
)
from sanga.api.params import IdParam
from sanga.infra.auth import AuthenticatedUser, get_admin_user, get_current_user

router = APIRouter(tags=["notifications"])


@router.get("/notifications", response_model=List[UserNotification])
async def list_notifications(auth_user: AuthenticatedUser = Depends(get_current_user)) -> List[UserNotification]:
	return await service.list_user_notifications(auth_user.id)


@router.get("/notifications/unread-count", response_model=UnreadCount)
async def unread_count(auth_user: AuthenticatedUser = Depends(get_current_user)) -> UnreadCount:
	return UnreadCount(unread=await service.get_unread_notification_count(auth_user.id))


@router.post("/notifications/read-all")
async def mark_all_read(auth_user: AuthenticatedUser = Depends(get_current_user)) -> dict[str, int]:
	return {"updated": await service.mark_all_notifications_as_read(auth_user.id)}


@router.post("/notifications/{notification_id}/read")
async def mark_read(
	notification_id: IdParam,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dict[str, bool]:
	try:
		await service.mark_notification_as_read(auth_user.id, notification_id)
	except NotificationsError as exc:
		raise map_domain_error(exc) from None
	return {"ok": True}


@router.delete("/notifications/{notification_id}")
async def delete_notification(
	notification_id: IdParam,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dict[str, bool]:
	try:
		await service.delete_notification(auth_user.id, notification_id)
	except NotificationsError as exc:
		raise map_domain_error(exc) from None
	return {"ok": True}


@router.post("/notifications/submissions", response_model=AdminNotification, status_code=201)
async def submit_for_review(
	payload: SubmissionNotice,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> AdminNotification:
	return await service.notify_admins_of_submission(
		auth_user, kind=payload.kind, request_id=payload.request_id, title=payload.title
	)


@router.put("/profiles/me", response_model=UserProfile)
async def update_profile(
	payload: ProfileUpdate,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> UserProfile:
	return await service.register_profile(auth_user, display_name=payload.display_name, photo_url=payload.photo_url)


@router.post("/admin/notifications/broadcast", response_model=BroadcastResult)
async def broadcast(
	payload: BroadcastRequest,
	admin: AuthenticatedUser = Depends(get_admin_user),
) -> BroadcastResult:
	return await service.broadcast_announcement(admin, payload.message, title=payload.title)


@router.post("/admin/notifications/review", response_model=UserNotification)
async def review_decision(
	payload: ReviewDecisionRequest,
	admin: AuthenticatedUser = Depends(get_admin_user),
) -> UserNotification:
	return await service.notify_review_decision(
		user_id=payload.user_id,
		kind=payload.kind,
		approved=payload.approved,
		request_id=payload.request_id,
		request_title=payload.request_title,
		admin_comment=payload.admin_comment,
	)


@router.get("/admin/notifications", response_model=List[AdminNotification])
async def admin_inbox(admin: AuthenticatedUser = Depends(get_admin_user)) -> List[AdminNotification]:
	return await service.list_admin_notifications()


@router.post("/admin/notifications/{notification_id}/read")
async def mark_admin_read(
	notification_id: IdParam,
	admin: AuthenticatedUser = Depends(get_admin_user),
) -> dict[str, bool]:
	try:
		await service.mark_admin_notification_as_read(notification_id)
	except NotificationsError as exc:
		raise map_domain_error(exc) from None
	return {"ok": True}
