"""REST API surface for connection requests & relationships."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, status

from sanga.api.errors import map_domain_error
from sanga.domain.connections import service
from sanga.domain.connections.exceptions import ConnectionsError, RequestRateLimitExceeded
from sanga.domain.connections.schemas import Connection, ConnectionRequest, SendRequestPayload, StatusResponse
from sanga.api.params import IdParam
from sanga.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(prefix="/connections", tags=["connections"])


@router.post("/requests", response_model=ConnectionRequest, status_code=status.HTTP_201_CREATED)
async def send_request(
	payload: SendRequestPayload,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> ConnectionRequest:
	try:
		return await service.send_connection_request(
			auth_user.id,
			auth_user.name,
			payload.to_user_id,
			payload.to_user_name,
			from_user_photo=auth_user.photo_url,
			message=payload.message,
		)
	except (ConnectionsError, RequestRateLimitExceeded) as exc:
		raise map_domain_error(exc) from None


@router.post("/requests/{request_id}/accept", response_model=ConnectionRequest)
async def accept_request(
	request_id: IdParam,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> ConnectionRequest:
	try:
		return await service.accept_connection_request(request_id, actor_id=auth_user.id)
	except ConnectionsError as exc:
		raise map_domain_error(exc) from None


@router.post("/requests/{request_id}/reject", response_model=ConnectionRequest)
async def reject_request(
	request_id: IdParam,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> ConnectionRequest:
	try:
		return await service.reject_connection_request(request_id, actor_id=auth_user.id)
	except ConnectionsError as exc:
		raise map_domain_error(exc) from None


@router.post("/requests/{request_id}/cancel")
async def cancel_request(
	request_id: IdParam,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dict[str, bool]:
	try:
		cancelled = await service.cancel_connection_request(request_id, actor_id=auth_user.id)
	except ConnectionsError as exc:
		raise map_domain_error(exc) from None
	return {"ok": True, "cancelled": cancelled is not None}


@router.get("/requests/pending", response_model=List[ConnectionRequest])
async def pending_requests(auth_user: AuthenticatedUser = Depends(get_current_user)) -> List[ConnectionRequest]:
	return await service.list_pending_requests(auth_user.id)


@router.get("/requests/sent", response_model=List[ConnectionRequest])
async def sent_requests(auth_user: AuthenticatedUser = Depends(get_current_user)) -> List[ConnectionRequest]:
	return await service.list_sent_requests(auth_user.id)


@router.get("", response_model=List[Connection])
async def list_connections(auth_user: AuthenticatedUser = Depends(get_current_user)) -> List[Connection]:
	return await service.get_user_connections(auth_user.id)


@router.get("/status/{user_id}", response_model=StatusResponse)
async def connection_status(
	user_id: IdParam,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> StatusResponse:
	return StatusResponse(user_id=user_id, status=await service.get_connection_status(auth_user.id, user_id))


@router.delete("/{user_id}")
async def remove_connection(
	user_id: IdParam,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dict[str, bool]:
	await service.remove_connection(auth_user.id, user_id)
	return {"ok": True}
