"""Caller-facing connection operations bound to the configured store."""

from __future__ import annotations

from typing import List, Optional

from sanga.domain.connections import presence
from sanga.domain.connections.ledger import RelationshipLedger
from sanga.domain.connections.models import ConnectionStatus
from sanga.domain.connections.presence import ViewCallback
from sanga.domain.connections.schemas import Connection, ConnectionRequest
from sanga.domain.notifications.dispatcher import NotificationDispatcher
from sanga.infra.store import Unsubscribe, get_store


def get_ledger() -> RelationshipLedger:
	store = get_store()
	return RelationshipLedger(store, NotificationDispatcher(store))


async def send_connection_request(
	from_user_id: str,
	from_user_name: str,
	to_user_id: str,
	to_user_name: str,
	*,
	from_user_photo: Optional[str] = None,
	message: Optional[str] = None,
) -> ConnectionRequest:
	return await get_ledger().send_request(
		from_user_id,
		from_user_name,
		to_user_id,
		to_user_name,
		from_user_photo=from_user_photo,
		message=message,
	)


async def get_connection_status(user_a: str, user_b: str) -> ConnectionStatus:
	return await get_ledger().get_status(user_a, user_b)


async def accept_connection_request(request_id: str, *, actor_id: Optional[str] = None) -> ConnectionRequest:
	return await get_ledger().accept_request(request_id, actor_id=actor_id)


async def reject_connection_request(request_id: str, *, actor_id: Optional[str] = None) -> ConnectionRequest:
	return await get_ledger().reject_request(request_id, actor_id=actor_id)


async def cancel_connection_request(request_id: str, *, actor_id: Optional[str] = None) -> Optional[ConnectionRequest]:
	return await get_ledger().cancel_request(request_id, actor_id=actor_id)


async def remove_connection(user_a: str, user_b: str) -> None:
	await get_ledger().remove_connection(user_a, user_b)


async def get_pending_requests(user_id: str, callback: ViewCallback) -> Unsubscribe:
	return await presence.subscribe_pending(get_store(), user_id, callback)


async def get_sent_requests(user_id: str, callback: ViewCallback) -> Unsubscribe:
	return await presence.subscribe_sent(get_store(), user_id, callback)


async def listen_to_user_connections(user_id: str, callback: ViewCallback) -> Unsubscribe:
	return await presence.subscribe_connections(get_store(), user_id, callback)


async def get_user_connections(user_id: str) -> List[Connection]:
	return await get_ledger().list_connections(user_id)


async def list_pending_requests(user_id: str) -> List[ConnectionRequest]:
	return await presence.pending_snapshot(get_store(), user_id)


async def list_sent_requests(user_id: str) -> List[ConnectionRequest]:
	return await presence.sent_snapshot(get_store(), user_id)
