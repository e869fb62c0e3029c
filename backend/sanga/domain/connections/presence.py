"""Live views over a user's requests, connections and notifications.

Each ``subscribe_*`` helper listens on the user's own index path, turns the raw
store value into the view a client renders and hands it to the callback. The
returned handle detaches the listener.
"""

from __future__ import annotations

import inspect
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar, Union

from sanga.domain.connections.models import (
	CONNECTIONS_ROOT,
	INCOMING,
	OUTGOING,
	USER_REQUESTS_ROOT,
	RequestStatus,
)
from sanga.domain.connections.schemas import Connection, ConnectionRequest
from sanga.domain.notifications.dispatcher import NotificationDispatcher, NotificationsCallback
from sanga.infra.store import DocumentStore, Unsubscribe, join, key

T = TypeVar("T")
ViewCallback = Callable[[List[T]], Union[Awaitable[None], None]]


def incoming_path(user_id: str) -> str:
	return join(USER_REQUESTS_ROOT, key(user_id), INCOMING)


def outgoing_path(user_id: str) -> str:
	return join(USER_REQUESTS_ROOT, key(user_id), OUTGOING)


def connections_path(user_id: str) -> str:
	return join(CONNECTIONS_ROOT, key(user_id))


def requests_from_index(raw: Any) -> List[ConnectionRequest]:
	if not isinstance(raw, dict):
		return []
	return [ConnectionRequest.model_validate(value) for value in raw.values() if isinstance(value, dict)]


def _newest_unique(requests: List[ConnectionRequest]) -> List[ConnectionRequest]:
	seen: Dict[str, ConnectionRequest] = {}
	for request in requests:
		seen.setdefault(request.id, request)
	return sorted(seen.values(), key=lambda item: item.timestamp, reverse=True)


def pending_view(raw: Any, user_id: str) -> List[ConnectionRequest]:
	"""Pending requests addressed to ``user_id``, de-duplicated, newest first."""
	return _newest_unique(
		[r for r in requests_from_index(raw) if r.to_user_id == user_id and r.status == RequestStatus.PENDING]
	)


def sent_view(raw: Any, user_id: str) -> List[ConnectionRequest]:
	return _newest_unique(
		[r for r in requests_from_index(raw) if r.from_user_id == user_id and r.status == RequestStatus.PENDING]
	)


def connections_view(raw: Any) -> List[Connection]:
	if not isinstance(raw, dict):
		return []
	edges = [Connection.model_validate(value) for value in raw.values() if isinstance(value, dict)]
	edges.sort(key=lambda edge: edge.connected_at)
	return edges


def connection_ids_view(raw: Any) -> List[str]:
	return [edge.user_id for edge in connections_view(raw)]


def _relay(callback: ViewCallback, transform: Callable[[Any], List[Any]]):
	async def _on_change(raw: Any) -> None:
		result = callback(transform(raw))
		if inspect.isawaitable(result):
			await result

	return _on_change


async def subscribe_pending(store: DocumentStore, user_id: str, callback: ViewCallback) -> Unsubscribe:
	return await store.subscribe(incoming_path(user_id), _relay(callback, lambda raw: pending_view(raw, user_id)))


async def subscribe_sent(store: DocumentStore, user_id: str, callback: ViewCallback) -> Unsubscribe:
	return await store.subscribe(outgoing_path(user_id), _relay(callback, lambda raw: sent_view(raw, user_id)))


async def subscribe_connections(store: DocumentStore, user_id: str, callback: ViewCallback) -> Unsubscribe:
	"""Live list of peer ids connected to ``user_id``."""
	return await store.subscribe(connections_path(user_id), _relay(callback, connection_ids_view))


async def subscribe_notifications(
	store: DocumentStore,
	user_id: str,
	callback: NotificationsCallback,
	*,
	dispatcher: Optional[NotificationDispatcher] = None,
) -> Unsubscribe:
	dispatcher = dispatcher or NotificationDispatcher(store)
	return await dispatcher.subscribe(user_id, callback)


async def pending_snapshot(store: DocumentStore, user_id: str) -> List[ConnectionRequest]:
	return pending_view(await store.read(incoming_path(user_id)), user_id)


async def sent_snapshot(store: DocumentStore, user_id: str) -> List[ConnectionRequest]:
	return sent_view(await store.read(outgoing_path(user_id)), user_id)


async def connections_snapshot(store: DocumentStore, user_id: str) -> List[Connection]:
	return connections_view(await store.read(connections_path(user_id)))
