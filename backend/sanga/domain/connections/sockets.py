"""Socket.IO namespace that streams a user's connection views."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import socketio

from sanga.domain.connections import presence
from sanga.domain.connections.status import StatusResolver
from sanga.domain.notifications.moderation import AdminInbox
from sanga.infra.auth import AuthenticatedUser, user_from_handshake
from sanga.infra.store import DocumentStore, Unsubscribe, get_store, is_valid_key
from sanga.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)


def _headers(environ: dict) -> Dict[str, str]:
	scope = environ.get("asgi.scope", environ)
	headers: Dict[str, str] = {}
	for key, value in scope.get("headers", []) or []:
		headers[key.decode().lower()] = value.decode()
	for key, value in environ.items():
		if isinstance(key, str) and key.startswith("HTTP_") and isinstance(value, str):
			headers.setdefault(key[5:].replace("_", "-").lower(), value)
	return headers


def _dump(items: List[Any]) -> List[Any]:
	return [item.model_dump(mode="json") if hasattr(item, "model_dump") else item for item in items]


class ConnectionsNamespace(socketio.AsyncNamespace):
	"""Pushes pending/sent requests, connections and notifications to each client."""

	def __init__(self, store: Optional[DocumentStore] = None) -> None:
		super().__init__("/connections")
		self._store = store
		self._sessions: dict[str, AuthenticatedUser] = {}
		self._subscriptions: dict[str, list[Unsubscribe]] = {}

	@property
	def store(self) -> DocumentStore:
		return self._store or get_store()

	async def on_connect(self, sid: str, environ: dict, auth: Optional[dict] = None) -> None:
		obs_metrics.socket_connected(self.namespace)
		user = user_from_handshake(auth or environ.get("auth"), _headers(environ))
		if user is None:
			obs_metrics.socket_disconnected(self.namespace)
			raise ConnectionRefusedError("unauthenticated")
		try:
			self._subscriptions[sid] = await self._watch(sid, user)
		except Exception:
			obs_metrics.socket_disconnected(self.namespace)
			raise
		self._sessions[sid] = user
		await self.emit("connections:ack", {"ok": True}, room=sid)

	async def _watch(self, sid: str, user: AuthenticatedUser) -> list[Unsubscribe]:
		store = self.store

		def _forward(event: str):
			async def _send(view: List[Any]) -> None:
				obs_metrics.socket_event(self.namespace, event)
				await self.emit(event, _dump(view), room=sid)

			return _send

		handles: list[Unsubscribe] = []
		try:
			handles.append(await presence.subscribe_pending(store, user.id, _forward("requests:pending")))
			handles.append(await presence.subscribe_sent(store, user.id, _forward("requests:sent")))
			handles.append(await presence.subscribe_connections(store, user.id, _forward("connections:list")))
			handles.append(await presence.subscribe_notifications(store, user.id, _forward("notifications:list")))
			if user.has_role("admin"):
				handles.append(await AdminInbox(store).subscribe(_forward("admin:notifications")))
		except Exception:
			for unsubscribe in handles:
				unsubscribe()
			raise
		return handles

	async def on_disconnect(self, sid: str, reason: Any = None) -> None:
		obs_metrics.socket_disconnected(self.namespace)
		for unsubscribe in self._subscriptions.pop(sid, []):
			unsubscribe()
		self._sessions.pop(sid, None)

	async def on_status(self, sid: str, payload: dict | None = None) -> dict:
		"""Ack-style lookup of the caller's relationship with another user."""
		obs_metrics.socket_event(self.namespace, "status")
		user = self._sessions.get(sid)
		if not user:
			raise ConnectionRefusedError("unauthenticated")
		other = str((payload or {}).get("userId") or "")
		if not other:
			return {"error": "missing_user_id"}
		if not is_valid_key(other):
			return {"error": "invalid_user_id"}
		status = await StatusResolver(self.store).resolve(user.id, other)
		return {"userId": other, "status": status.value}

	def active_subscriptions(self, sid: str) -> int:
		return len(self._subscriptions.get(sid, []))
