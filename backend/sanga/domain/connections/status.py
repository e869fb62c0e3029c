"""Derives the relationship between two users from stored edges and requests."""

from __future__ import annotations

from typing import List

from sanga.domain.connections import presence
from sanga.domain.connections.models import CONNECTIONS_ROOT, ConnectionStatus
from sanga.domain.connections.schemas import ConnectionRequest
from sanga.infra.store import DocumentStore, join, key


class StatusResolver:
	"""Edge first, then pending requests in either direction."""

	def __init__(self, store: DocumentStore) -> None:
		self._store = store

	async def has_edge(self, user_a: str, user_b: str) -> bool:
		return await self._store.read(join(CONNECTIONS_ROOT, key(user_a), key(user_b))) is not None

	async def pending_between(self, user_a: str, user_b: str) -> List[ConnectionRequest]:
		"""Pending requests between the two users, whichever of them sent it."""
		sent = await presence.sent_snapshot(self._store, user_a)
		received = await presence.pending_snapshot(self._store, user_a)
		return [r for r in sent if r.to_user_id == user_b] + [r for r in received if r.from_user_id == user_b]

	async def resolve(self, user_a: str, user_b: str) -> ConnectionStatus:
		if await self.has_edge(user_a, user_b):
			return ConnectionStatus.CONNECTED
		if await self.pending_between(user_a, user_b):
			return ConnectionStatus.PENDING
		return ConnectionStatus.NONE
