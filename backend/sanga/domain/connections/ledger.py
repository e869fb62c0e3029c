"""Connection requests and the symmetric edges they turn into.

Store layout::

    connectionRequests/<request_id>                  request document
    userRequests/<user_id>/incoming/<request_id>     recipient index
    userRequests/<user_id>/outgoing/<request_id>     sender index
    connectionPairs/<low_id>:<high_id>               pair claim
    connections/<owner_id>/<peer_id>                 edge

The pair claim is written with ``create`` so only one open request can exist for
an unordered pair, whichever side sends first. Accept, reject, cancel and removal
each land as a single atomic batch.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

import ulid

from sanga.domain.connections import audit, policy, presence
from sanga.domain.connections.exceptions import (
	DuplicateRelationshipError,
	RequestForbiddenError,
	RequestNotFoundError,
)
from sanga.domain.connections.models import (
	ACCEPTED_TITLE,
	CONNECTIONS_ROOT,
	INCOMING,
	OUTGOING,
	REQUEST_TITLE,
	REQUESTS_ROOT,
	STALE_CLAIM_AFTER,
	USER_REQUESTS_ROOT,
	ConnectionStatus,
	PairState,
	RequestStatus,
)
from sanga.domain.connections.schemas import Connection, ConnectionRequest, PairClaim
from sanga.domain.connections.status import StatusResolver
from sanga.domain.notifications.dispatcher import NotificationDispatcher
from sanga.domain.notifications.models import Clock, NotificationType, utcnow
from sanga.infra.rate_limit import RateLimitExceeded
from sanga.infra.store import DocumentStore, WriteBatch, join, key
from sanga.settings import settings

logger = logging.getLogger(__name__)


def _request_path(request_id: str) -> str:
	return join(REQUESTS_ROOT, key(request_id))


def _index_path(user_id: str, direction: str, request_id: str) -> str:
	return join(USER_REQUESTS_ROOT, key(user_id), direction, key(request_id))


def _edge_path(owner_id: str, peer_id: str) -> str:
	return join(CONNECTIONS_ROOT, key(owner_id), key(peer_id))


class RelationshipLedger:
	def __init__(
		self,
		store: DocumentStore,
		notifications: Optional[NotificationDispatcher] = None,
		*,
		clock: Clock = utcnow,
		enforce_limits: Optional[bool] = None,
	) -> None:
		self._store = store
		self._clock = clock
		self._notifications = notifications or NotificationDispatcher(store, clock=clock)
		self._status = StatusResolver(store)
		self._enforce_limits = settings.rate_limits_enabled if enforce_limits is None else enforce_limits

	@property
	def status(self) -> StatusResolver:
		return self._status

	async def get_request(self, request_id: str) -> Optional[ConnectionRequest]:
		raw = await self._store.read(_request_path(request_id))
		if not isinstance(raw, dict):
			return None
		return ConnectionRequest.model_validate(raw)

	async def get_status(self, user_a: str, user_b: str) -> ConnectionStatus:
		return await self._status.resolve(user_a, user_b)

	async def list_connections(self, user_id: str) -> List[Connection]:
		return await presence.connections_snapshot(self._store, user_id)

	async def _read_claim(self, user_a: str, user_b: str) -> Optional[PairClaim]:
		raw = await self._store.read(policy.pair_path(user_a, user_b))
		if not isinstance(raw, dict):
			return None
		return PairClaim.model_validate(raw)

	async def _claim_is_stale(self, claim: PairClaim, now: datetime) -> bool:
		if now - claim.updated_at < STALE_CLAIM_AFTER:
			return False
		if claim.state == PairState.CONNECTED:
			return not await self._status.has_edge(claim.from_user_id, claim.to_user_id)
		return await self.get_request(claim.request_id) is None

	async def _claim_pair(self, claim: PairClaim) -> None:
		path = policy.pair_path(claim.from_user_id, claim.to_user_id)
		value = claim.model_dump(mode="json")
		if await self._store.create(path, value):
			return
		existing = await self._read_claim(claim.from_user_id, claim.to_user_id)
		# Left behind by an interrupted write; reclaim once.
		if existing is not None and await self._claim_is_stale(existing, claim.updated_at):
			logger.warning("reclaiming stale pair claim", extra={"pair": policy.pair_key(claim.from_user_id, claim.to_user_id)})
			await self._store.remove(path)
			if await self._store.create(path, value):
				return
		raise DuplicateRelationshipError()

	def _stage_request_removal(self, batch: WriteBatch, request: ConnectionRequest) -> None:
		batch.delete(_request_path(request.id))
		batch.delete(_index_path(request.to_user_id, INCOMING, request.id))
		batch.delete(_index_path(request.from_user_id, OUTGOING, request.id))

	async def _stage_claim_release(self, batch: WriteBatch, request: ConnectionRequest) -> None:
		claim = await self._read_claim(request.from_user_id, request.to_user_id)
		if claim is not None and claim.request_id == request.id:
			batch.delete(policy.pair_path(request.from_user_id, request.to_user_id))

	async def send_request(
		self,
		from_user_id: str,
		from_user_name: str,
		to_user_id: str,
		to_user_name: str,
		*,
		from_user_photo: Optional[str] = None,
		message: Optional[str] = None,
	) -> ConnectionRequest:
		"""Open a pending request from one user to another and notify the recipient."""
		now = self._clock()
		policy.guard_user_ids(from_user_id, to_user_id)
		try:
			policy.guard_not_self(from_user_id, to_user_id)
			if self._enforce_limits:
				await policy.enforce_request_limits(from_user_id, now=now)
			if await self._status.resolve(from_user_id, to_user_id) != ConnectionStatus.NONE:
				raise DuplicateRelationshipError()
			request = ConnectionRequest(
				id=str(ulid.from_timestamp(now)),
				from_user_id=from_user_id,
				from_user_name=from_user_name,
				from_user_photo=from_user_photo,
				to_user_id=to_user_id,
				to_user_name=to_user_name,
				status=RequestStatus.PENDING,
				message=message,
				timestamp=now,
			)
			await self._claim_pair(
				PairClaim(
					request_id=request.id,
					from_user_id=from_user_id,
					to_user_id=to_user_id,
					state=PairState.PENDING,
					updated_at=now,
				)
			)
		except (DuplicateRelationshipError, RateLimitExceeded) as exc:
			reason = getattr(exc, "reason", "rate_limited")
			audit.inc_send_reject(reason)
			logger.info("connection request rejected", extra={"from_user_id": from_user_id, "to_user_id": to_user_id, "reason": reason})
			raise

		document = request.model_dump(mode="json")
		batch = WriteBatch()
		batch.set(_request_path(request.id), document)
		batch.set(_index_path(to_user_id, INCOMING, request.id), document)
		batch.set(_index_path(from_user_id, OUTGOING, request.id), document)
		try:
			await self._store.commit(batch)
		except Exception:
			await self._store.remove(policy.pair_path(from_user_id, to_user_id))
			raise

		await self._notifications.notify(
			to_user_id,
			NotificationType.CONNECTION_REQUEST,
			REQUEST_TITLE,
			f"{from_user_name} wants to connect with you",
			from_user_id=from_user_id,
			from_user_name=from_user_name,
			request_id=request.id,
		)
		audit.inc_request_sent()
		await audit.log_connection_event(
			"request_sent", {"request_id": request.id, "from_user_id": from_user_id, "to_user_id": to_user_id}
		)
		return request

	async def _require(self, request_id: str) -> ConnectionRequest:
		request = await self.get_request(request_id)
		if request is None:
			raise RequestNotFoundError()
		return request

	async def accept_request(self, request_id: str, *, actor_id: Optional[str] = None) -> ConnectionRequest:
		"""Turn a pending request into two edges and notify the original sender."""
		request = await self._require(request_id)
		if actor_id is not None and actor_id != request.to_user_id:
			raise RequestForbiddenError()

		now = self._clock()
		batch = WriteBatch()
		batch.set(
			_edge_path(request.from_user_id, request.to_user_id),
			Connection(user_id=request.to_user_id, user_name=request.to_user_name, connected_at=now).model_dump(mode="json"),
		)
		batch.set(
			_edge_path(request.to_user_id, request.from_user_id),
			Connection(user_id=request.from_user_id, user_name=request.from_user_name, connected_at=now).model_dump(mode="json"),
		)
		self._stage_request_removal(batch, request)
		for other in await self._status.pending_between(request.from_user_id, request.to_user_id):
			if other.id != request.id:
				self._stage_request_removal(batch, other)
		batch.set(
			policy.pair_path(request.from_user_id, request.to_user_id),
			PairClaim(
				request_id=request.id,
				from_user_id=request.from_user_id,
				to_user_id=request.to_user_id,
				state=PairState.CONNECTED,
				updated_at=now,
			).model_dump(mode="json"),
		)
		await self._store.commit(batch)

		await self._notifications.notify(
			request.from_user_id,
			NotificationType.CONNECTION_ACCEPTED,
			ACCEPTED_TITLE,
			f"{request.to_user_name} accepted your connection request",
			from_user_id=request.to_user_id,
			from_user_name=request.to_user_name,
			request_id=request.id,
		)
		audit.inc_resolved("accepted")
		await audit.log_connection_event(
			"request_accepted",
			{"request_id": request.id, "from_user_id": request.from_user_id, "to_user_id": request.to_user_id},
		)
		return request.model_copy(update={"status": RequestStatus.ACCEPTED})

	async def _discard(self, request: ConnectionRequest) -> None:
		batch = WriteBatch()
		self._stage_request_removal(batch, request)
		await self._stage_claim_release(batch, request)
		await self._store.commit(batch)

	async def reject_request(self, request_id: str, *, actor_id: Optional[str] = None) -> ConnectionRequest:
		"""Delete a request on behalf of its recipient. The sender is not notified."""
		request = await self._require(request_id)
		if actor_id is not None and actor_id != request.to_user_id:
			raise RequestForbiddenError()
		await self._discard(request)
		audit.inc_resolved("rejected")
		await audit.log_connection_event(
			"request_rejected",
			{"request_id": request.id, "from_user_id": request.from_user_id, "to_user_id": request.to_user_id},
		)
		return request.model_copy(update={"status": RequestStatus.REJECTED})

	async def cancel_request(self, request_id: str, *, actor_id: Optional[str] = None) -> Optional[ConnectionRequest]:
		"""Withdraw a request on behalf of its sender; unknown ids are ignored."""
		request = await self.get_request(request_id)
		if request is None:
			return None
		if actor_id is not None and actor_id != request.from_user_id:
			raise RequestForbiddenError()
		await self._discard(request)
		audit.inc_resolved("cancelled")
		await audit.log_connection_event(
			"request_cancelled",
			{"request_id": request.id, "from_user_id": request.from_user_id, "to_user_id": request.to_user_id},
		)
		return request

	async def remove_connection(self, user_a: str, user_b: str) -> None:
		batch = WriteBatch()
		batch.delete(_edge_path(user_a, user_b))
		batch.delete(_edge_path(user_b, user_a))
		batch.delete(policy.pair_path(user_a, user_b))
		await self._store.commit(batch)
		audit.inc_removed()
		await audit.log_connection_event("connection_removed", {"user_a": user_a, "user_b": user_b})
