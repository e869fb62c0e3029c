"""Guard checks for connection requests."""

from __future__ import annotations

from datetime import datetime

from sanga.domain.connections.exceptions import RequestRateLimitExceeded, SelfConnectionError
from sanga.domain.connections.models import PAIRS_ROOT
from sanga.infra import rate_limit
from sanga.infra.store import join, key
from sanga.settings import settings


def guard_user_ids(*user_ids: str) -> None:
	"""Reject ids that cannot be used as a single store path segment."""
	for user_id in user_ids:
		key(user_id)


def guard_not_self(user_id: str, target_id: str) -> None:
	if str(user_id) == str(target_id):
		raise SelfConnectionError()


def pair_key(user_a: str, user_b: str) -> str:
	"""Order-independent key for an unordered pair of users."""
	low, high = sorted((str(user_a), str(user_b)))
	return f"{low}:{high}"


def pair_path(user_a: str, user_b: str) -> str:
	return join(PAIRS_ROOT, pair_key(user_a, user_b))


async def enforce_request_limits(user_id: str, *, now: datetime) -> None:
	ts = now.timestamp()
	if not await rate_limit.allow(
		"connreq:send", user_id, limit=settings.connection_requests_per_minute, window_seconds=60, now=ts
	):
		raise RequestRateLimitExceeded("per_minute")
	if not await rate_limit.allow(
		"connreq:daily", user_id, limit=settings.connection_requests_per_day, window_seconds=86_400, now=ts
	):
		raise RequestRateLimitExceeded("per_day")
