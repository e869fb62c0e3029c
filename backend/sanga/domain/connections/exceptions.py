"""Domain-level exceptions for connection requests & relationships."""

from __future__ import annotations

from sanga.infra.rate_limit import RateLimitExceeded


class ConnectionsError(Exception):
	"""Base class for connection workflow errors."""

	reason: str = "unknown"

	def __init__(self, reason: str | None = None) -> None:
		super().__init__(reason or self.reason)
		if reason:
			self.reason = reason


class DuplicateRelationshipError(ConnectionsError):
	"""Connection request already exists or users are connected."""

	reason = "already_exists"


class SelfConnectionError(DuplicateRelationshipError):
	reason = "self_request"


class RequestNotFoundError(ConnectionsError):
	reason = "request_not_found"


class RequestForbiddenError(ConnectionsError):
	reason = "forbidden"


class RequestRateLimitExceeded(RateLimitExceeded):
	"""Raised when request sending hits a quota."""

	def __init__(self, reason: str) -> None:
		super().__init__(reason)
		self.reason = reason
