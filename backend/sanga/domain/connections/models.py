"""Domain constants for connection requests and relationship edges."""

from __future__ import annotations

from datetime import timedelta
from enum import Enum


class RequestStatus(str, Enum):
	"""Lifecycle states of a connection request document."""

	PENDING = "pending"
	ACCEPTED = "accepted"
	REJECTED = "rejected"


class ConnectionStatus(str, Enum):
	"""Derived relationship between two users."""

	NONE = "none"
	PENDING = "pending"
	CONNECTED = "connected"


class PairState(str, Enum):
	PENDING = "pending"
	CONNECTED = "connected"


REQUESTS_ROOT = "connectionRequests"
USER_REQUESTS_ROOT = "userRequests"
PAIRS_ROOT = "connectionPairs"
CONNECTIONS_ROOT = "connections"

INCOMING = "incoming"
OUTGOING = "outgoing"

# A claim whose request or edges never landed is reusable after this long
STALE_CLAIM_AFTER = timedelta(minutes=1)

REQUEST_TITLE = "New Connection Request"
ACCEPTED_TITLE = "Connection Accepted"
