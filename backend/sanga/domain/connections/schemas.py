"""Pydantic schemas for connection requests and edges."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from sanga.domain.connections.models import ConnectionStatus, PairState, RequestStatus
from sanga.infra.store import KEY_PATTERN


class ConnectionRequest(BaseModel):
	id: str
	from_user_id: str
	from_user_name: str
	from_user_photo: Optional[str] = None
	to_user_id: str
	to_user_name: str
	status: RequestStatus = RequestStatus.PENDING
	message: Optional[str] = None
	timestamp: datetime


class Connection(BaseModel):
	user_id: str = Field(..., description="Peer on the other end of the edge")
	user_name: str
	connected_at: datetime


class PairClaim(BaseModel):
	request_id: str
	from_user_id: str
	to_user_id: str
	state: PairState
	updated_at: datetime


class SendRequestPayload(BaseModel):
	to_user_id: str = Field(..., min_length=1, max_length=128, pattern=KEY_PATTERN, description="Target user for the request")
	to_user_name: str = Field(..., min_length=1, max_length=120)
	message: Optional[str] = Field(default=None, max_length=500, description="Optional note shown to the recipient")


class StatusResponse(BaseModel):
	user_id: str
	status: ConnectionStatus
