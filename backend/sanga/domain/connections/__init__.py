"""Connections domain exports."""

from . import audit, ledger, policy, presence, service, sockets, status  # noqa: F401
from .models import ConnectionStatus, RequestStatus  # noqa: F401
from .schemas import Connection, ConnectionRequest, SendRequestPayload  # noqa: F401
