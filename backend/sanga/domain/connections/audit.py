"""Audit helpers for connection requests & relationships."""

from __future__ import annotations

from typing import Dict

from sanga.infra.redis import redis_client
from sanga.obs import metrics as obs_metrics

STREAM = "x:connections.events"


async def log_connection_event(event: str, fields: Dict[str, str]) -> None:
	payload = {"event": event, **{key: str(value) for key, value in fields.items() if value is not None}}
	await redis_client.xadd_capped(STREAM, payload)


def inc_request_sent() -> None:
	obs_metrics.inc_request_sent()


def inc_send_reject(reason: str) -> None:
	obs_metrics.inc_request_send_reject(reason)


def inc_resolved(outcome: str) -> None:
	obs_metrics.inc_request_resolved(outcome)


def inc_removed() -> None:
	obs_metrics.inc_connection_removed()
