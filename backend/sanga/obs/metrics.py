"""Central registry for Prometheus metrics used across the backend."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram, Summary

REQUEST_COUNTER = Counter(
	"sanga_http_requests_total",
	"Total HTTP requests processed",
	["route", "method", "status"],
)

REQUEST_LATENCY = Histogram(
	"sanga_http_request_duration_seconds",
	"HTTP request latency in seconds",
	["route", "method"],
	buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0),
)

SOCKET_CLIENTS = Gauge(
	"sanga_socketio_clients",
	"Active Socket.IO clients per namespace",
	["namespace"],
)

SOCKET_EVENTS = Counter(
	"sanga_socketio_events_total",
	"Socket.IO events emitted per namespace",
	["namespace", "event"],
)

CONNECTION_REQUESTS_SENT = Counter(
	"sanga_connection_requests_sent_total",
	"Connection requests written to the ledger",
)

CONNECTION_REQUEST_REJECTS = Counter(
	"sanga_connection_request_send_rejects_total",
	"Connection request submissions refused",
	["reason"],
)

CONNECTION_REQUESTS_RESOLVED = Counter(
	"sanga_connection_requests_resolved_total",
	"Connection requests resolved",
	["outcome"],
)

CONNECTIONS_REMOVED = Counter(
	"sanga_connections_removed_total",
	"Symmetric connections removed",
)

NOTIFICATIONS_CREATED = Counter(
	"sanga_notifications_created_total",
	"User notifications written",
	["type"],
)

NOTIFICATIONS_EXPIRED = Counter(
	"sanga_notifications_expired_total",
	"Expired notifications purged",
	["trigger"],
)

BROADCAST_DELIVERIES = Counter(
	"sanga_broadcast_deliveries_total",
	"Broadcast notification writes",
	["result"],
)

STORE_CONFLICTS = Counter(
	"sanga_store_write_conflicts_total",
	"Optimistic store transactions retried after a WATCH conflict",
	["op"],
)

STORE_UP = Gauge("sanga_store_up", "Document store availability (1=up,0=down)")
STORE_LATENCY = Summary("sanga_store_latency_seconds", "Document store ping latency (seconds)")

BACKGROUND_RUNS = Counter(
	"sanga_background_runs_total",
	"Scheduled job executions",
	["job", "result"],
)


def observe_request(route: str, method: str, status: int, elapsed_seconds: float) -> None:
	REQUEST_COUNTER.labels(route=route, method=method, status=str(status)).inc()
	REQUEST_LATENCY.labels(route=route, method=method).observe(elapsed_seconds)


def socket_connected(namespace: str) -> None:
	SOCKET_CLIENTS.labels(namespace=namespace).inc()


def socket_disconnected(namespace: str) -> None:
	SOCKET_CLIENTS.labels(namespace=namespace).dec()


def socket_event(namespace: str, event: str) -> None:
	SOCKET_EVENTS.labels(namespace=namespace, event=event).inc()


def inc_request_sent() -> None:
	CONNECTION_REQUESTS_SENT.inc()


def inc_request_send_reject(reason: str) -> None:
	CONNECTION_REQUEST_REJECTS.labels(reason=reason).inc()


def inc_request_resolved(outcome: str) -> None:
	CONNECTION_REQUESTS_RESOLVED.labels(outcome=outcome).inc()


def inc_connection_removed() -> None:
	CONNECTIONS_REMOVED.inc()


def inc_notification_created(kind: str) -> None:
	NOTIFICATIONS_CREATED.labels(type=kind).inc()


def inc_notifications_expired(trigger: str, count: int) -> None:
	if count > 0:
		NOTIFICATIONS_EXPIRED.labels(trigger=trigger).inc(count)


def inc_broadcast(result: str, count: int = 1) -> None:
	if count > 0:
		BROADCAST_DELIVERIES.labels(result=result).inc(count)


def inc_store_conflict(op: str) -> None:
	STORE_CONFLICTS.labels(op=op).inc()


def mark_store(ok: bool, *, latency_seconds: float | None = None) -> None:
	STORE_UP.set(1 if ok else 0)
	if latency_seconds is not None:
		STORE_LATENCY.observe(latency_seconds)


def record_background_run(job: str, result: str) -> None:
	BACKGROUND_RUNS.labels(job=job, result=result).inc()
