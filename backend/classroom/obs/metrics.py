"""Central registry for Prometheus metrics used across the backend."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

REQUEST_COUNTER = Counter(
	"classroom_http_requests_total",
	"Total HTTP requests processed",
	["route", "method", "status"],
)

REQUEST_LATENCY = Histogram(
	"classroom_http_request_duration_seconds",
	"HTTP request latency in seconds",
	["route", "method"],
	buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0),
)

SOCKET_CLIENTS = Gauge(
	"classroom_socketio_clients",
	"Active Socket.IO clients per namespace",
	["namespace"],
)

SOCKET_EVENTS = Counter(
	"classroom_socketio_events_total",
	"Socket.IO events handled or emitted per namespace",
	["namespace", "event"],
)

MEMBERSHIP_OPERATIONS = Counter(
	"classroom_membership_operations_total",
	"Membership service operations by outcome",
	["operation", "outcome"],
)

CHANNEL_DISPATCHES = Counter(
	"classroom_channel_dispatch_total",
	"Post-commit channel commands by action and outcome",
	["action", "outcome"],
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


def membership_operation(operation: str, outcome: str) -> None:
	MEMBERSHIP_OPERATIONS.labels(operation=operation, outcome=outcome).inc()


def channel_dispatch(action: str, outcome: str) -> None:
	CHANNEL_DISPATCHES.labels(action=action, outcome=outcome).inc()
