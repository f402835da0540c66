"""Central registry for Prometheus metrics used across the backend."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

REQUEST_COUNTER = Counter(
	"portal_http_requests_total",
	"Total HTTP requests processed",
	["route", "method", "status"],
)

REQUEST_LATENCY = Histogram(
	"portal_http_request_duration_seconds",
	"HTTP request latency in seconds",
	["route", "method"],
	buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0),
)

MAGIC_LINKS_ISSUED = Counter(
	"portal_magic_links_issued_total",
	"Magic links issued",
	["delivery"],
)

MAGIC_LINK_REDEMPTIONS = Counter(
	"portal_magic_link_redemptions_total",
	"Magic link redemption attempts",
	["result"],
)

MAGIC_LINKS_SWEPT = Counter(
	"portal_magic_links_swept_total",
	"Expired magic links removed by the sweeper",
)

SESSIONS_MINTED = Counter(
	"portal_sessions_minted_total",
	"Session tokens minted",
	["path"],
)

AUTH_REJECTS = Counter(
	"portal_auth_rejects_total",
	"Auth requests rejected",
	["reason"],
)

HYDRATION_LINK_MISSES = Counter(
	"portal_hydration_link_misses_total",
	"Linked records that could not be resolved during hydration",
	["kind"],
)

CHAT_COMPLETIONS = Counter(
	"portal_chat_completions_total",
	"Chat completions requested",
	["result"],
)


def observe_request(route: str, method: str, status: int, elapsed_seconds: float) -> None:
	REQUEST_COUNTER.labels(route=route, method=method, status=str(status)).inc()
	REQUEST_LATENCY.labels(route=route, method=method).observe(elapsed_seconds)


def inc_magic_link_issued(delivery: str) -> None:
	MAGIC_LINKS_ISSUED.labels(delivery=delivery).inc()


def inc_redemption(result: str) -> None:
	MAGIC_LINK_REDEMPTIONS.labels(result=result).inc()


def inc_session_minted(path: str) -> None:
	SESSIONS_MINTED.labels(path=path).inc()


def inc_auth_reject(reason: str) -> None:
	AUTH_REJECTS.labels(reason=reason).inc()


def inc_hydration_miss(kind: str) -> None:
	HYDRATION_LINK_MISSES.labels(kind=kind).inc()


def inc_chat_completion(result: str) -> None:
	CHAT_COMPLETIONS.labels(result=result).inc()
