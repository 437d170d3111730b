from __future__ import annotations

from prometheus_client import Counter, Histogram

_HTTP_REQUESTS_TOTAL = Counter(
    "mailview_http_requests_total",
    "Total HTTP requests handled by the API.",
    labelnames=("method", "path", "status_code"),
)
_HTTP_REQUEST_DURATION_SECONDS = Histogram(
    "mailview_http_request_duration_seconds",
    "HTTP request duration in seconds.",
    labelnames=("method", "path"),
)
_HTTP_RATE_LIMITED_TOTAL = Counter(
    "mailview_http_rate_limited_total",
    "Total HTTP requests blocked by rate limiting.",
    labelnames=("method", "path"),
)
_MESSAGES_ASSEMBLED_TOTAL = Counter(
    "mailview_messages_assembled_total",
    "Message assemblies by outcome.",
    labelnames=("outcome",),
)
_MESSAGE_ASSEMBLY_SECONDS = Histogram(
    "mailview_message_assembly_seconds",
    "Time spent fetching and assembling one message.",
)
_MESSAGE_CACHE_HITS_TOTAL = Counter(
    "mailview_message_cache_hits_total",
    "Assembled message cache hits.",
)
_MESSAGE_CACHE_MISSES_TOTAL = Counter(
    "mailview_message_cache_misses_total",
    "Assembled message cache misses.",
)


def observe_http_request(
    *,
    method: str,
    path: str,
    status_code: int,
    duration_ms: int,
    rate_limited: bool,
) -> None:
    safe_path = path or "unknown"
    safe_method = method or "UNKNOWN"

    _HTTP_REQUESTS_TOTAL.labels(
        method=safe_method,
        path=safe_path,
        status_code=str(status_code),
    ).inc()
    _HTTP_REQUEST_DURATION_SECONDS.labels(method=safe_method, path=safe_path).observe(
        max(0.0, duration_ms / 1000.0)
    )
    if rate_limited:
        _HTTP_RATE_LIMITED_TOTAL.labels(method=safe_method, path=safe_path).inc()


def observe_assembly(*, outcome: str, duration_seconds: float) -> None:
    _MESSAGES_ASSEMBLED_TOTAL.labels(outcome=outcome or "error").inc()
    _MESSAGE_ASSEMBLY_SECONDS.observe(max(0.0, duration_seconds))


def observe_cache_lookup(*, hit: bool) -> None:
    if hit:
        _MESSAGE_CACHE_HITS_TOTAL.inc()
    else:
        _MESSAGE_CACHE_MISSES_TOTAL.inc()
