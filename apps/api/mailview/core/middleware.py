from __future__ import annotations

import base64
import json
import logging
import math
import os
import threading
from collections import OrderedDict, deque
from contextvars import ContextVar
from dataclasses import dataclass, field

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.responses import Response

from mailview.core.config import Settings
from mailview.core.metrics import observe_http_request

request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)
logger = logging.getLogger("mailview.api")

_STATIC_SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
    # Assembled messages are private mail; keep them out of shared caches.
    "Cache-Control": "no-store",
}


@dataclass
class RateLimiter:
    """Sliding-window request limiter keyed by client address.

    At most ``max_clients`` keys are tracked; the least recently seen client
    is forgotten first when a new one arrives.
    """

    max_requests: int
    window_seconds: int = 60
    max_clients: int = 10_000
    _lock: threading.Lock = field(default_factory=threading.Lock)
    _buckets: OrderedDict[str, deque[float]] = field(default_factory=OrderedDict)

    def allow(self, key: str, *, now_ts: float) -> bool:
        with self._lock:
            bucket = self._bucket_for(key)
            self._expire(bucket, now_ts=now_ts)
            if len(bucket) >= self.max_requests:
                return False
            bucket.append(now_ts)
            return True

    def retry_after(self, key: str, *, now_ts: float) -> int:
        """Seconds until ``key`` may send another request (0 when it already may)."""
        with self._lock:
            bucket = self._buckets.get(key)
            if bucket is None:
                return 0
            self._expire(bucket, now_ts=now_ts)
            if len(bucket) < self.max_requests:
                return 0
            return max(1, math.ceil(bucket[0] + self.window_seconds - now_ts))

    def tracked_clients(self) -> int:
        with self._lock:
            return len(self._buckets)

    def _bucket_for(self, key: str) -> deque[float]:
        bucket = self._buckets.get(key)
        if bucket is not None:
            self._buckets.move_to_end(key)
            return bucket
        while len(self._buckets) >= self.max_clients:
            self._buckets.popitem(last=False)
        bucket = deque()
        self._buckets[key] = bucket
        return bucket

    def _expire(self, bucket: deque[float], *, now_ts: float) -> None:
        cutoff = now_ts - float(self.window_seconds)
        while bucket and bucket[0] <= cutoff:
            bucket.popleft()


def new_random_token(*, nbytes: int = 32) -> str:
    raw = os.urandom(nbytes)
    # URL-safe base64 without padding to keep headers compact.
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def build_request_id(request: Request, *, header_name: str) -> str:
    incoming = (request.headers.get(header_name) or "").strip()
    if incoming:
        return incoming[:128]
    return new_random_token(nbytes=18)


def route_path(request: Request) -> str:
    # Route templates keep metric label cardinality independent of message ids.
    route = request.scope.get("route")
    template = getattr(route, "path", None)
    return template or request.url.path


def client_key(request: Request) -> str:
    forwarded_for = (request.headers.get("x-forwarded-for") or "").split(",", 1)[0].strip()
    if forwarded_for:
        return forwarded_for
    return request.client.host if request.client else "unknown"


def apply_security_headers(response: Response, *, settings: Settings) -> None:
    for name, value in _STATIC_SECURITY_HEADERS.items():
        response.headers.setdefault(name, value)
    response.headers.setdefault("Content-Security-Policy", settings.CONTENT_SECURITY_POLICY)


def rate_limited_response(*, retry_after: int) -> JSONResponse:
    return JSONResponse(
        status_code=429,
        content={"detail": "Rate limit exceeded"},
        headers={"Retry-After": str(retry_after)},
    )


def record_request(
    request: Request,
    *,
    request_id: str,
    status_code: int,
    duration_ms: int,
    rate_limited: bool,
) -> None:
    """Emit the request log line and the HTTP metrics for one finished request."""
    method = request.method
    path = route_path(request)
    logger.info(
        json.dumps(
            {
                "event": "http.request.completed",
                "request_id": request_id,
                "method": method,
                "path": path,
                "status_code": status_code,
                "duration_ms": duration_ms,
                "rate_limited": rate_limited,
            },
            separators=(",", ":"),
            sort_keys=True,
        )
    )
    observe_http_request(
        method=method,
        path=path,
        status_code=status_code,
        duration_ms=duration_ms,
        rate_limited=rate_limited,
    )
