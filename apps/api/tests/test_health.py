from __future__ import annotations

from fastapi.testclient import TestClient

from mailview.core.middleware import RateLimiter
from mailview.main import create_app


def test_healthz_ok() -> None:
    app = create_app()
    client = TestClient(app)
    res = client.get("/healthz")
    assert res.status_code == 200
    assert res.json() == {"status": "ok"}
    assert res.headers.get("x-content-type-options") == "nosniff"
    assert res.headers.get("x-request-id")


def test_request_id_is_echoed() -> None:
    client = TestClient(create_app())
    res = client.get("/healthz", headers={"x-request-id": "req-123"})
    assert res.headers.get("x-request-id") == "req-123"


def test_rate_limit_blocks_excess_requests(monkeypatch) -> None:
    from mailview.core.config import get_settings

    monkeypatch.setenv("RATE_LIMIT_REQUESTS_PER_MINUTE", "2")
    get_settings.cache_clear()

    client = TestClient(create_app())
    assert client.get("/healthz").status_code == 200
    assert client.get("/healthz").status_code == 200
    res = client.get("/healthz")
    assert res.status_code == 429
    assert res.json() == {"detail": "Rate limit exceeded"}
    assert 1 <= int(res.headers["retry-after"]) <= 60


def test_rate_limiter_window_slides() -> None:
    limiter = RateLimiter(max_requests=2, window_seconds=60)
    assert limiter.allow("10.0.0.1", now_ts=0.0)
    assert limiter.allow("10.0.0.1", now_ts=10.0)
    assert not limiter.allow("10.0.0.1", now_ts=20.0)
    assert limiter.retry_after("10.0.0.1", now_ts=20.0) == 40
    assert limiter.allow("10.0.0.1", now_ts=60.5)
    assert limiter.retry_after("10.0.0.2", now_ts=60.5) == 0


def test_rate_limiter_forgets_least_recent_clients() -> None:
    limiter = RateLimiter(max_requests=1, max_clients=3)
    for i in range(10):
        limiter.allow(f"10.0.0.{i}", now_ts=float(i))
    assert limiter.tracked_clients() == 3

    # A client still inside its window stays tracked when it keeps calling.
    assert not limiter.allow("10.0.0.9", now_ts=9.5)
    assert limiter.allow("10.0.0.42", now_ts=9.6)
    assert not limiter.allow("10.0.0.9", now_ts=9.7)
    assert limiter.tracked_clients() == 3
