from __future__ import annotations

import logging
import time

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mailview.core.config import get_settings
from mailview.core.middleware import (
    RateLimiter,
    apply_security_headers,
    build_request_id,
    client_key,
    rate_limited_response,
    record_request,
    request_id_ctx,
)
from mailview.routers.health import metrics_endpoint
from mailview.routers.health import router as health_router
from mailview.routers.messages import router as messages_router
from mailview.services.messages.cache import MessageCache
from mailview.services.messages.service import MessageService


def create_app() -> FastAPI:
    app = FastAPI(title="Mailview API")

    settings = get_settings()
    logging.getLogger("mailview").setLevel(settings.LOG_LEVEL)

    app.state.message_service = MessageService(
        cache=(
            MessageCache(max_entries=settings.MESSAGE_CACHE_MAX_ENTRIES)
            if settings.MESSAGE_CACHE_ENABLED
            else None
        ),
        concurrency=settings.ASSEMBLY_CONCURRENCY,
        image_proxy_base=settings.IMAGE_PROXY_BASE,
    )

    rate_limiter = (
        RateLimiter(max_requests=settings.RATE_LIMIT_REQUESTS_PER_MINUTE)
        if settings.RATE_LIMIT_REQUESTS_PER_MINUTE > 0
        else None
    )
    origins = [o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def add_security_headers_and_request_context(request, call_next):  # type: ignore[no-untyped-def]
        request_id = build_request_id(request, header_name=settings.REQUEST_ID_HEADER)
        token = request_id_ctx.set(request_id)
        started = time.perf_counter()
        blocked = False
        status_code = 500

        try:
            if rate_limiter is not None:
                key = client_key(request)
                now = time.monotonic()
                if not rate_limiter.allow(key, now_ts=now):
                    blocked = True
                    response = rate_limited_response(
                        retry_after=rate_limiter.retry_after(key, now_ts=now)
                    )
            if not blocked:
                response = await call_next(request)

            status_code = response.status_code
            response.headers[settings.REQUEST_ID_HEADER] = request_id
            apply_security_headers(response, settings=settings)
            return response
        finally:
            record_request(
                request,
                request_id=request_id,
                status_code=status_code,
                duration_ms=int((time.perf_counter() - started) * 1000),
                rate_limited=blocked,
            )
            request_id_ctx.reset(token)

    app.include_router(health_router)
    app.include_router(messages_router)
    if settings.ENABLE_PROMETHEUS_METRICS:
        app.add_api_route(
            settings.PROMETHEUS_METRICS_PATH,
            metrics_endpoint,
            methods=["GET"],
            include_in_schema=False,
        )
    return app


app = create_app()
