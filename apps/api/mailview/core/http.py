from __future__ import annotations

from collections.abc import AsyncGenerator

import httpx

from mailview.core.config import get_settings


async def get_http_client() -> AsyncGenerator[httpx.AsyncClient, None]:
    # Centralize HTTP client configuration (timeouts, etc) so we can override in tests.
    async with httpx.AsyncClient(timeout=get_settings().HTTP_TIMEOUT_SECONDS) as client:
        yield client
