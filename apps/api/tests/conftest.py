from __future__ import annotations

import base64
from collections.abc import Generator

import pytest


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch) -> Generator[None, None, None]:
    # Tests must not pick up a developer's `.env` values.
    monkeypatch.setenv("APP_ENV", "test")
    monkeypatch.setenv("GMAIL_ACCESS_TOKEN", "")
    monkeypatch.setenv("IMAGE_PROXY_BASE", "")
    monkeypatch.setenv("RATE_LIMIT_REQUESTS_PER_MINUTE", "0")

    from mailview.core.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def encode_raw(message: str | bytes) -> str:
    data = message.encode("utf-8") if isinstance(message, str) else message
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


@pytest.fixture()
def raw_encoder():
    return encode_raw


ALTERNATIVE_MESSAGE = (
    "From: =?utf-8?q?J=C3=B6rg_M=C3=BCller?= <jorg@example.com>\r\n"
    "To: Support Team <support@example.com>, <ops@example.com>\r\n"
    "Subject: =?UTF-8?B?SGVsbG8=?= team\r\n"
    "Date: Tue, 01 Oct 2024 10:30:00 +0200\r\n"
    "Message-ID: <abc123@example.com>\r\n"
    "MIME-Version: 1.0\r\n"
    'Content-Type: multipart/alternative; boundary="b1"\r\n'
    "\r\n"
    "--b1\r\n"
    'Content-Type: text/plain; charset="utf-8"\r\n'
    "\r\n"
    "Hello team\r\n"
    "--b1\r\n"
    'Content-Type: text/html; charset="utf-8"\r\n'
    "\r\n"
    '<p onclick="steal()">Hello <b>team</b></p><script>alert(1)</script>\r\n'
    "--b1--\r\n"
)


@pytest.fixture()
def alternative_message() -> str:
    return ALTERNATIVE_MESSAGE
