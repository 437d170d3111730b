from __future__ import annotations

from datetime import UTC, datetime
from urllib.parse import quote

import httpx

from mailview.services.assembly.types import RawMessageFetcher, RawMessageRecord

GMAIL_MESSAGES_URL = "https://gmail.googleapis.com/gmail/v1/users/me/messages"


class GmailApiError(RuntimeError):
    def __init__(self, *, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code


async def get_message_raw(
    client: httpx.AsyncClient,
    *,
    access_token: str,
    message_id: str,
) -> RawMessageRecord:
    res = await client.get(
        f"{GMAIL_MESSAGES_URL}/{_path_segment(message_id)}",
        params={"format": "raw"},
        headers={"Authorization": f"Bearer {access_token}"},
    )
    _raise_for_gmail_error(res, default_message="Gmail raw message fetch failed")

    payload = res.json()
    return RawMessageRecord(
        id=payload.get("id") or message_id,
        raw=payload.get("raw") or None,
        thread_id=payload.get("threadId"),
        internal_date=_parse_epoch_millis(payload.get("internalDate")),
        label_ids=[v for v in payload.get("labelIds") or [] if isinstance(v, str)],
    )


def gmail_raw_fetcher(client: httpx.AsyncClient, *, access_token: str) -> RawMessageFetcher:
    async def fetch(message_id: str) -> RawMessageRecord:
        return await get_message_raw(client, access_token=access_token, message_id=message_id)

    return fetch


def _raise_for_gmail_error(res: httpx.Response, *, default_message: str) -> None:
    if res.status_code < 400:
        return

    message = default_message
    try:
        payload = res.json()
        message = payload.get("error", {}).get("message") or default_message
    except Exception:  # noqa: BLE001
        message = default_message

    raise GmailApiError(status_code=res.status_code, message=message)


def _parse_int(v: object) -> int | None:
    if v is None:
        return None
    try:
        return int(v)
    except (TypeError, ValueError):
        return None


def _parse_epoch_millis(v: object) -> datetime | None:
    parsed = _parse_int(v)
    if parsed is None:
        return None
    return datetime.fromtimestamp(parsed / 1000.0, tz=UTC)


def _path_segment(value: str) -> str:
    # Dots are encoded too so "." and ".." cannot be resolved as dot-segments.
    return quote(value, safe="").replace(".", "%2E")
