from __future__ import annotations

import json
import logging
import time
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime
from html import escape

from mailview.services.assembly.addresses import parse_addresses
from mailview.services.assembly.decode import decode_base64url, decode_content
from mailview.services.assembly.errors import MissingRawPayload
from mailview.services.assembly.headers import decode_subject
from mailview.services.assembly.images import rewrite_images
from mailview.services.assembly.mime_tree import build_mime_tree
from mailview.services.assembly.plain import html_to_plain
from mailview.services.assembly.sanitize import sanitize_html
from mailview.services.assembly.select_body import select_best_part
from mailview.services.assembly.snippet import make_snippet
from mailview.services.assembly.types import AssembledMessage, RawMessageFetcher

logger = logging.getLogger("mailview.assembly")

DEFAULT_SUBJECT = "No subject"


def format_iso_timestamp(dt: datetime) -> str:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _parse_date_header(value: str) -> datetime | None:
    if not value.strip():
        return None
    try:
        return parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError, OverflowError):
        return None


def _resolve_date(date_raw: str, *, fallback: datetime | None, message_id: str) -> str:
    parsed = _parse_date_header(date_raw)
    if parsed is not None:
        return format_iso_timestamp(parsed)
    if date_raw.strip():
        logger.warning("Unparseable Date header on message %s: %r", message_id, date_raw[:128])
    if fallback is not None:
        return format_iso_timestamp(fallback)
    return ""


async def assemble(
    message_id: str,
    *,
    fetch_raw: RawMessageFetcher,
    image_proxy_base: str | None = None,
) -> AssembledMessage:
    """Fetch one raw message and turn it into a display-ready record.

    Fetch and parse failures propagate unchanged; there is no partial result.
    Header and address problems degrade to empty values instead.
    """
    started = time.perf_counter()

    record = await fetch_raw(message_id)
    if not record.raw:
        raise MissingRawPayload(message_id)

    root = build_mime_tree(decode_base64url(record.raw))

    subject_raw = root.header("Subject") or DEFAULT_SUBJECT
    from_raw = root.header("From") or ""
    to_raw = root.header("To") or ""
    date_raw = root.header("Date") or ""

    subject = decode_subject(subject_raw)
    from_ = parse_addresses(from_raw)
    to = parse_addresses(to_raw)
    date = _resolve_date(date_raw, fallback=record.internal_date, message_id=message_id)

    part = select_best_part(root)
    raw_content = decode_content(part) if part is not None else ""
    is_html = part is not None and part.mime_type.lower() == "text/html"

    if is_html:
        html = sanitize_html(raw_content)
    else:
        html = sanitize_html(f"<pre>{escape(raw_content, quote=False)}</pre>")
    if image_proxy_base:
        html = rewrite_images(html, proxy_base=image_proxy_base)

    plain = html_to_plain(html)
    snippet = make_snippet(plain)

    logger.info(
        json.dumps(
            {
                "event": "message.assembled",
                "message_id": message_id,
                "body_type": part.mime_type if part is not None else None,
                "duration_ms": int((time.perf_counter() - started) * 1000),
            },
            separators=(",", ":"),
            sort_keys=True,
        )
    )

    return AssembledMessage(
        id=message_id,
        subject=subject,
        from_=from_,
        to=to,
        date=date,
        html=html,
        plain=plain,
        snippet=snippet,
    )
