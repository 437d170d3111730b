from __future__ import annotations

from collections.abc import Iterator
from email import policy
from email.errors import MessageError
from email.message import Message
from email.parser import BytesParser

from mailview.services.assembly.errors import MalformedMessage
from mailview.services.assembly.types import MimeNode

DEFAULT_ROOT_MIME_TYPE = "multipart/alternative"


def build_mime_tree(raw: bytes | str) -> MimeNode:
    """Parse an RFC-5322 message into a root node holding its text alternatives.

    The root carries every top-level header (repeated headers joined with
    ``"; "``) and at most two leaf children: the HTML alternative first, then
    the plain-text one. Attachments and embedded messages are not part of the
    tree.
    """
    raw_bytes = raw.encode("utf-8") if isinstance(raw, str) else raw
    if not raw_bytes or not raw_bytes.strip():
        raise MalformedMessage("raw message is empty")

    try:
        msg = BytesParser(policy=policy.default).parsebytes(raw_bytes)
    except (MessageError, TypeError, ValueError) as e:
        raise MalformedMessage(f"raw message could not be parsed: {e}") from e
    if not msg.keys():
        raise MalformedMessage("raw message has no header block")

    headers = _collect_headers(msg)
    html, text = _collect_text_alternatives(msg)

    parts: list[MimeNode] = []
    if html:
        parts.append(MimeNode(mime_type="text/html", headers={}, content=html))
    if text:
        parts.append(MimeNode(mime_type="text/plain", headers={}, content=text))

    return MimeNode(
        mime_type=_root_mime_type(msg, has_parts=bool(parts)),
        headers=headers,
        parts=tuple(parts),
    )


def _root_mime_type(msg: Message, *, has_parts: bool) -> str:
    if msg.get("Content-Type") is None:
        return DEFAULT_ROOT_MIME_TYPE
    declared = (msg.get_content_type() or "").lower()
    if has_parts and not declared.startswith("multipart/"):
        return DEFAULT_ROOT_MIME_TYPE
    return declared or DEFAULT_ROOT_MIME_TYPE


def _collect_headers(msg: Message) -> dict[str, str]:
    # Keyed by first-seen spelling; later occurrences match case-insensitively.
    values: dict[str, list[str]] = {}
    canonical: dict[str, str] = {}
    for name, value in msg.raw_items():
        key = canonical.setdefault(name.lower(), name)
        values.setdefault(key, []).append(_clean_header_value(str(value)))
    return {key: "; ".join(vals) for key, vals in values.items()}


def _clean_header_value(value: str) -> str:
    try:
        value.encode("utf-8")
    except UnicodeEncodeError:
        # 8-bit header bytes come back surrogate-escaped from the bytes parser.
        return value.encode("utf-8", "surrogateescape").decode("utf-8", errors="replace")
    return value


def _is_attachment(part: Message) -> bool:
    disp = (part.get_content_disposition() or "").lower()
    return bool(disp in {"attachment", "inline"} and part.get_filename())


def _iter_leaf_parts(part: Message) -> Iterator[Message]:
    if part.get_content_maintype() == "message":
        return
    if part.is_multipart():
        for sub in part.iter_parts():
            yield from _iter_leaf_parts(sub)
        return
    yield part


def _decode_part_text(part: Message) -> str:
    payload_bytes = part.get_payload(decode=True) or b""
    charset = part.get_content_charset() or "utf-8"
    try:
        return payload_bytes.decode(charset, errors="replace")
    except LookupError:
        return payload_bytes.decode("utf-8", errors="replace")


def _collect_text_alternatives(msg: Message) -> tuple[str | None, str | None]:
    text_parts: list[str] = []
    html_parts: list[str] = []

    for part in _iter_leaf_parts(msg):
        if _is_attachment(part):
            continue

        content_type = (part.get_content_type() or "").lower()
        if content_type not in {"text/plain", "text/html"}:
            continue

        payload_text = _decode_part_text(part)
        if not payload_text.strip():
            continue
        if content_type == "text/html":
            html_parts.append(payload_text)
        else:
            text_parts.append(payload_text)

    body_text = "\n\n".join([p.strip() for p in text_parts]) or None
    body_html = "\n\n".join([p.strip() for p in html_parts]) or None
    return body_html, body_text
