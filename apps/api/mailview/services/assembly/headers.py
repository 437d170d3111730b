from __future__ import annotations

import logging
import re
from email.errors import HeaderParseError
from email.header import decode_header, make_header

logger = logging.getLogger("mailview.assembly")

_FOLD_RE = re.compile(r"\r?\n[ \t]*")


def _decode_encoded_words(value: str) -> str:
    if "=?" not in value:
        return value
    try:
        return str(make_header(decode_header(value)))
    except (HeaderParseError, LookupError, UnicodeError, ValueError) as e:
        # Unknown charsets and broken encodings leave the header as received.
        logger.debug("Encoded-word decoding failed, keeping raw header: %s", e)
        return value


def decode_subject(raw: str) -> str:
    """Decode RFC-2047 encoded words and unfold line breaks into single spaces."""
    return _FOLD_RE.sub(" ", _decode_encoded_words(raw or ""))


def decode_display_name(value: str) -> str:
    return _decode_encoded_words(value or "")
