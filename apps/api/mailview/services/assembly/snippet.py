from __future__ import annotations

import re

SNIPPET_MAX_CHARS = 100
ELLIPSIS = "…"

_QUOTE_PREFIX_RE = re.compile(r"^> ", re.MULTILINE)
_SIGNATURE_DELIMITER_RE = re.compile(r"^--$", re.MULTILINE)
_WHITESPACE_RE = re.compile(r"\s+")


def make_snippet(plain: str) -> str:
    """Build a one-line preview: no quote markers, no signature, at most 100 chars + ellipsis."""
    text = _QUOTE_PREFIX_RE.sub("", plain or "")
    text = _SIGNATURE_DELIMITER_RE.split(text, maxsplit=1)[0]
    text = _WHITESPACE_RE.sub(" ", text).strip()
    if len(text) <= SNIPPET_MAX_CHARS:
        return text
    cut = text.rfind(" ", 0, SNIPPET_MAX_CHARS + 1)
    return text[: cut if cut > 0 else SNIPPET_MAX_CHARS] + ELLIPSIS
