from __future__ import annotations

import base64
import binascii

from mailview.services.assembly.errors import MalformedMessage
from mailview.services.assembly.types import MimeNode


def decode_base64url(raw: str) -> bytes:
    """Decode a base64url payload ('-'/'_' alphabet, padding optional)."""
    data = "".join(raw.split())
    # b64decode maps the altchars onto "+"/"/" and would accept those too.
    if "+" in data or "/" in data:
        raise MalformedMessage("raw payload is not valid base64url")
    data += "=" * (-len(data) % 4)
    try:
        return base64.b64decode(data.encode("ascii"), altchars=b"-_", validate=True)
    except (binascii.Error, UnicodeEncodeError, ValueError) as e:
        raise MalformedMessage("raw payload is not valid base64url") from e


def decode_content(part: MimeNode) -> str:
    # Content is already transfer-decoded when the tree is built.
    if part.content is None:
        return ""
    return part.content
