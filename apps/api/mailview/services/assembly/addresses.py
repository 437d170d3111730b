from __future__ import annotations

import logging
from email.utils import getaddresses

from mailview.services.assembly.errors import AddressParseFailure
from mailview.services.assembly.headers import decode_display_name
from mailview.services.assembly.types import EmailAddress

logger = logging.getLogger("mailview.assembly")


def parse_addresses(header: str | None) -> list[EmailAddress]:
    """Parse a From/To style header; malformed input yields an empty list."""
    if not header or not header.strip():
        return []
    try:
        return _parse_address_list(header)
    except AddressParseFailure as e:
        logger.debug("Address header could not be parsed: %s", e)
        return []


def _parse_address_list(header: str) -> list[EmailAddress]:
    try:
        parsed = getaddresses([header])
    except (IndexError, TypeError, ValueError) as e:
        raise AddressParseFailure(str(e)) from e

    if parsed == [("", "")]:
        raise AddressParseFailure("no address could be extracted")

    out: list[EmailAddress] = []
    for display_name, addr in parsed:
        email = (addr or "").strip()
        if "@" not in email:
            continue
        out.append(EmailAddress(name=decode_display_name(display_name).strip(), email=email))
    return out
