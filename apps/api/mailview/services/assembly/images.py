from __future__ import annotations

import time
from urllib.parse import quote

from bs4 import BeautifulSoup

_TRACKER_MARKERS = ("tracker", "pixel")
_TRACKING_PIXEL_MAX_SIZE = 3


def proxify(src_url: str, *, base: str, now_ms: int | None = None) -> str:
    token = now_ms if now_ms is not None else int(time.time() * 1000)
    return f"{base}?url={quote(src_url, safe='')}&_={token}"


def _dimension(value: object, default: int = 100) -> int:
    try:
        return int(str(value).strip().rstrip("px"))
    except (TypeError, ValueError):
        return default


def _is_tracking_pixel(src: str, width: object, height: object) -> bool:
    lowered = src.lower()
    if any(marker in lowered for marker in _TRACKER_MARKERS):
        return True
    return (
        _dimension(width) <= _TRACKING_PIXEL_MAX_SIZE
        and _dimension(height) <= _TRACKING_PIXEL_MAX_SIZE
    )


def rewrite_images(html: str, *, proxy_base: str, now_ms: int | None = None) -> str:
    """Drop tracking pixels and route remote images through the image proxy.

    Expects sanitized HTML; ``data:`` images are kept as they are.
    """
    if not html or "<img" not in html.lower():
        return html

    soup = BeautifulSoup(html, "html.parser")
    for img in soup.find_all("img"):
        src = (img.get("src") or "").strip()
        if _is_tracking_pixel(src, img.get("width"), img.get("height")):
            img.decompose()
            continue
        if src.lower().startswith(("http://", "https://")):
            img["src"] = proxify(src, base=proxy_base, now_ms=now_ms)
    return str(soup)
