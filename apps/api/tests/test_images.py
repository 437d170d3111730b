from __future__ import annotations

from mailview.services.assembly.images import proxify, rewrite_images


def test_proxify_encodes_url_and_adds_cache_token() -> None:
    assert (
        proxify("https://a.test/x.png?y=1", base="https://p.test/proxy", now_ms=123)
        == "https://p.test/proxy?url=https%3A%2F%2Fa.test%2Fx.png%3Fy%3D1&_=123"
    )


def test_tracking_pixels_removed() -> None:
    html = (
        '<p>x</p><img src="https://t.test/o.gif" width="1" height="1">'
        '<img src="https://t.test/tracker/open.png" width="200" height="80">'
        '<img src="https://t.test/pixel.png">'
    )
    assert rewrite_images(html, proxy_base="https://p.test/proxy", now_ms=1) == "<p>x</p>"


def test_remote_images_proxied_data_images_untouched() -> None:
    html = (
        '<img alt="logo" src="https://cdn.test/logo.png" width="120" height="40">'
        '<img src="data:image/png;base64,iVBORw0KGgo=">'
    )
    out = rewrite_images(html, proxy_base="https://p.test/proxy", now_ms=7)

    assert 'src="https://p.test/proxy?url=https%3A%2F%2Fcdn.test%2Flogo.png&amp;_=7"' in out
    assert 'src="data:image/png;base64,iVBORw0KGgo="' in out


def test_html_without_images_is_returned_as_is() -> None:
    html = "<p>No pictures   here</p>"
    assert rewrite_images(html, proxy_base="https://p.test/proxy") is html
