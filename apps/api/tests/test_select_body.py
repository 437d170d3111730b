from __future__ import annotations

from mailview.services.assembly.select_body import select_best_part
from mailview.services.assembly.types import MimeNode


def _leaf(mime_type: str, content: str | None = None) -> MimeNode:
    return MimeNode(mime_type=mime_type, headers={}, content=content)


def test_picks_html_when_available() -> None:
    plain = _leaf("text/plain", "p1")
    html = _leaf("text/html", "<p>h</p>")
    tree = MimeNode(mime_type="multipart/mixed", parts=(plain, html))

    assert select_best_part(tree) is html


def test_picks_first_plain_when_no_html() -> None:
    first = _leaf("text/plain", "plain1")
    second = _leaf("text/plain", "plain2")
    tree = MimeNode(mime_type="multipart/alternative", parts=(first, second))

    assert select_best_part(tree) is first


def test_html_nested_deeper_than_plain_still_wins() -> None:
    plain = _leaf("text/plain", "shallow")
    html = _leaf("text/html", "<p>deep</p>")
    tree = MimeNode(
        mime_type="multipart/mixed",
        parts=(
            plain,
            MimeNode(
                mime_type="multipart/related",
                parts=(MimeNode(mime_type="multipart/alternative", parts=(html,)),),
            ),
        ),
    )

    assert select_best_part(tree) is html


def test_finds_plain_nested_two_levels_deep() -> None:
    plain = _leaf("text/plain", "plain")
    tree = MimeNode(
        mime_type="multipart/mixed",
        parts=(
            _leaf("application/pdf"),
            MimeNode(
                mime_type="multipart/alternative",
                parts=(MimeNode(mime_type="multipart/related", parts=(plain,)),),
            ),
        ),
    )

    best = select_best_part(tree)
    assert best is plain


def test_breadth_first_order_among_html_candidates() -> None:
    deep_html = _leaf("text/html", "<p>deep</p>")
    shallow_html = _leaf("text/html", "<p>shallow</p>")
    tree = MimeNode(
        mime_type="multipart/mixed",
        parts=(
            MimeNode(mime_type="multipart/alternative", parts=(deep_html,)),
            shallow_html,
        ),
    )

    assert select_best_part(tree) is shallow_html


def test_mime_type_comparison_is_case_insensitive() -> None:
    html = _leaf("Text/HTML", "<p>x</p>")
    tree = MimeNode(mime_type="multipart/alternative", parts=(_leaf("TEXT/PLAIN", "x"), html))

    assert select_best_part(tree) is html


def test_returns_none_without_text_parts() -> None:
    assert select_best_part(MimeNode(mime_type="application/octet-stream")) is None

    tree = MimeNode(
        mime_type="multipart/mixed",
        parts=(_leaf("image/png"), _leaf("application/zip")),
    )
    assert select_best_part(tree) is None
