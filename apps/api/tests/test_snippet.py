from __future__ import annotations

from mailview.services.assembly.snippet import ELLIPSIS, make_snippet


def test_short_clean_text_is_returned_unchanged() -> None:
    s = "Short and clean preview text"
    assert make_snippet(s) == s
    assert make_snippet(make_snippet(s)) == s


def test_quote_markers_signature_and_whitespace() -> None:
    plain = (
        "> quoted line\n"
        "Hello world, this is a test message that is intentionally long enough "
        "to exceed one hundred characters in total length.\n"
        "--\n"
        "Signature block"
    )

    snippet = make_snippet(plain)

    assert snippet == (
        "quoted line Hello world, this is a test message that is intentionally "
        "long enough to exceed one" + ELLIPSIS
    )
    assert "Signature" not in snippet
    assert ">" not in snippet


def test_signature_delimiter_must_be_exact_line() -> None:
    assert make_snippet("Body\n-- \nnot a signature") == "Body -- not a signature"
    assert make_snippet("Body\n--\nsig\n--\nmore") == "Body"


def test_quote_marker_only_stripped_at_line_start() -> None:
    assert make_snippet("x > y\n> z") == "x > y z"


def test_hard_truncates_when_no_space() -> None:
    snippet = make_snippet("a" * 150)
    assert snippet == "a" * 100 + ELLIPSIS


def test_truncation_respects_word_boundaries_and_length() -> None:
    words = " ".join(f"word{i}" for i in range(60))
    for cut in range(95, len(words), 7):
        text = words[:cut].strip()
        snippet = make_snippet(text)
        assert len(snippet) <= 101
        if len(text) > 100:
            assert snippet.endswith(ELLIPSIS)
            body = snippet[: -len(ELLIPSIS)]
            assert text.startswith(body)
            assert text[len(body)] == " "
        else:
            assert snippet == text


def test_empty_input() -> None:
    assert make_snippet("") == ""
    assert make_snippet("   \n\t ") == ""
