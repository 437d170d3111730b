from __future__ import annotations

from mailview.services.assembly.addresses import parse_addresses
from mailview.services.assembly.headers import decode_display_name, decode_subject
from mailview.services.assembly.mime_tree import build_mime_tree
from mailview.services.assembly.types import EmailAddress


def test_decode_subject_base64_word() -> None:
    assert decode_subject("=?UTF-8?B?SGVsbG8=?=") == "Hello"


def test_decode_subject_quoted_printable_word() -> None:
    assert decode_subject("=?iso-8859-1?Q?Caf=E9_au_lait?=") == "Café au lait"


def test_decode_subject_mixed_plain_and_encoded() -> None:
    assert decode_subject("Re: =?utf-8?q?W=C3=B6rld?=") == "Re: Wörld"


def test_decode_subject_joins_adjacent_folded_words() -> None:
    assert decode_subject("=?UTF-8?B?SGVs?=\r\n =?UTF-8?B?bG8=?=") == "Hello"


def test_decode_subject_without_encoded_words_only_unfolds() -> None:
    assert decode_subject("Quarterly report") == "Quarterly report"
    assert decode_subject("Line one\nline two") == "Line one line two"
    assert decode_subject("Line one\r\nline two") == "Line one line two"


def test_decode_subject_unfolds_folded_header_from_message() -> None:
    root = build_mime_tree(b"Subject: Hello\r\n World\r\n\tagain\r\n\r\nbody\r\n")
    assert root.header("Subject") == "Hello\r\n World\r\n\tagain"
    assert decode_subject(root.header("Subject")) == "Hello World again"


def test_decode_subject_unknown_charset_keeps_raw_value() -> None:
    raw = "=?x-no-such-charset?B?SGVsbG8=?="
    assert decode_subject(raw) == raw


def test_decode_display_name() -> None:
    assert decode_display_name("=?utf-8?q?J=C3=B6rg?=") == "Jörg"
    assert decode_display_name("Plain Name") == "Plain Name"


def test_parse_addresses_list_with_and_without_names() -> None:
    assert parse_addresses("Jane Doe <jane@x.com>, <bob@y.com>") == [
        EmailAddress(name="Jane Doe", email="jane@x.com"),
        EmailAddress(name="", email="bob@y.com"),
    ]


def test_parse_addresses_quoted_name_with_comma() -> None:
    assert parse_addresses('"Doe, Jane" <jane@x.com>') == [
        EmailAddress(name="Doe, Jane", email="jane@x.com")
    ]


def test_parse_addresses_decodes_encoded_display_name() -> None:
    assert parse_addresses("=?utf-8?q?J=C3=B6rg?= <jorg@x.com>") == [
        EmailAddress(name="Jörg", email="jorg@x.com")
    ]


def test_parse_addresses_bare_address() -> None:
    assert parse_addresses("bob@y.com") == [EmailAddress(name="", email="bob@y.com")]


def test_parse_addresses_degrades_to_empty_list() -> None:
    assert parse_addresses("") == []
    assert parse_addresses(None) == []
    assert parse_addresses("not an address") == []
