from __future__ import annotations

import re

from bs4 import BeautifulSoup
from bs4.element import (
    Comment,
    Declaration,
    Doctype,
    NavigableString,
    ProcessingInstruction,
    Tag,
)

_SKIP_TAGS = frozenset({"script", "style", "head", "title", "template", "noscript"})

# Separated from surrounding text by a blank line.
_PARAGRAPH_TAGS = frozenset(
    {"p", "h1", "h2", "h3", "h4", "h5", "h6", "blockquote", "pre", "table", "ul", "ol", "dl"}
)
# Start on their own line.
_BLOCK_TAGS = frozenset(
    {
        "div",
        "section",
        "article",
        "header",
        "footer",
        "main",
        "nav",
        "aside",
        "address",
        "center",
        "figure",
        "figcaption",
        "li",
        "dt",
        "dd",
        "tr",
        "caption",
        "hr",
    }
)
_CELL_TAGS = frozenset({"td", "th"})

_WHITESPACE_RE = re.compile(r"\s+")
_TRAILING_SPACE_RE = re.compile(r"[ \t]+\n")


class _PlainTextWriter:
    def __init__(self) -> None:
        self._chunks: list[str] = []

    def _tail(self, size: int) -> str:
        tail = ""
        for chunk in reversed(self._chunks):
            tail = chunk + tail
            if len(tail) >= size:
                break
        return tail[-size:]

    def text(self, value: str) -> None:
        collapsed = _WHITESPACE_RE.sub(" ", value)
        if not collapsed:
            return
        tail = self._tail(1)
        if collapsed.startswith(" ") and (not tail or tail in {" ", "\n"}):
            collapsed = collapsed[1:]
        if collapsed:
            self._chunks.append(collapsed)

    def verbatim(self, value: str) -> None:
        if value:
            self._chunks.append(value.replace("\r\n", "\n").replace("\r", "\n"))

    def newline(self) -> None:
        self._chunks.append("\n")

    def block_break(self, lines: int) -> None:
        """Make sure the output ends with at least ``lines`` newlines."""
        if not self._chunks:
            return
        tail = self._tail(lines)
        have = len(tail) - len(tail.rstrip("\n"))
        self._chunks.extend(["\n"] * max(0, lines - have))

    def render(self) -> str:
        text = "".join(self._chunks)
        return _TRAILING_SPACE_RE.sub("\n", text).strip()


def _render_children(node: Tag, out: _PlainTextWriter, *, preformatted: bool) -> None:
    for child in node.children:
        _render_node(child, out, preformatted=preformatted)


def _render_list(node: Tag, out: _PlainTextWriter, *, preformatted: bool) -> None:
    ordered = node.name == "ol"
    index = 1
    for child in node.children:
        if isinstance(child, Tag) and child.name == "li":
            out.block_break(1)
            out.text(f"{index}. " if ordered else "* ")
            index += 1
            _render_children(child, out, preformatted=preformatted)
        else:
            _render_node(child, out, preformatted=preformatted)


def _render_node(node: object, out: _PlainTextWriter, *, preformatted: bool) -> None:
    if isinstance(node, (Comment, Declaration, Doctype, ProcessingInstruction)):
        return
    if isinstance(node, NavigableString):
        if preformatted:
            out.verbatim(str(node))
        else:
            out.text(str(node))
        return
    if not isinstance(node, Tag):
        return

    name = (node.name or "").lower()
    if name in _SKIP_TAGS or name == "img":
        return
    if name == "br":
        out.newline()
        return

    if name in _PARAGRAPH_TAGS:
        out.block_break(2)
        if name in {"ul", "ol"}:
            _render_list(node, out, preformatted=preformatted)
        else:
            _render_children(node, out, preformatted=preformatted or name == "pre")
        out.block_break(2)
        return

    if name in _BLOCK_TAGS:
        out.block_break(1)
        _render_children(node, out, preformatted=preformatted)
        out.block_break(1)
        return

    _render_children(node, out, preformatted=preformatted)
    if name in _CELL_TAGS:
        out.text(" ")


def html_to_plain(html: str | None) -> str:
    """Reduce HTML to plain text.

    Lines are not wrapped. Links render as their visible text only, block
    elements start new lines, paragraphs are separated by a blank line and
    ``<pre>`` content keeps its whitespace.
    """
    if not html:
        return ""
    soup = BeautifulSoup(html, "html.parser")
    out = _PlainTextWriter()
    _render_children(soup, out, preformatted=False)
    return out.render()
