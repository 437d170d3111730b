from __future__ import annotations

import html as html_lib
import re

import bleach
import tinycss2
from bleach.css_sanitizer import ALLOWED_CSS_PROPERTIES, CSSSanitizer
from bs4 import BeautifulSoup

ALLOWED_URL_SCHEMES = frozenset({"http", "https", "mailto", "tel"})

# Removed together with everything inside them, before the allow-list pass.
# <head> is not listed: without a closing tag the body ends up inside it.
_DROP_WITH_CONTENT = [
    "script",
    "noscript",
    "template",
    "iframe",
    "frame",
    "frameset",
    "object",
    "embed",
    "applet",
    "title",
]

_ALLOWED_TAGS = frozenset(
    {
        "a",
        "abbr",
        "address",
        "article",
        "aside",
        "b",
        "bdi",
        "bdo",
        "big",
        "blockquote",
        "br",
        "caption",
        "center",
        "cite",
        "code",
        "col",
        "colgroup",
        "dd",
        "del",
        "details",
        "dfn",
        "div",
        "dl",
        "dt",
        "em",
        "figcaption",
        "figure",
        "font",
        "footer",
        "h1",
        "h2",
        "h3",
        "h4",
        "h5",
        "h6",
        "header",
        "hgroup",
        "hr",
        "i",
        "img",
        "ins",
        "kbd",
        "li",
        "main",
        "mark",
        "nav",
        "ol",
        "p",
        "pre",
        "q",
        "s",
        "samp",
        "section",
        "small",
        "span",
        "strike",
        "strong",
        "sub",
        "summary",
        "sup",
        "table",
        "tbody",
        "td",
        "tfoot",
        "th",
        "thead",
        "time",
        "tr",
        "tt",
        "u",
        "ul",
        "var",
        "wbr",
    }
)

_GLOBAL_ATTRIBUTES = frozenset(
    {
        "align",
        "bgcolor",
        "class",
        "color",
        "dir",
        "height",
        "id",
        "lang",
        "role",
        "style",
        "title",
        "valign",
        "width",
    }
)

_TAG_ATTRIBUTES: dict[str, frozenset[str]] = {
    "a": frozenset({"name", "rel", "target"}),
    "img": frozenset({"alt", "border", "hspace", "vspace"}),
    "font": frozenset({"face", "size"}),
    "table": frozenset({"border", "cellpadding", "cellspacing", "summary"}),
    "td": frozenset({"colspan", "rowspan", "nowrap"}),
    "th": frozenset({"colspan", "rowspan", "nowrap", "scope"}),
    "col": frozenset({"span"}),
    "colgroup": frozenset({"span"}),
    "ol": frozenset({"reversed", "start", "type"}),
    "ul": frozenset({"type"}),
    "li": frozenset({"value"}),
    "details": frozenset({"open"}),
    "time": frozenset({"datetime"}),
    "del": frozenset({"datetime"}),
    "ins": frozenset({"datetime"}),
}

_URL_ATTRIBUTES: dict[str, frozenset[str]] = {
    "href": frozenset({"a"}),
    "src": frozenset({"img"}),
    "cite": frozenset({"blockquote", "q", "del", "ins"}),
    "background": frozenset({"table", "td", "th"}),
}

# Layout properties mail clients rely on, on top of bleach's defaults.
_EXTRA_CSS_PROPERTIES = frozenset(
    {
        "background",
        "background-image",
        "background-position",
        "background-repeat",
        "background-size",
        "border",
        "border-bottom",
        "border-left",
        "border-radius",
        "border-right",
        "border-spacing",
        "border-style",
        "border-top",
        "border-width",
        "box-sizing",
        "list-style",
        "list-style-type",
        "margin",
        "margin-bottom",
        "margin-left",
        "margin-right",
        "margin-top",
        "max-height",
        "max-width",
        "min-height",
        "min-width",
        "opacity",
        "padding",
        "padding-bottom",
        "padding-left",
        "padding-right",
        "padding-top",
        "table-layout",
        "text-transform",
        "visibility",
        "word-break",
        "word-wrap",
    }
)

_CSS_SANITIZER = CSSSanitizer(
    allowed_css_properties=ALLOWED_CSS_PROPERTIES | _EXTRA_CSS_PROPERTIES,
)

_IGNORED_URL_CHARS_RE = re.compile(r"[\x00-\x20\x7f-\xa0\u1680\u180e\u2000-\u200f\u2028\u2029\u205f\u3000\ufeff]+")
_SCHEME_RE = re.compile(r"^([a-z][a-z0-9+.\-]*):")


def is_allowed_url(value: str) -> bool:
    """True for scheme-less URLs and for http(s), mailto, tel and data:image/ URLs."""
    # Browsers ignore whitespace/control characters inside schemes ("java\tscript:").
    candidate = _IGNORED_URL_CHARS_RE.sub("", html_lib.unescape(value or "")).lower()
    match = _SCHEME_RE.match(candidate)
    if match is None:
        return True
    scheme = match.group(1)
    if scheme in ALLOWED_URL_SCHEMES:
        return True
    return scheme == "data" and candidate.startswith("data:image/")


def _attr_filter(tag: str, name: str, value: str) -> bool:
    name = (name or "").lower()
    if name.startswith("on"):
        return False
    if name in _URL_ATTRIBUTES:
        return tag in _URL_ATTRIBUTES[name] and is_allowed_url(value)
    return name in _GLOBAL_ATTRIBUTES or name in _TAG_ATTRIBUTES.get(tag, frozenset())


def _sanitize_rules(rules: list) -> str:
    out: list[str] = []
    for rule in rules:
        if rule.type == "qualified-rule":
            declarations = _CSS_SANITIZER.sanitize_css(tinycss2.serialize(rule.content))
            if declarations:
                selector = tinycss2.serialize(rule.prelude).strip()
                out.append(f"{selector}{{{declarations}}}")
        elif rule.type == "at-rule" and rule.lower_at_keyword == "media" and rule.content:
            # @import, @font-face and friends load remote resources; only @media is kept.
            nested = tinycss2.parse_rule_list(
                rule.content, skip_comments=True, skip_whitespace=True
            )
            body = _sanitize_rules(nested)
            if body:
                out.append(f"@media {tinycss2.serialize(rule.prelude).strip()}{{{body}}}")
    return "".join(out)


def sanitize_stylesheet(css: str) -> str:
    """Filter a ``<style>`` block through the same property allow-list as inline styles."""
    rules = tinycss2.parse_stylesheet(css or "", skip_comments=True, skip_whitespace=True)
    # "</" would end the <style> element early once the sheet is written back.
    return _sanitize_rules(rules).replace("</", "<\\/")


def sanitize_html(html: str | None) -> str:
    """Return HTML that is safe to inject into a page without further escaping.

    Scripts (and other active or non-visible containers) are removed with their
    content, event-handler attributes are dropped, and URL attributes must use
    an allowed scheme. Remaining markup, inline styles and ``<style>`` sheets
    are kept, with CSS limited to an allow-list of properties. Sheets are moved
    to the front of the output.
    """
    if not html:
        return ""

    soup = BeautifulSoup(html, "html.parser")
    for element in soup.find_all(_DROP_WITH_CONTENT):
        element.decompose()

    sheets = []
    for element in soup.find_all("style"):
        sheet = sanitize_stylesheet(element.get_text())
        if sheet:
            sheets.append(f"<style>{sheet}</style>")
        element.decompose()

    body = bleach.clean(
        str(soup),
        tags=_ALLOWED_TAGS,
        attributes=_attr_filter,
        protocols=[*ALLOWED_URL_SCHEMES, "data"],
        strip=True,
        strip_comments=True,
        css_sanitizer=_CSS_SANITIZER,
    )
    return "".join(sheets) + body
