"""
Inline markup used inside text cells and paragraphs.

Supported tags, all nestable:

    <b>bold</b>
    <i>italic</i>
    <color rgb='326d92'>colored</color>
    <link href='https://example.com'>link</link>

Anything else, including a lone '<' or '&', is literal text. The parser
produces a small node tree which is serialised to ReportLab paragraph
markup by to_paragraph_markup(); the layout code never sees raw tags.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterator, List, Tuple, Union

from receipts.core.errors import MarkupError


@dataclass
class Text:
    value: str


@dataclass
class Bold:
    children: List["Node"] = field(default_factory=list)


@dataclass
class Italic:
    children: List["Node"] = field(default_factory=list)


@dataclass
class Color:
    rgb: str
    children: List["Node"] = field(default_factory=list)


@dataclass
class Link:
    href: str
    children: List["Node"] = field(default_factory=list)


@dataclass
class Highlight:
    """Background shading behind the text runs only (not markup syntax)."""
    rgb: str
    children: List["Node"] = field(default_factory=list)


Node = Union[Text, Bold, Italic, Color, Link, Highlight]

_TAG_RE = re.compile(r"<\s*(/)?\s*(b|i|color|link)\b([^<>]*)>", re.IGNORECASE)
_ATTR_RE = re.compile(r"""(\w+)\s*=\s*(['"])(.*?)\2""")
_HEX_RE = re.compile(r"^[0-9a-fA-F]{6}$")


def normalize_rgb(value: str) -> str:
    """'#AABBCC' or 'aabbcc' -> 'AABBCC'."""
    rgb = (value or "").strip().lstrip("#")
    if not _HEX_RE.match(rgb):
        raise MarkupError(f"Invalid color {value!r}: expected 6 hex digits")
    return rgb.upper()


def _open_node(name: str, attrs: str) -> Node:
    found = {k.lower(): v for k, _q, v in _ATTR_RE.findall(attrs)}
    if name == "b":
        return Bold()
    if name == "i":
        return Italic()
    if name == "color":
        if "rgb" not in found:
            raise MarkupError("<color> needs an rgb attribute")
        return Color(normalize_rgb(found["rgb"]))
    if "href" not in found:
        raise MarkupError("<link> needs an href attribute")
    return Link(found["href"])


_TAG_OF = {Bold: "b", Italic: "i", Color: "color", Link: "link"}


def parse(source: str | None) -> List[Node]:
    """Parse markup into a list of nodes.

    Tags left open are closed at the end of the input; a closing tag that
    does not match the innermost open tag raises MarkupError.
    """
    root: List[Node] = []
    stack: List[Node] = []

    def current() -> List[Node]:
        return stack[-1].children if stack else root  # type: ignore[union-attr]

    def add_text(s: str) -> None:
        if not s:
            return
        siblings = current()
        if siblings and isinstance(siblings[-1], Text):
            siblings[-1].value += s
        else:
            siblings.append(Text(s))

    pos = 0
    source = source or ""
    for m in _TAG_RE.finditer(source):
        add_text(source[pos:m.start()])
        pos = m.end()
        closing, name = m.group(1), m.group(2).lower()
        if closing:
            if not stack or _TAG_OF[type(stack[-1])] != name:
                expected = f"</{_TAG_OF[type(stack[-1])]}>" if stack else "no closing tag"
                raise MarkupError(f"Unexpected </{name}> at offset {m.start()}, expected {expected}")
            stack.pop()
        else:
            node = _open_node(name, m.group(3) or "")
            current().append(node)
            stack.append(node)
    add_text(source[pos:])
    return root


def runs(nodes: List[Node], bold: bool = False) -> Iterator[Tuple[str, bool]]:
    """Yield (text, is_bold) pairs in reading order."""
    for node in nodes:
        if isinstance(node, Text):
            yield node.value, bold
        else:
            yield from runs(node.children, bold or isinstance(node, Bold))


def _escape(s: str, quote: bool = False) -> str:
    s = s.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")
    if quote:
        s = s.replace('"', "&quot;")
    return s


def to_paragraph_markup(nodes: List[Node]) -> str:
    """Serialise nodes to the markup accepted by reportlab.platypus.Paragraph."""
    out: List[str] = []
    for node in nodes:
        if isinstance(node, Text):
            out.append(_escape(node.value).replace("\n", "<br/>"))
            continue
        inner = to_paragraph_markup(node.children)
        if isinstance(node, Bold):
            out.append(f"<b>{inner}</b>")
        elif isinstance(node, Italic):
            out.append(f"<i>{inner}</i>")
        elif isinstance(node, Color):
            out.append(f'<font color="#{node.rgb}">{inner}</font>')
        elif isinstance(node, Link):
            out.append(f'<link href="{_escape(node.href, quote=True)}">{inner}</link>')
        elif isinstance(node, Highlight):
            out.append(f'<font backColor="#{node.rgb}">{inner}</font>')
    return "".join(out)


def render(source: str | None) -> str:
    """Markup string -> paragraph markup."""
    return to_paragraph_markup(parse(source))


def literal(source: str | None) -> List[Node]:
    """Nodes for text that must not be interpreted as markup."""
    return [Text(source)] if source else []
