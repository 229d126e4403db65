"""
HTML export reader: yields styled Paragraph records from a Logos-style export.

Every <p> becomes one paragraph. Style flags come from inline CSS and
formatting tags:

- bold      : the paragraph's leading text sits in a bold run
              (font-weight:bold/600-900, <b>, <strong>) or the <p> itself is bold
- italic    : same rule with font-style:italic, <i>, <em>
- centered  : text-align:center on the <p> or an enclosing block
- large_font: any font-size of 14pt (or the px equivalent) or more

Orange page-number spans are removed before text and markup are taken.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Iterator, List, Optional

from bs4 import BeautifulSoup, NavigableString, Tag

from .model import Paragraph, StyleFlags
from .util import info

BOLD_CSS_RE = re.compile(r"font-weight\s*:\s*(bold|bolder|[6-9]00)", re.IGNORECASE)
ITALIC_CSS_RE = re.compile(r"font-style\s*:\s*(italic|oblique)", re.IGNORECASE)
CENTER_CSS_RE = re.compile(r"text-align\s*:\s*center", re.IGNORECASE)
FONT_SIZE_RE = re.compile(r"font-size\s*:\s*([\d.]+)\s*(pt|px)", re.IGNORECASE)
PAGE_MARKER_COLOR_RE = re.compile(r"color\s*:\s*rgb\(\s*255\s*,\s*128\s*,\s*23\s*\)", re.IGNORECASE)

LARGE_FONT_PT = 14.0

_BOLD_TAGS = {"b", "strong"}
_ITALIC_TAGS = {"i", "em"}
_BLOCK_TAGS = {"div", "td", "center", "blockquote", "body"}
_WS_RE = re.compile(r"\s+")


def _style_of(tag: Tag) -> str:
    return tag.get("style", "") or ""


def _has_flag(tag: Tag, css_re: re.Pattern, tags: set) -> bool:
    return tag.name in tags or bool(css_re.search(_style_of(tag)))


def _leading_text_node(p: Tag) -> Optional[NavigableString]:
    for node in p.descendants:
        if isinstance(node, NavigableString) and node.strip():
            return node
    return None


def _leading_run_has(p: Tag, css_re: re.Pattern, tags: set) -> bool:
    """True when the first visible text of p sits inside a matching element."""
    if _has_flag(p, css_re, tags):
        return True
    node = _leading_text_node(p)
    if node is None:
        return False
    for parent in node.parents:
        if parent is p:
            break
        if _has_flag(parent, css_re, tags):
            return True
    return False


def _is_centered(p: Tag) -> bool:
    if CENTER_CSS_RE.search(_style_of(p)) or (p.get("align") or "").lower() == "center":
        return True
    for parent in p.parents:
        if not isinstance(parent, Tag) or parent.name not in _BLOCK_TAGS:
            break
        if parent.name == "center" or CENTER_CSS_RE.search(_style_of(parent)):
            return True
    return False


def _max_font_pt(p: Tag) -> float:
    sizes: List[float] = []
    for tag in [p] + p.find_all(True):
        for value, unit in FONT_SIZE_RE.findall(_style_of(tag)):
            size = float(value)
            sizes.append(size * 0.75 if unit.lower() == "px" else size)
    return max(sizes) if sizes else 0.0


def style_flags(p: Tag) -> StyleFlags:
    return StyleFlags(
        bold=_leading_run_has(p, BOLD_CSS_RE, _BOLD_TAGS),
        italic=_leading_run_has(p, ITALIC_CSS_RE, _ITALIC_TAGS),
        centered=_is_centered(p),
        large_font=_max_font_pt(p) >= LARGE_FONT_PT,
    )


def _drop_page_markers(soup: BeautifulSoup) -> None:
    for span in soup.find_all("span", style=PAGE_MARKER_COLOR_RE):
        span.decompose()


def iter_paragraphs_from_html(markup: str) -> Iterator[Paragraph]:
    """Yield one Paragraph per <p> element, in document order."""
    soup = BeautifulSoup(markup, "html.parser")
    _drop_page_markers(soup)

    for p in soup.find_all("p"):
        text = _WS_RE.sub(" ", p.get_text("")).strip()
        yield Paragraph(text=text, html=p.decode_contents(), style=style_flags(p))


def read_html_paragraphs(path: Path) -> List[Paragraph]:
    """
    Read an exported HTML file. Undecodable bytes are ignored, as the
    exports mix encodings.
    """
    path = Path(path)
    markup = path.read_text(encoding="utf-8", errors="ignore")
    paragraphs = list(iter_paragraphs_from_html(markup))
    info(f"Read {len(paragraphs)} paragraph(s) from {path.name}")
    return paragraphs
