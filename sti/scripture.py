"""
Scripture citation recognition.

Two paths produce the canonical citation markup

    <a data-scripture="ROM.8.28-30" class="scripture-link">Rom. 8:28-30</a>

Path A (structured): the export already links citations with a compact
locator ('logosref:Bible.Jn1.1', 'https://ref.ly/Ro1.21', 'ref.ly/Ps10.3-4').
convert_content() rewrites those anchors; an anchor whose book cannot be
resolved collapses to its visible text.

Path B (free text): link_unlinked_refs() finds 'Book ch:v[-v]' spans that are
not linked yet, wraps them, and reports what it linked. Matches inside a tag or
inside an open anchor are left alone, so running it again over its own output
changes nothing.

extract_linked_refs() reads the canonical markup back for indexing.
"""

from __future__ import annotations

import html as html_lib
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .books import alias_pattern, resolve_book
from .config import SCRIPTURE_LINK_CLASS
from .model import ScriptureRef
from .util import debug, strip_tags

# ---------------------------------------------------------------------------
# Path A: structured locators
# ---------------------------------------------------------------------------

REFLY_RE = re.compile(r"ref\.ly/([1-3]?[A-Za-z]+)(\d+)\.(\d+)(?:[–-](\d+))?")
LOGOSREF_RE = re.compile(r"Bible\.([1-3]?[A-Za-z]+)(\d+)\.(\d+)(?:[–-](\d+))?")

SOURCE_ANCHOR_RE = re.compile(
    r'<a[^>]*href="([^"]*(?:ref\.ly|logosref:)[^"]*)"[^>]*>(.*?)</a>',
    re.IGNORECASE | re.DOTALL,
)

# Orange page-number spans from the export: <span style="color:rgb(255, 128, 23)"> p 12 </span>
PAGE_MARKER_SPAN_RE = re.compile(
    r"<span[^>]*color:\s*rgb\(255,\s*128,\s*23\)[^>]*>[^<]*</span>",
    re.IGNORECASE,
)

LINKED_ANCHOR_RE = re.compile(
    r'<a[^>]*data-scripture="([^"]+)"[^>]*>(.*?)</a>',
    re.IGNORECASE | re.DOTALL,
)

_WS_RE = re.compile(r"\s+")


def parse_locator(href: str) -> Optional[ScriptureRef]:
    """
    Parse a Logos-style locator into a ScriptureRef.

    "logosref:Bible.Jn1.1"       -> JHN 1:1
    "https://ref.ly/Ro1.21"      -> ROM 1:21
    "https://ref.ly/Ps10.3-4"    -> PSA 10:3-4

    Returns None when the format is not recognized or the book code does not
    resolve.
    """
    for pattern in (REFLY_RE, LOGOSREF_RE):
        match = pattern.search(href or "")
        if not match:
            continue
        book_token, chapter, start, end = match.groups()
        book = resolve_book(book_token)
        if book is None:
            debug(f"Unresolved locator book {book_token!r} in {href!r}")
            return None
        return ScriptureRef(
            book=book,
            chapter=int(chapter),
            start_verse=int(start),
            end_verse=int(end) if end else None,
        )
    return None


def parse_data_scripture(value: str) -> Optional[ScriptureRef]:
    """
    Parse a canonical locator ('ROM.8.28-30', 'JHN.1.1') back into a ScriptureRef.
    """
    parts = (value or "").split(".")
    if len(parts) < 3:
        return None
    book, chapter, verses = parts[0], parts[1], parts[2]
    try:
        if "-" in verses:
            start, end = verses.split("-", 1)
            return ScriptureRef(book, int(chapter), int(start), int(end))
        return ScriptureRef(book, int(chapter), int(verses))
    except ValueError:
        return None


def link_markup(ref: ScriptureRef, text: str) -> str:
    return (
        f'<a data-scripture="{ref.locator}" class="{SCRIPTURE_LINK_CLASS}">{text}</a>'
    )


def convert_content(content: str) -> str:
    """
    Normalize exported HTML: drop page markers, rewrite structured citations
    into canonical markup, collapse whitespace.
    """
    if not content:
        return ""

    out = PAGE_MARKER_SPAN_RE.sub("", content)

    def _rewrite(match: re.Match) -> str:
        href, text = match.group(1), match.group(2)
        ref = parse_locator(href)
        if ref is None:
            return text
        return link_markup(ref, text)

    out = SOURCE_ANCHOR_RE.sub(_rewrite, out)
    return _WS_RE.sub(" ", out).strip()


def extract_linked_refs(content: str) -> List[Tuple[ScriptureRef, int, int]]:
    """
    Every canonical citation anchor in document order, with its span in content.
    """
    found: List[Tuple[ScriptureRef, int, int]] = []
    for match in LINKED_ANCHOR_RE.finditer(content or ""):
        ref = parse_data_scripture(match.group(1))
        if ref is None:
            continue
        text = html_lib.unescape(strip_tags(match.group(2)))
        found.append(
            (
                ScriptureRef(ref.book, ref.chapter, ref.start_verse, ref.end_verse, text),
                match.start(),
                match.end(),
            )
        )
    return found


def context_snippet(content: str, start: int, end: int, width: int = 80) -> str:
    """
    Plain-text window around a citation span, trimmed at word boundaries.
    """
    before = strip_tags(content[max(0, start - 4 * width):start])
    cited = strip_tags(content[start:end])
    after = strip_tags(content[end:end + 4 * width])

    if len(before) > width:
        before = before[-width:]
        before = before.split(" ", 1)[1] if " " in before else before
        before = "..." + before
    if len(after) > width:
        after = after[:width]
        after = after.rsplit(" ", 1)[0] if " " in after else after
        after = after + "..."

    snippet = " ".join(s for s in (before, cited, after) if s)
    return html_lib.unescape(snippet)


# ---------------------------------------------------------------------------
# Path B: free-text recognition
# ---------------------------------------------------------------------------

FREE_TEXT_RE = re.compile(
    r"(?<![\w])"
    r"(" + alias_pattern() + r")"
    r"\s+"
    r"(\d+)"
    r":"
    r"(\d+)"
    r"(?:[–-](\d+)(?![\d:]))?"
    r"(?:ff\.?)?",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class _Match:
    text: str
    book_token: str
    chapter: int
    start_verse: int
    end_verse: Optional[int]
    index: int


def is_inside_tag(content: str, index: int) -> bool:
    """True when index falls between a '<' and its closing '>'."""
    return content.rfind("<", 0, index) > content.rfind(">", 0, index)


def is_inside_anchor(content: str, index: int) -> bool:
    """True when an '<a ' opened before index has not been closed yet."""
    before = content[:index].lower()
    return before.rfind("<a ") > before.rfind("</a>")


def is_already_linked(content: str, index: int) -> bool:
    return is_inside_tag(content, index) or is_inside_anchor(content, index)


def find_free_text_refs(content: str) -> List[_Match]:
    matches: List[_Match] = []
    for m in FREE_TEXT_RE.finditer(content or ""):
        matches.append(
            _Match(
                text=m.group(0),
                book_token=m.group(1),
                chapter=int(m.group(2)),
                start_verse=int(m.group(3)),
                end_verse=int(m.group(4)) if m.group(4) else None,
                index=m.start(),
            )
        )
    return matches


def link_unlinked_refs(content: str) -> Tuple[str, List[ScriptureRef]]:
    """
    Wrap unlinked free-text citations in canonical markup.

    Matches are collected left to right and spliced in reverse order so the
    offsets of earlier matches stay valid.

    Returns
    -------
    (new_content, linked_refs) with linked_refs in document order.
    """
    if not content:
        return content, []

    new_content = content
    linked: List[ScriptureRef] = []

    for m in reversed(find_free_text_refs(content)):
        if is_already_linked(content, m.index):
            continue

        book = resolve_book(m.book_token)
        if book is None:
            debug(f"Skipping unknown book {m.book_token!r} in {m.text!r}")
            continue

        ref = ScriptureRef(book, m.chapter, m.start_verse, m.end_verse, m.text)
        new_content = (
            new_content[:m.index]
            + link_markup(ref, m.text)
            + new_content[m.index + len(m.text):]
        )
        linked.append(ref)

    linked.reverse()
    return new_content, linked
