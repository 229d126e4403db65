"""
Structural classification of styled paragraphs.

Each paragraph is tagged with one structural role:

    part_header        "Part 3"                  centered
    chapter_header     "Chapter 32"              centered
    section_header     "A. The Authority..."     centered + bold
    subsection_header  "1. All Words Are..."     bold
    noise              any other centered + bold paragraph (boilerplate markers
                       such as "EXPLANATION AND SCRIPTURAL BASIS"), dropped
    body               everything else

Part and chapter headers look ahead to consume their title paragraph (and, for
chapters, an optional italic subtitle), so the title never reaches the body.
Misfires (a bold enumerated sentence read as a subsection) are accepted as-is.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional

from .model import Paragraph

PART_HEADER = "part_header"
CHAPTER_HEADER = "chapter_header"
SECTION_HEADER = "section_header"
SUBSECTION_HEADER = "subsection_header"
NOISE = "noise"
BODY = "body"

PART_RE = re.compile(r"^Part\s+(\d+)$", re.IGNORECASE)
CHAPTER_RE = re.compile(r"^Chapter\s+(\d+)$", re.IGNORECASE)
SECTION_RE = re.compile(r"^([A-Z])\.\s+(.+)$")
SUBSECTION_RE = re.compile(r"^(\d+)\.\s+(.+)")

# Page-number markers left at the edge of a paragraph by the export ("p 23").
PAGE_MARKER_RE = re.compile(r"^\s*p\s*\d+(?:\s+|\s*$)|\s+p\s*\d+\s*$", re.IGNORECASE)


@dataclass(frozen=True)
class ClassifiedParagraph:
    role: str
    paragraph: Paragraph
    number: Optional[int] = None
    letter: Optional[str] = None
    title: Optional[str] = None


def strip_page_markers(text: str) -> str:
    return PAGE_MARKER_RE.sub("", text).strip()


def _header_role(text: str, paragraph: Paragraph) -> Optional[str]:
    """Role of a paragraph when it is a header, else None."""
    style = paragraph.style
    if style.centered and PART_RE.match(text):
        return PART_HEADER
    if style.centered and CHAPTER_RE.match(text):
        return CHAPTER_HEADER
    if style.centered and style.bold and SECTION_RE.match(text):
        return SECTION_HEADER
    if style.bold and SUBSECTION_RE.match(text):
        return SUBSECTION_HEADER
    return None


def classify_role(paragraph: Paragraph) -> str:
    """
    Classify a single paragraph without lookahead.
    """
    text = strip_page_markers(paragraph.text)
    role = _header_role(text, paragraph)
    if role is not None:
        return role
    if paragraph.style.centered and paragraph.style.bold:
        return NOISE
    return BODY


def _is_title_candidate(paragraph: Paragraph) -> bool:
    text = strip_page_markers(paragraph.text)
    return (
        bool(text)
        and paragraph.style.centered
        and paragraph.style.bold
        and _header_role(text, paragraph) is None
    )


def _is_subtitle_candidate(paragraph: Paragraph) -> bool:
    text = strip_page_markers(paragraph.text)
    return (
        bool(text)
        and paragraph.style.centered
        and paragraph.style.italic
        and _header_role(text, paragraph) is None
    )


def subsection_title(rest: str) -> str:
    """
    Title of a subsection header: the text up to the first period.

    "All Words Are God's Words. The Bible says..." -> "All Words Are God's Words"
    """
    match = re.match(r"^([^.]+\.?)", rest)
    title = match.group(1).strip() if match else rest.strip()
    return title.rstrip(".").strip()


def classify_paragraphs(paragraphs: Iterable[Paragraph]) -> Iterator[ClassifiedParagraph]:
    """
    Yield ClassifiedParagraph events for a paragraph stream.

    Empty paragraphs are skipped; noise paragraphs are yielded with role
    'noise' so callers can count them, but carry no structure.
    """
    items: List[Paragraph] = [p for p in paragraphs if strip_page_markers(p.text)]
    i = 0
    while i < len(items):
        p = items[i]
        text = strip_page_markers(p.text)
        role = classify_role(p)

        if role == PART_HEADER:
            number = int(PART_RE.match(text).group(1))
            title = f"Part {number}"
            if i + 1 < len(items) and _is_title_candidate(items[i + 1]):
                title = strip_page_markers(items[i + 1].text)
                i += 1
            yield ClassifiedParagraph(PART_HEADER, p, number=number, title=title)

        elif role == CHAPTER_HEADER:
            number = int(CHAPTER_RE.match(text).group(1))
            title = f"Chapter {number}"
            if i + 1 < len(items) and _is_title_candidate(items[i + 1]):
                title = strip_page_markers(items[i + 1].text)
                i += 1
                if i + 1 < len(items) and _is_subtitle_candidate(items[i + 1]):
                    i += 1
            yield ClassifiedParagraph(CHAPTER_HEADER, p, number=number, title=title)

        elif role == SECTION_HEADER:
            letter, title = SECTION_RE.match(text).groups()
            yield ClassifiedParagraph(SECTION_HEADER, p, letter=letter, title=title.strip())

        elif role == SUBSECTION_HEADER:
            number, rest = SUBSECTION_RE.match(text).groups()
            yield ClassifiedParagraph(
                SUBSECTION_HEADER, p, number=int(number), title=subsection_title(rest)
            )

        else:
            yield ClassifiedParagraph(role, p)

        i += 1
