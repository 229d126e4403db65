"""
PDF paragraph source.

Uses pdfplumber to get words with coordinates and font attributes, groups them
into lines, and folds lines into styled paragraphs.

Heuristics:
- Top 5% / bottom 5% of each page are running headers and footers; dropped.
- bold / italic from the font name (…-Bold, …BoldItalic, …-Oblique)
- centered when the line's midpoint is near the page midpoint and the line
  does not span the text block
- large_font when the largest glyph on the line is 14pt or more
- Consecutive lines with the same style are merged into one paragraph unless
  the vertical gap looks like a paragraph break.
"""

from __future__ import annotations

import html as html_lib
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List

import pdfplumber
from pdfminer.psparser import PSException
from pdfplumber.utils.exceptions import PdfminerException

from .model import Paragraph, StyleFlags
from .util import debug, info

EDGE_BAND = 0.05
CENTER_TOLERANCE = 0.05
FULL_WIDTH = 0.80
LARGE_FONT_PT = 14.0
PARAGRAPH_GAP = 1.5

# Raised for damaged or non-PDF input.
READ_ERRORS = (PdfminerException, PSException)


@dataclass
class PdfLine:
    text: str
    x0: float
    x1: float
    top: float
    bottom: float
    style: StyleFlags


def _font_flags(fontname: str) -> Dict[str, bool]:
    name = (fontname or "").lower()
    return {
        "bold": any(k in name for k in ("bold", "black", "heavy", "semibold")),
        "italic": any(k in name for k in ("italic", "oblique")),
    }


def group_lines(words: List[Dict], page_width: float, page_height: float) -> List[PdfLine]:
    """
    Group pdfplumber words into lines by vertical position and classify each
    line's style.
    """
    rows: Dict[int, List[Dict]] = {}
    for word in words:
        rows.setdefault(int(round(word["top"])), []).append(word)

    lines: List[PdfLine] = []
    for top, line_words in sorted(rows.items()):
        y_percent = top / page_height if page_height else 0.0
        if y_percent < EDGE_BAND or y_percent > 1.0 - EDGE_BAND:
            continue

        line_words.sort(key=lambda w: w["x0"])
        x0 = min(w["x0"] for w in line_words)
        x1 = max(w["x1"] for w in line_words)

        # The first word decides bold/italic, so "1. Title." followed by roman text stays bold.
        lead = _font_flags(line_words[0].get("fontname", ""))
        mid = (x0 + x1) / 2.0
        centered = (
            abs(mid - page_width / 2.0) <= page_width * CENTER_TOLERANCE
            and (x1 - x0) < page_width * FULL_WIDTH
        )
        size = max(float(w.get("size", 0) or 0) for w in line_words)

        lines.append(
            PdfLine(
                text=" ".join(w["text"] for w in line_words),
                x0=x0,
                x1=x1,
                top=float(top),
                bottom=max(float(w["bottom"]) for w in line_words),
                style=StyleFlags(
                    bold=lead["bold"],
                    italic=lead["italic"],
                    centered=centered,
                    large_font=size >= LARGE_FONT_PT,
                ),
            )
        )
    return lines


def _starts_paragraph(prev: PdfLine, line: PdfLine) -> bool:
    if prev.style != line.style:
        return True
    if line.style.centered or line.style.bold:
        return True
    height = max(prev.bottom - prev.top, 1.0)
    return (line.top - prev.bottom) > height * PARAGRAPH_GAP


def merge_lines(lines: List[PdfLine]) -> List[Paragraph]:
    """Fold lines into paragraphs."""
    paragraphs: List[Paragraph] = []
    buf: List[PdfLine] = []

    def _flush() -> None:
        if not buf:
            return
        text = " ".join(l.text for l in buf).strip()
        if text:
            paragraphs.append(
                Paragraph(text=text, html=html_lib.escape(text), style=buf[0].style)
            )
        buf.clear()

    for line in lines:
        if buf and _starts_paragraph(buf[-1], line):
            _flush()
        buf.append(line)
    _flush()
    return paragraphs


def read_pdf_paragraphs(pdf_path: Path) -> List[Paragraph]:
    """
    Extract styled paragraphs from a text-layer PDF, page by page.
    """
    pdf_path = Path(pdf_path)
    paragraphs: List[Paragraph] = []

    with pdfplumber.open(pdf_path) as pdf:
        for page_num, page in enumerate(pdf.pages, 1):
            words = page.extract_words(
                x_tolerance=3,
                y_tolerance=3,
                keep_blank_chars=False,
                extra_attrs=["fontname", "size"],
            )
            lines = group_lines(words, float(page.width), float(page.height))
            page_paragraphs = merge_lines(lines)
            debug(f"Page {page_num}: {len(lines)} line(s), {len(page_paragraphs)} paragraph(s)")
            paragraphs.extend(page_paragraphs)

            if page_num % 100 == 0:
                info(f"Processed {page_num} pages...")

    info(f"Read {len(paragraphs)} paragraph(s) from {pdf_path.name}")
    return paragraphs
