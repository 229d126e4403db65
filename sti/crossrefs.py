"""
"See also" cross-reference extraction between chapters.

Recognizes phrases such as

    see chapter 32
    see also ch. 14
    see chapters 32-34      (expanded to 32, 33, 34)
"""

from __future__ import annotations

import re
from typing import List

from .model import CrossRef
from .util import strip_tags

CROSS_REF_RE = re.compile(
    r"see\s+(?:also\s+)?(?:chapters?|ch\.?)\s*(\d+)(?:\s*[–-]\s*(\d+))?",
    re.IGNORECASE,
)

# Upper bound on a single "chapters N-M" expansion.
MAX_RANGE = 60


def extract_cross_refs(content: str, source_chapter: int) -> List[CrossRef]:
    """
    Deduplicated chapter cross-references in first-seen order.

    A reversed range ('see chapters 34-32') yields only its first number, and
    references back to source_chapter are dropped.
    """
    text = strip_tags(content)
    seen = set()
    refs: List[CrossRef] = []

    for match in CROSS_REF_RE.finditer(text):
        start = int(match.group(1))
        end = int(match.group(2)) if match.group(2) else start
        if end < start or end - start > MAX_RANGE:
            end = start

        for target in range(start, end + 1):
            if target == source_chapter or target in seen:
                continue
            seen.add(target)
            refs.append(CrossRef(source_chapter, target, note=match.group(0)))

    return refs
