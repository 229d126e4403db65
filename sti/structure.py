"""
Outline builder: folds classified paragraphs into doctrine entries.

The parse state is an immutable value; step() returns a new state for every
classified paragraph, so the whole build is

    reduce(step, classified_paragraphs, ParseState())

and any intermediate state can be inspected in isolation.

Transitions:
- part_header        resolve-or-create the part by number; close chapter/section/subsection
- chapter_header     parent part from CHAPTER_TO_PART (the part header may be missing
                     from a given input); create chapter; close section/subsection
- section_header     section under the open chapter; close subsection
- subsection_header  subsection under the open section, else under the chapter;
                     its own paragraph seeds its content
- body               appended to the deepest open node (subsection > section > chapter)

Parts are deduplicated by number within one parse here; against storage they
are deduplicated by the repository (see store.resolve_parts).
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from functools import reduce
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple

from . import classify
from .classify import ClassifiedParagraph
from .config import MIN_BODY_FRAGMENT
from .model import DoctrineEntry, entry_id_for
from .scripture import convert_content
from .util import count_words


def _chapter_to_part() -> Dict[int, int]:
    spans = {
        1: range(1, 9),     # The Doctrine of the Word of God
        2: range(9, 21),    # The Doctrine of God
        3: range(21, 26),   # The Doctrine of Man
        4: range(26, 31),   # The Doctrines of Christ and the Holy Spirit
        5: range(31, 44),   # The Doctrine of the Application of Redemption
        6: range(44, 54),   # The Doctrine of the Church
        7: range(54, 58),   # The Doctrine of the Future
    }
    return {ch: part for part, chapters in spans.items() for ch in chapters}


CHAPTER_TO_PART: Dict[int, int] = _chapter_to_part()

# Chapter n sorts at n * CHAPTER_STRIDE when the document has not passed that
# point yet, otherwise right after the previous node. Sections and subsections
# count upward from their chapter.
CHAPTER_STRIDE = 1000


@dataclass(frozen=True)
class ParseState:
    entries: Tuple[DoctrineEntry, ...] = ()
    keys: FrozenSet[str] = frozenset()
    current_part: Optional[int] = None
    current_chapter: Optional[int] = None
    current_section: Optional[int] = None
    current_subsection: Optional[int] = None
    sort_counter: int = 0

    def entry(self, index: Optional[int]) -> Optional[DoctrineEntry]:
        return self.entries[index] if index is not None else None

    @property
    def open_node(self) -> Optional[int]:
        """Index of the deepest open node that accepts body text."""
        for idx in (self.current_subsection, self.current_section, self.current_chapter):
            if idx is not None:
                return idx
        return None


def _replace_at(entries: Tuple[DoctrineEntry, ...], index: int, entry: DoctrineEntry):
    return entries[:index] + (entry,) + entries[index + 1:]


def _unique_key(state: ParseState, key: str) -> str:
    if key not in state.keys:
        return key
    n = 2
    while f"{key}#{n}" in state.keys:
        n += 1
    return f"{key}#{n}"


def _append(state: ParseState, key: str, entry: DoctrineEntry) -> Tuple[ParseState, int]:
    state = replace(state, entries=state.entries + (entry,), keys=state.keys | {key})
    return state, len(state.entries) - 1


def _find_part(state: ParseState, number: int) -> Optional[int]:
    for idx, e in enumerate(state.entries):
        if e.entry_type == "part" and e.part_number == number:
            return idx
    return None


def _ensure_part(state: ParseState, number: int, title: Optional[str]) -> Tuple[ParseState, int]:
    idx = _find_part(state, number)
    if idx is not None:
        existing = state.entries[idx]
        if title and existing.title == f"Part {number}" and title != existing.title:
            state = replace(state, entries=_replace_at(state.entries, idx, replace(existing, title=title)))
        return state, idx

    key = f"part:{number}"
    entry = DoctrineEntry(
        id=entry_id_for(key),
        entry_type="part",
        title=title or f"Part {number}",
        part_number=number,
        sort_order=number,
    )
    return _append(state, key, entry)


def _on_part(state: ParseState, event: ClassifiedParagraph) -> ParseState:
    state, idx = _ensure_part(state, event.number, event.title)
    return replace(
        state,
        current_part=idx,
        current_chapter=None,
        current_section=None,
        current_subsection=None,
    )


def _on_chapter(state: ParseState, event: ClassifiedParagraph) -> ParseState:
    number = event.number
    part_number = CHAPTER_TO_PART.get(number)
    if part_number is None and state.current_part is not None:
        part_number = state.entry(state.current_part).part_number

    part_idx = None
    if part_number is not None:
        state, part_idx = _ensure_part(state, part_number, None)

    key = _unique_key(state, f"chapter:{number}")
    sort_base = max(state.sort_counter + 1, number * CHAPTER_STRIDE)
    chapter = DoctrineEntry(
        id=entry_id_for(key),
        entry_type="chapter",
        title=event.title or f"Chapter {number}",
        part_number=part_number,
        chapter_number=number,
        parent_id=state.entries[part_idx].id if part_idx is not None else None,
        sort_order=sort_base,
    )
    state, idx = _append(state, key, chapter)
    return replace(
        state,
        current_part=part_idx,
        current_chapter=idx,
        current_section=None,
        current_subsection=None,
        sort_counter=sort_base,
    )


def _on_section(state: ParseState, event: ClassifiedParagraph) -> ParseState:
    chapter = state.entry(state.current_chapter)
    if chapter is None:
        return _on_body(state, event)

    key = _unique_key(state, f"section:{chapter.chapter_number}:{event.letter}")
    counter = state.sort_counter + 1
    section = DoctrineEntry(
        id=entry_id_for(key),
        entry_type="section",
        title=event.title,
        part_number=chapter.part_number,
        chapter_number=chapter.chapter_number,
        section_letter=event.letter,
        parent_id=chapter.id,
        sort_order=counter,
    )
    state, idx = _append(state, key, section)
    return replace(state, current_section=idx, current_subsection=None, sort_counter=counter)


def _on_subsection(state: ParseState, event: ClassifiedParagraph) -> ParseState:
    chapter = state.entry(state.current_chapter)
    if chapter is None:
        return _on_body(state, event)

    section = state.entry(state.current_section)
    parent = section or chapter
    letter = section.section_letter if section else None

    key = _unique_key(
        state, f"subsection:{chapter.chapter_number}:{letter or '-'}:{event.number}"
    )
    content = f"<p>{convert_content(event.paragraph.html)}</p>"
    counter = state.sort_counter + 1
    subsection = DoctrineEntry(
        id=entry_id_for(key),
        entry_type="subsection",
        title=event.title,
        part_number=chapter.part_number,
        chapter_number=chapter.chapter_number,
        section_letter=letter,
        subsection_number=event.number,
        content=content,
        parent_id=parent.id,
        sort_order=counter,
        word_count=count_words(content),
    )
    state, idx = _append(state, key, subsection)
    return replace(state, current_subsection=idx, sort_counter=counter)


def _on_body(state: ParseState, event: ClassifiedParagraph) -> ParseState:
    target = state.open_node
    if target is None:
        return state

    converted = convert_content(event.paragraph.html)
    if len(converted) <= MIN_BODY_FRAGMENT:
        return state

    entry = state.entries[target]
    content = entry.content + ("\n" if entry.content else "") + f"<p>{converted}</p>"
    updated = replace(entry, content=content, word_count=count_words(content))
    return replace(state, entries=_replace_at(state.entries, target, updated))


_TRANSITIONS = {
    classify.PART_HEADER: _on_part,
    classify.CHAPTER_HEADER: _on_chapter,
    classify.SECTION_HEADER: _on_section,
    classify.SUBSECTION_HEADER: _on_subsection,
    classify.BODY: _on_body,
}


def step(state: ParseState, event: ClassifiedParagraph) -> ParseState:
    """Apply one classified paragraph to the parse state."""
    handler = _TRANSITIONS.get(event.role)
    if handler is None:
        # noise
        return state
    return handler(state, event)


def build_outline(events: Iterable[ClassifiedParagraph]) -> List[DoctrineEntry]:
    """
    Fold classified paragraphs into doctrine entries, in document order.
    """
    return list(reduce(step, events, ParseState()).entries)
