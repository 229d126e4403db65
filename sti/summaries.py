"""
Summary generation for doctrine entries.

Two strategies:
- extractive (default): the leading sentences of the entry's plain text
- remote: an OpenRouter-compatible chat-completions call, used when
  STI_SUMMARY_API_KEY is set

A failed remote call is reported with a warning and yields no summary; it
never aborts an import.
"""

from __future__ import annotations

import re
from dataclasses import replace
from typing import List, Optional

import requests

from . import config
from .model import DoctrineEntry
from .util import debug, strip_tags, warn

SUMMARY_SENTENCES = 2
SUMMARY_MAX_CHARS = 320
MIN_SUMMARY_WORDS = 12

_SENTENCE_RE = re.compile(r"(?<=[.!?])\s+(?=[A-Z\"'“(])")

SYSTEM_PROMPT = (
    "You summarize sections of a systematic theology. Reply with two or three "
    "plain sentences stating the section's main claim. No markdown, no lists."
)


def extractive_summary(content: str) -> Optional[str]:
    """
    The first sentences of the content's plain text, capped in length.
    """
    text = strip_tags(content)
    if len(text.split()) < MIN_SUMMARY_WORDS:
        return None

    sentences = _SENTENCE_RE.split(text)
    summary = " ".join(sentences[:SUMMARY_SENTENCES]).strip()
    if len(summary) > SUMMARY_MAX_CHARS:
        cut = summary[:SUMMARY_MAX_CHARS].rsplit(" ", 1)[0]
        summary = cut.rstrip(",;:") + "..."
    return summary or None


def _llm_call(messages: list, max_tokens: int = 300) -> str:
    """Chat completion against the configured endpoint."""
    resp = requests.post(
        config.SUMMARY_API_URL,
        headers={
            "Authorization": f"Bearer {config.SUMMARY_API_KEY}",
            "Content-Type": "application/json",
        },
        json={
            "model": config.SUMMARY_MODEL,
            "messages": messages,
            "temperature": 0.2,
            "max_tokens": max_tokens,
        },
        timeout=config.SUMMARY_TIMEOUT,
    )
    resp.raise_for_status()
    return resp.json()["choices"][0]["message"]["content"]


def remote_summary(entry: DoctrineEntry) -> Optional[str]:
    text = strip_tags(entry.content)
    if len(text.split()) < MIN_SUMMARY_WORDS:
        return None

    messages = [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": f"{entry.label}: {entry.title}\n\n{text[:6000]}"},
    ]
    try:
        answer = _llm_call(messages)
    except (requests.RequestException, KeyError, IndexError, ValueError) as e:
        warn(f"Summary request failed for {entry.label}: {e}")
        return None
    return " ".join(answer.split()) or None


def summarize_entry(entry: DoctrineEntry, use_remote: Optional[bool] = None) -> Optional[str]:
    if entry.entry_type == "part" or not entry.content:
        return None
    if use_remote is None:
        use_remote = bool(config.SUMMARY_API_KEY)
    if use_remote:
        return remote_summary(entry)
    return extractive_summary(entry.content)


def summarize_entries(
    entries: List[DoctrineEntry], use_remote: Optional[bool] = None
) -> List[DoctrineEntry]:
    """
    Return entries with summaries filled in where one could be produced.
    Entries that get no summary keep whatever they had.
    """
    out: List[DoctrineEntry] = []
    produced = 0
    for entry in entries:
        summary = summarize_entry(entry, use_remote=use_remote)
        if summary:
            produced += 1
            entry = replace(entry, summary=summary)
        out.append(entry)
    debug(f"Generated {produced} summary(ies) for {len(entries)} entries")
    return out
