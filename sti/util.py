"""
Utility functions for console output and common operations.
"""

import re

_verbose = False


def set_verbose(enabled: bool) -> None:
    """Turn [debug] output on or off for the rest of the run."""
    global _verbose
    _verbose = bool(enabled)


def info(msg: str) -> None:
    """Print an info message."""
    print(f"[info] {msg}")


def warn(msg: str) -> None:
    """Print a warning message."""
    print(f"[warn] {msg}")


def ok(msg: str) -> None:
    """Print a success message."""
    print(f"[ok] {msg}")


def error(msg: str) -> None:
    """Print an error message."""
    print(f"[error] {msg}")


def debug(msg: str) -> None:
    """Print a debug message (verbose mode only)."""
    if _verbose:
        print(f"[debug] {msg}")


_TAG_RE = re.compile(r"<[^>]+>")
_WS_RE = re.compile(r"\s+")


def strip_tags(html: str) -> str:
    """Plain text of an HTML fragment, whitespace collapsed."""
    if not html:
        return ""
    return _WS_RE.sub(" ", _TAG_RE.sub(" ", html)).strip()


def count_words(html: str) -> int:
    text = strip_tags(html)
    return len(text.split()) if text else 0
