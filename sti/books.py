"""
Bible book alias resolution.

Maps any known spelling of a book name (full name, common abbreviation, Logos
compact code, with or without a trailing period, with an Arabic or Roman
ordinal prefix, spaced or unspaced) to the canonical 3-letter code used
throughout the index ('GEN', '1CO', 'JHN', ...).

The alias table also drives the free-text citation regex: aliases are joined
longest-first so '1 Corinthians' is never shadowed by 'Cor' and '1 Jn' is
never read as 'Jn'.
"""

from __future__ import annotations

import re
from typing import Dict, List, Optional, Tuple

# (code, full name, ordinal or None, base names/abbreviations without ordinal)
# For numbered books the base names are combined with '1', '1 ', 'I ', 'First ' etc.
CANON: List[Tuple[str, str, Optional[int], Tuple[str, ...]]] = [
    # Old Testament
    ("GEN", "Genesis", None, ("genesis", "gen", "ge", "gn")),
    ("EXO", "Exodus", None, ("exodus", "exod", "exo", "ex")),
    ("LEV", "Leviticus", None, ("leviticus", "lev", "le", "lv")),
    ("NUM", "Numbers", None, ("numbers", "numb", "num", "nu", "nm")),
    ("DEU", "Deuteronomy", None, ("deuteronomy", "deut", "deu", "dt")),
    ("JOS", "Joshua", None, ("joshua", "josh", "jos")),
    ("JDG", "Judges", None, ("judges", "judg", "jdg", "jgs")),
    ("RUT", "Ruth", None, ("ruth", "rut", "ru")),
    ("1SA", "1 Samuel", 1, ("samuel", "sam", "sa")),
    ("2SA", "2 Samuel", 2, ("samuel", "sam", "sa")),
    ("1KI", "1 Kings", 1, ("kings", "kgs", "ki")),
    ("2KI", "2 Kings", 2, ("kings", "kgs", "ki")),
    ("1CH", "1 Chronicles", 1, ("chronicles", "chron", "chr", "ch")),
    ("2CH", "2 Chronicles", 2, ("chronicles", "chron", "chr", "ch")),
    ("EZR", "Ezra", None, ("ezra", "ezr")),
    ("NEH", "Nehemiah", None, ("nehemiah", "neh", "ne")),
    ("EST", "Esther", None, ("esther", "esth", "est", "es")),
    ("JOB", "Job", None, ("job", "jb")),
    ("PSA", "Psalms", None, ("psalms", "psalm", "psa", "pss", "ps")),
    ("PRO", "Proverbs", None, ("proverbs", "prov", "pro", "pr")),
    ("ECC", "Ecclesiastes", None, ("ecclesiastes", "eccles", "eccl", "ecc", "ec", "qoh")),
    ("SNG", "Song of Solomon", None, (
        "song of solomon", "song of songs", "songofsolomon", "canticles",
        "cant", "song", "sos", "sng", "so",
    )),
    ("ISA", "Isaiah", None, ("isaiah", "isa", "is")),
    ("JER", "Jeremiah", None, ("jeremiah", "jer", "je")),
    ("LAM", "Lamentations", None, ("lamentations", "lam", "la")),
    ("EZK", "Ezekiel", None, ("ezekiel", "ezek", "ezk", "eze")),
    ("DAN", "Daniel", None, ("daniel", "dan", "da", "dn")),
    ("HOS", "Hosea", None, ("hosea", "hos", "ho")),
    ("JOL", "Joel", None, ("joel", "jol", "joe")),
    ("AMO", "Amos", None, ("amos", "amo", "am")),
    ("OBA", "Obadiah", None, ("obadiah", "obad", "oba", "ob")),
    ("JON", "Jonah", None, ("jonah", "jon")),
    ("MIC", "Micah", None, ("micah", "mic", "mi")),
    ("NAM", "Nahum", None, ("nahum", "nah", "nam", "na")),
    ("HAB", "Habakkuk", None, ("habakkuk", "hab")),
    ("ZEP", "Zephaniah", None, ("zephaniah", "zeph", "zep")),
    ("HAG", "Haggai", None, ("haggai", "hag")),
    ("ZEC", "Zechariah", None, ("zechariah", "zech", "zec")),
    ("MAL", "Malachi", None, ("malachi", "mal")),
    # New Testament
    ("MAT", "Matthew", None, ("matthew", "matt", "mat", "mt")),
    ("MRK", "Mark", None, ("mark", "mrk", "mar", "mk")),
    ("LUK", "Luke", None, ("luke", "luk", "lk")),
    ("JHN", "John", None, ("john", "jhn", "jn")),
    ("ACT", "Acts", None, ("acts", "act", "ac")),
    ("ROM", "Romans", None, ("romans", "rom", "ro")),
    ("1CO", "1 Corinthians", 1, ("corinthians", "cor", "co")),
    ("2CO", "2 Corinthians", 2, ("corinthians", "cor", "co")),
    ("GAL", "Galatians", None, ("galatians", "gal", "ga")),
    ("EPH", "Ephesians", None, ("ephesians", "eph")),
    ("PHP", "Philippians", None, ("philippians", "phil", "php", "pp")),
    ("COL", "Colossians", None, ("colossians", "col")),
    ("1TH", "1 Thessalonians", 1, ("thessalonians", "thess", "thes", "th")),
    ("2TH", "2 Thessalonians", 2, ("thessalonians", "thess", "thes", "th")),
    ("1TI", "1 Timothy", 1, ("timothy", "tim", "ti")),
    ("2TI", "2 Timothy", 2, ("timothy", "tim", "ti")),
    ("TIT", "Titus", None, ("titus", "tit")),
    ("PHM", "Philemon", None, ("philemon", "philem", "phlm", "phm", "pm")),
    ("HEB", "Hebrews", None, ("hebrews", "heb")),
    ("JAS", "James", None, ("james", "jas", "jm")),
    ("1PE", "1 Peter", 1, ("peter", "pet", "pt", "pe")),
    ("2PE", "2 Peter", 2, ("peter", "pet", "pt", "pe")),
    ("1JN", "1 John", 1, ("john", "jn")),
    ("2JN", "2 John", 2, ("john", "jn")),
    ("3JN", "3 John", 3, ("john", "jn")),
    ("JUD", "Jude", None, ("jude", "jud")),
    ("REV", "Revelation", None, ("revelation", "revelations", "rev", "re")),
]

ROMAN_ORDINALS = {1: "i", 2: "ii", 3: "iii"}
WORD_ORDINALS = {1: "first", 2: "second", 3: "third"}

_WS_RE = re.compile(r"\s+")


def _ordinal_variants(ordinal: int, base: str) -> List[str]:
    roman = ROMAN_ORDINALS[ordinal]
    return [
        f"{ordinal} {base}",
        f"{ordinal}{base}",
        f"{roman} {base}",
        f"{WORD_ORDINALS[ordinal]} {base}",
    ]


def normalize_alias(token: str) -> str:
    """
    Lowercase, drop a trailing period, and collapse inner whitespace.

    'I  Cor.' -> 'i cor'
    """
    key = _WS_RE.sub(" ", token.strip().lower())
    return key.rstrip(".").strip()


def _build_alias_map() -> Dict[str, str]:
    aliases: Dict[str, str] = {}
    for code, name, ordinal, bases in CANON:
        keys = [code.lower(), name.lower()]
        if ordinal is None:
            keys.extend(bases)
        else:
            for base in bases:
                keys.extend(_ordinal_variants(ordinal, base))
        for key in keys:
            aliases.setdefault(normalize_alias(key), code)
    return aliases


ALIASES: Dict[str, str] = _build_alias_map()
BOOK_NAMES: Dict[str, str] = {code: name for code, name, _, _ in CANON}


def resolve_book(token: str) -> Optional[str]:
    """
    Resolve a free-text book token to its canonical code.

    Returns None when the token is not a known alias; callers treat that as
    "unresolved" and leave the citation alone.
    """
    if not token:
        return None
    key = normalize_alias(token)
    code = ALIASES.get(key)
    if code is None:
        # Logos compact codes are sometimes written with a space ('1 Co').
        code = ALIASES.get(key.replace(" ", ""))
    return code


def aliases_for(code: str) -> List[str]:
    """All aliases that resolve to the given code, longest first."""
    code = code.upper()
    return sorted((a for a, c in ALIASES.items() if c == code), key=len, reverse=True)


def alias_pattern() -> str:
    """
    Regex alternation over every alias, longest first.

    Spaces inside an alias match any run of whitespace, and aliases of up to six
    characters ending in a letter accept an optional trailing period ('Rom.').
    """
    parts: List[str] = []
    for alias in sorted(ALIASES, key=len, reverse=True):
        pattern = r"\s+".join(re.escape(word) for word in alias.split(" "))
        if len(alias) <= 6 and alias[-1].isalpha():
            pattern += r"\.?"
        parts.append(pattern)
    return "|".join(parts)
