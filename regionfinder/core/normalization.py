"""Text normalization utilities for region name matching.

Boundary names arrive from several sources that disagree on encoding: the
same Persian name may be typed with Arabic-script Kaf/Yeh, carry kashida or
zero-width characters, or use presentation-form codepoints copied out of a
PDF. Every lookup table is keyed by ``normalize_name`` so those variants all
land on the same entry.
"""
import re
import unicodedata
from typing import List, Optional


# One canonical target per confusable class
CONFUSABLE_FOLDS = {
    "\u0643": "\u06a9",  # ARABIC LETTER KAF -> ARABIC LETTER KEHEH
    "\u064a": "\u06cc",  # ARABIC LETTER YEH -> ARABIC LETTER FARSI YEH
    "\u0649": "\u06cc",  # ARABIC LETTER ALEF MAKSURA -> ARABIC LETTER FARSI YEH
}

# Characters that carry no meaning for matching
DROPPED_CHARS = {
    "\u0640",  # ARABIC TATWEEL
    "\u200b",  # ZERO WIDTH SPACE
    "\u200d",  # ZERO WIDTH JOINER
    "\ufeff",  # BOM
}

_TRANSLATION = str.maketrans({
    **CONFUSABLE_FOLDS,
    **{ch: None for ch in DROPPED_CHARS},
})

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_name(name: Optional[str]) -> str:
    """
    Normalize a region name for matching.

    Decomposes with NFKD (presentation forms become base letters), folds
    confusable Arabic/Persian codepoints, drops kashida and zero-width
    joiners, then recomposes with NFC so marks left adjacent by a dropped
    character are composed in the same pass. Whitespace runs collapse to a
    single space and the result is trimmed. The result is stable under
    repeated application.

    Args:
        name: Raw region name (may be None)

    Returns:
        Normalized name, or "" for empty input
    """
    if not name:
        return ""

    text = unicodedata.normalize("NFKD", str(name)).translate(_TRANSLATION)
    text = unicodedata.normalize("NFC", text)
    text = _WHITESPACE_RE.sub(" ", text)

    return text.strip()


def name_variants(*names: Optional[str]) -> List[str]:
    """
    All lookup keys for a set of names: each raw (trimmed) name and its
    normalized form, without duplicates and in a stable order.

    >>> name_variants("Kerman", "كرمان")
    ['Kerman', 'كرمان', 'کرمان']
    """
    keys: List[str] = []
    for name in names:
        if not name:
            continue
        for key in (str(name).strip(), normalize_name(name)):
            if key and key not in keys:
                keys.append(key)
    return keys


def names_match(left: Optional[str], right: Optional[str]) -> bool:
    """True when two names are equal after normalization."""
    if not left or not right:
        return False
    return normalize_name(left) == normalize_name(right)
