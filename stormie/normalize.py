"""
Category normalizer
===================

The EVTYPE column is free text typed by many offices over several decades, so
the same category shows up as "TSTM WIND", "Tstm Wind", "TSTM WIND/HAIL" ...

`normalize_category` lowercases the text and collapses every run of
punctuation or blank characters into a single space:

    "Frost/Freeze"   -> "frost freeze"
    "FROST\\FREEZE"  -> "frost freeze"
    "Frost–Freeze"   -> "frost freeze"   (en dash)

It does NOT merge categories that differ lexically ("flood" and "flash flood"
stay separate), and it does not trim leading/trailing spaces.
"""

from __future__ import annotations
from typing import Dict, Iterable
import re

from .models import StormEvent

# Punctuation and symbols in any script (anything neither a word character nor
# whitespace), the underscore, and the blank characters space and tab.
_SEPARATORS_RE = re.compile(r"(?:[^\w\s]|[_ \t])+")


def normalize_category(text: str) -> str:
    """Return the canonical (lowercase, punctuation-collapsed) category key."""
    return _SEPARATORS_RE.sub(" ", str(text).lower())


def category_cardinality(events: Iterable[StormEvent]) -> Dict[str, int]:
    """Count distinct categories before and after normalization."""
    raw = set()
    normalized = set()
    for e in events:
        raw.add(e.raw_category)
        normalized.add(e.category if e.category is not None else normalize_category(e.raw_category))
    return {"raw": len(raw), "normalized": len(normalized)}
