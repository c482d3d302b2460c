# Small, stable text helpers shared by keyword search and reranking.

from __future__ import annotations

import re
from typing import FrozenSet

_WORD_RE = re.compile(r"[0-9A-Za-z_]+")

STOP_WORDS = frozenset(
    """
    a an and are as at be but by can could do does for from have how i if in
    into is it its me my of on or should so that the their them then there
    these they this to want was we what when where which who will with would
    you your am im
    """.split()
)


def tokenize(text: str) -> list:
    return [m.group(0).lower() for m in _WORD_RE.finditer(text or "")]


def query_terms(query: str) -> FrozenSet[str]:
    """Distinct lower-cased query words minus stop words."""
    return frozenset(t for t in tokenize(query) if t not in STOP_WORDS)


def keyword_overlap(terms: FrozenSet[str], chunk) -> float:
    """Share of query terms found in the chunk text or tags, in [0, 1]."""
    if not terms:
        return 0.0
    words = set(tokenize(chunk.text))
    for tag in chunk.tags:
        words.update(tokenize(tag))
    return len(terms & words) / len(terms)


def mentions(text: str, phrase: str) -> bool:
    """Whole-word, case-insensitive phrase match."""
    phrase = phrase.strip().lower()
    if not phrase:
        return False
    return re.search(rf"\b{re.escape(phrase)}\b", (text or "").lower()) is not None
