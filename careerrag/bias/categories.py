"""
Heuristics for turning free-text recommendations into categorised items.

classify_item() picks a category in three steps: the item's own category if
it has one, else the keyword table in categories.yaml (most hits wins, ties
by table order), else "Uncategorized". extract_recommendations() pulls
career names out of generated prose with a pair of phrase patterns; it is
fuzzy by nature, so each item carries a confidence that falls with its
position in the text.
"""

from __future__ import annotations

import os
import re
from typing import Dict, List, Optional

import yaml

from careerrag.search.text import mentions

from .types import RecommendedItem

UNCATEGORIZED = "Uncategorized"
DEFAULT_TABLE_PATH = os.path.join(os.path.dirname(__file__), "categories.yaml")

_END = r"(?=\.|,|\s+because|\s+which|\s+that)"
CAREER_PATTERNS = [
    re.compile(r"(?i:consider|recommend|explore|pursue)\s+(?i:a\s+career\s+(?:in|as)\s+)?([A-Z][a-zA-Z\s]+?)" + _END),
    re.compile(r"(?i:become|work\s+as)\s+(?i:an?)\s+([A-Z][a-zA-Z\s]+?)" + _END),
]
MAX_EXTRACTED = 5

_table_cache: Dict[str, Dict[str, List[str]]] = {}


def load_category_table(path: Optional[str] = None) -> Dict[str, List[str]]:
    path = path or DEFAULT_TABLE_PATH
    if path not in _table_cache:
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
        _table_cache[path] = {cat: [str(k).lower() for k in (kws or [])] for cat, kws in raw.items()}
    return _table_cache[path]


def classify_text(text: str, table: Optional[Dict[str, List[str]]] = None) -> str:
    table = table if table is not None else load_category_table()
    best, best_hits = UNCATEGORIZED, 0
    for category, keywords in table.items():
        hits = sum(1 for kw in keywords if mentions(text, kw))
        if hits > best_hits:
            best, best_hits = category, hits
    return best


def classify_item(item: RecommendedItem, table: Optional[Dict[str, List[str]]] = None) -> str:
    if item.category:
        return item.category
    return classify_text(f"{item.title} {item.description}", table)


def _sentence_with(text: str, name: str) -> str:
    for sentence in re.split(r"(?<=[.!?])\s+", text):
        if name in sentence:
            return sentence.strip()[:200]
    return ""


def extract_recommendations(text: str, table: Optional[Dict[str, List[str]]] = None) -> List[RecommendedItem]:
    """Career names mentioned as recommendations in ``text``, first five by position."""
    found: Dict[str, int] = {}
    for pattern in CAREER_PATTERNS:
        for m in pattern.finditer(text or ""):
            name = " ".join(m.group(1).split())
            if 3 < len(name) < 50 and name not in found:
                found[name] = m.start(1)

    items = []
    for i, name in enumerate(sorted(found, key=found.get)[:MAX_EXTRACTED]):
        description = _sentence_with(text, name)
        items.append(
            RecommendedItem(
                title=name,
                description=description,
                category=classify_text(f"{name} {description}", table),
                confidence=(90 - i * 5) / 100,
            )
        )
    return items
