"""
Bias detection for career recommendations.

Two checks run over a list of RecommendedItem:

  teaching bias          share of teaching items (category Education /
                         Teaching / Academic, or a teaching word in title or
                         description) above ``teaching_threshold``
  category dominance     one category above ``dominance_threshold`` of items

severity = clamp((share - threshold) / (1 - threshold), 0, 1).

Counters are per detector instance: total_analyses grows once per teaching
check that had enough items; dominance is counted by analyze() under the
same condition, so no rate can exceed 100%.
reset_stats() puts everything back to zero.
"""

from __future__ import annotations

import logging
import math
import re
import threading
from typing import Dict, Iterable, List, Optional, Sequence

from .categories import UNCATEGORIZED, classify_item
from .types import BiasReport, CategoryDistribution, RecommendedItem, TeachingBiasResult

logger = logging.getLogger(__name__)

TEACHING_CATEGORIES = frozenset({"Education", "Teaching", "Academic"})
TEACHING_RE = re.compile(r"teach|education|instructor|professor|tutor|lecturer|educator", re.IGNORECASE)

STEM_SUBJECTS = (
    "mathematics",
    "math",
    "physical sciences",
    "physics",
    "chemistry",
    "information technology",
    "computer science",
    "engineering",
    "mathematical literacy",
    "technical mathematics",
)


def _pct(x: float) -> int:
    """Round a 0..1 share to a whole percentage, halves rounding up."""
    return int(math.floor(x * 100 + 0.5))


def is_teaching(item: RecommendedItem) -> bool:
    return (
        item.category in TEACHING_CATEGORIES
        or TEACHING_RE.search(item.title or "") is not None
        or TEACHING_RE.search(item.description or "") is not None
    )


class BiasDetector:
    def __init__(
        self,
        teaching_threshold: float = 0.6,
        dominance_threshold: float = 0.6,
        min_items: int = 3,
        category_table: Optional[Dict[str, List[str]]] = None,
    ):
        if not 0 <= teaching_threshold < 1 or not 0 <= dominance_threshold < 1:
            raise ValueError("bias thresholds must be in [0, 1)")
        self.teaching_threshold = teaching_threshold
        self.dominance_threshold = dominance_threshold
        self.min_items = min_items
        self.category_table = category_table
        self._lock = threading.Lock()
        self.reset_stats()

    # -------------------------
    # Checks
    # -------------------------
    def detect_teaching_bias(self, items: Sequence[RecommendedItem], threshold: Optional[float] = None) -> TeachingBiasResult:
        th = self.teaching_threshold if threshold is None else threshold
        items = [i for i in (items or []) if i is not None]
        if len(items) < self.min_items:
            return TeachingBiasResult(
                has_bias=False,
                severity=0.0,
                details={"reason": "insufficient_data", "item_count": len(items), "min_required": self.min_items},
            )

        teaching = [i for i in items if is_teaching(i)]
        share = len(teaching) / len(items)
        has_bias = share > th
        severity = min(max((share - th) / (1 - th), 0.0), 1.0) if has_bias else 0.0

        details = {
            "teaching_items": len(teaching),
            "total_items": len(items),
            "teaching_percentage": _pct(share),
            "threshold": _pct(th),
            "teaching_titles": [i.title for i in teaching][:5],
            "severity": _pct(severity),
            "bias_type": "teaching_dominance",
        }
        if has_bias:
            logger.warning(
                f"Teaching bias: {details['teaching_percentage']}% teaching items "
                f"(threshold {details['threshold']}%, severity {details['severity']}%)"
            )

        with self._lock:
            self._stats["total_analyses"] += 1
            if has_bias:
                self._stats["bias_detected"] += 1
                self._stats["teaching_bias_count"] += 1
        return TeachingBiasResult(has_bias=has_bias, severity=severity, details=details)

    def analyze_category_distribution(self, items: Sequence[RecommendedItem]) -> CategoryDistribution:
        items = [i for i in (items or []) if i is not None]
        if not items:
            return CategoryDistribution()

        counts: Dict[str, int] = {}
        titles: Dict[str, List[str]] = {}
        similarity: Dict[str, float] = {}
        for item in items:
            cat = classify_item(item, self.category_table) or UNCATEGORIZED
            counts[cat] = counts.get(cat, 0) + 1
            titles.setdefault(cat, []).append(item.title or "Untitled")
            similarity[cat] = similarity.get(cat, 0.0) + (item.similarity or 0.0)

        # stable sort keeps first-seen order among equal counts
        dominant, dominant_count = sorted(counts.items(), key=lambda kv: -kv[1])[0]
        share = dominant_count / len(items)
        diversity = len(counts) / min(len(items), 10)
        # too few items to call one category dominant
        has_dominance = len(items) >= self.min_items and share > self.dominance_threshold

        distribution = {
            cat: {
                "count": n,
                "percentage": _pct(n / len(items)),
                "items": titles[cat],
                "avg_similarity": round(similarity[cat] / n, 2),
            }
            for cat, n in counts.items()
        }
        logger.info(
            f"Category analysis: {len(counts)} categories across {len(items)} items, "
            f"dominant {dominant} ({_pct(share)}%), diversity {_pct(diversity)}%"
        )

        return CategoryDistribution(
            categories=tuple(counts),
            dominant_category=dominant,
            dominance_percentage=_pct(share),
            dominance_share=share,
            diversity=_pct(diversity),
            has_dominance=has_dominance,
            distribution=distribution,
        )

    def analyze(self, items: Sequence[RecommendedItem], subjects: Iterable[str] = (), source: str = "response") -> BiasReport:
        """Both checks in one report; has_bias if either fires.

        Below min_items the distribution is informational only and the
        report makes no bias claim.
        """
        items = [i for i in (items or []) if i is not None]
        enough = len(items) >= self.min_items
        teaching = self.detect_teaching_bias(items)
        distribution = self.analyze_category_distribution(items)
        dominance_severity = 0.0
        if enough and distribution.has_dominance:
            th = self.dominance_threshold
            dominance_severity = min(max((distribution.dominance_share - th) / (1 - th), 0.0), 1.0)
            with self._lock:
                self._stats["category_dominance_count"] += 1
        return BiasReport(
            has_bias=enough and (teaching.has_bias or distribution.has_dominance),
            severity=max(teaching.severity, dominance_severity) if enough else 0.0,
            teaching=teaching,
            distribution=distribution,
            stem_profile=self.is_stem_profile(subjects),
            source=source,
        )

    @staticmethod
    def is_stem_profile(subjects: Iterable[str]) -> bool:
        return any(stem in s.lower() for s in subjects or () for stem in STEM_SUBJECTS)

    # -------------------------
    # Statistics
    # -------------------------
    def get_bias_stats(self) -> Dict[str, int]:
        with self._lock:
            stats = dict(self._stats)
        total = stats["total_analyses"]
        for rate, count in (
            ("bias_detection_rate", "bias_detected"),
            ("teaching_bias_rate", "teaching_bias_count"),
            ("category_dominance_rate", "category_dominance_count"),
        ):
            stats[rate] = _pct(stats[count] / total) if total else 0
        return stats

    def reset_stats(self) -> None:
        with self._lock:
            self._stats = {
                "total_analyses": 0,
                "bias_detected": 0,
                "teaching_bias_count": 0,
                "category_dominance_count": 0,
            }
