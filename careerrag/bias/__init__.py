from .categories import UNCATEGORIZED, classify_item, classify_text, extract_recommendations
from .detector import BiasDetector
from .types import BiasReport, CategoryDistribution, RecommendedItem, TeachingBiasResult

__all__ = [
    "BiasDetector",
    "BiasReport",
    "CategoryDistribution",
    "RecommendedItem",
    "TeachingBiasResult",
    "UNCATEGORIZED",
    "classify_item",
    "classify_text",
    "extract_recommendations",
]
