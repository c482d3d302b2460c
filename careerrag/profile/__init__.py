# Student profile parsing and the immutable profile record.

from .extractor import ProfileExtractor, StructuredProfileFields
from .types import AssessmentDepth, Constraints, MarkRange, StudentProfile

__all__ = [
    "ProfileExtractor",
    "StructuredProfileFields",
    "AssessmentDepth",
    "Constraints",
    "MarkRange",
    "StudentProfile",
]
