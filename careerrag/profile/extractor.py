"""
Profile extraction.

Turns a free-text question (plus optional structured form fields) into a
StudentProfile. Free text is read with a small set of regex heuristics:

- strengths / "good at X"          -> subjects
- weaknesses / "hate X"            -> weaknesses
- "interested in X" / "love X"     -> interests
- affordability phrases            -> constraints.budget (low | medium)
- "grade 11" etc.                  -> grade

Structured fields always win over what is guessed from text; subjects and
interests from both sources are unioned.
"""

from __future__ import annotations

import logging
import re
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

from careerrag.errors import EmptyInputError, InputError
from careerrag.profile.types import AssessmentDepth, Constraints, MarkRange, StudentProfile

logger = logging.getLogger(__name__)

_SUBJECT_ALIASES = {
    "math": "mathematics",
    "maths": "mathematics",
    "mathematics": "mathematics",
    "physics": "physics",
    "physical science": "physics",
    "science": "science",
    "life science": "science",
    "english": "english",
    "language": "english",
    "accounting": "accounting",
    "business": "accounting",
}

_STRENGTH_RE = re.compile(
    r"(?:good at|strong in|love|excel at)\s+"
    r"(maths|mathematics|math|physical science|physics|life science|science|english|language|accounting|business)"
)
_WEAKNESS_RE = re.compile(
    r"(?:hate|bad at|struggle with|weak in|don't have)\s+"
    r"(maths|mathematics|math|physical science|physics|life science|science)"
)

_INTEREST_RE = re.compile(r"(?:interested in|love|passionate about)\s+([a-z]+)")
_INTEREST_ALIASES = {
    "technology": "technology", "tech": "technology", "computers": "technology",
    "coding": "technology", "programming": "technology",
    "business": "business", "entrepreneurship": "business", "commerce": "business",
    "healthcare": "healthcare", "medicine": "healthcare", "nursing": "healthcare",
    "doctor": "healthcare",
    "engineering": "engineering", "building": "engineering", "design": "engineering",
    "data": "data", "analytics": "data", "statistics": "data",
}

_LOW_BUDGET = [
    r"can'?t afford", r"cannot afford", r"can not afford", r"too expensive",
    r"no money", r"poor family", r"low income", r"need financial help",
    r"need funding", r"need (?:a )?bursary", r"need (?:a )?scholarship",
    r"financial (?:difficulty|struggle)",
]
_MEDIUM_BUDGET = [
    r"limited budget", r"tight budget", r"looking for affordable", r"cost is a concern",
]
_LOW_BUDGET_RE = re.compile("|".join(_LOW_BUDGET))
_MEDIUM_BUDGET_RE = re.compile("|".join(_MEDIUM_BUDGET))
_GRADE_RE = re.compile(r"\bgrade\s*(10|11|12)\b")
_MARK_BAND_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*-\s*(\d+(?:\.\d+)?)\s*%?\s*$")

BUDGET_TIERS = ("low", "medium", "high")


class StructuredProfileFields(BaseModel):
    """Optional assessment-form fields that accompany a query."""
    grade: Optional[int] = None
    subjects: List[str] = Field(default_factory=list)
    marks: Dict[str, Union[float, str]] = Field(default_factory=dict)
    interests: List[str] = Field(default_factory=list)
    budget: Optional[str] = None
    location: Optional[str] = None
    deadline: Optional[str] = None
    assessment_depth: AssessmentDepth = AssessmentDepth.QUICK
    curriculum: str = "CAPS"

    @field_validator("grade")
    @classmethod
    def _grade_in_range(cls, v):
        if v is not None and v not in (10, 11, 12):
            raise ValueError("grade must be 10, 11 or 12")
        return v

    @field_validator("budget")
    @classmethod
    def _known_budget(cls, v):
        if v is None:
            return v
        v = v.strip().lower()
        if v not in BUDGET_TIERS:
            raise ValueError(f"budget must be one of {BUDGET_TIERS}")
        return v


def parse_mark(value) -> Optional[MarkRange]:
    """Exact percentage or "low-high" band; None when unusable."""
    if isinstance(value, (int, float)):
        low = high = float(value)
    elif isinstance(value, str):
        m = _MARK_BAND_RE.match(value)
        if m:
            low, high = float(m.group(1)), float(m.group(2))
        else:
            try:
                low = high = float(value.strip().rstrip("%"))
            except ValueError:
                return None
    else:
        return None
    if low > high:
        low, high = high, low
    if low < 0 or high > 100:
        return None
    return MarkRange(low, high)


def prioritize_modules(budget: Optional[str], has_subject_signal: bool, interests) -> tuple:
    """Order the knowledge modules this learner should see first."""
    modules = []
    if budget in ("low", "medium"):
        modules.append("bursaries")
    if has_subject_signal:
        modules.append("subject_career_mapping")
    modules.append("careers")
    if "technology" in interests or "data" in interests:
        modules.append("4ir_emerging_jobs")
    modules.append("sa_universities")
    if "bursaries" not in modules:
        modules.append("bursaries")
    return tuple(dict.fromkeys(modules))


class ProfileExtractor:
    def extract(self, query: str, fields: Optional[Union[StructuredProfileFields, dict]] = None) -> StudentProfile:
        if query is None or not query.strip():
            raise EmptyInputError("query must not be empty")
        if isinstance(fields, dict):
            try:
                fields = StructuredProfileFields(**fields)
            except ValidationError as e:
                raise InputError(f"invalid profile fields: {e}") from e

        text = query.lower()
        subjects = {_SUBJECT_ALIASES[m] for m in _STRENGTH_RE.findall(text)}
        weaknesses = {_SUBJECT_ALIASES[m] for m in _WEAKNESS_RE.findall(text)}
        # "love maths" is a strength, not an interest
        interests = {_INTEREST_ALIASES[w] for w in _INTEREST_RE.findall(text) if w in _INTEREST_ALIASES}

        budget = None
        if _LOW_BUDGET_RE.search(text):
            budget = "low"
        elif _MEDIUM_BUDGET_RE.search(text):
            budget = "medium"

        grade = None
        m = _GRADE_RE.search(text)
        if m:
            grade = int(m.group(1))

        marks = {}
        location = deadline = None
        depth = AssessmentDepth.QUICK
        curriculum = "CAPS"
        if fields is not None:
            subjects |= {s.strip().lower() for s in fields.subjects if s and s.strip()}
            interests |= {s.strip().lower() for s in fields.interests if s and s.strip()}
            for subject, raw in fields.marks.items():
                mark = parse_mark(raw)
                if mark is None:
                    logger.warning(f"Ignoring unusable mark for {subject!r}: {raw!r}")
                    continue
                marks[subject.strip().lower()] = mark
            grade = fields.grade if fields.grade is not None else grade
            budget = fields.budget or budget
            location = fields.location
            deadline = fields.deadline
            depth = fields.assessment_depth
            curriculum = fields.curriculum

        profile = StudentProfile(
            grade=grade,
            subjects=frozenset(subjects),
            marks=marks,
            interests=frozenset(interests),
            constraints=Constraints(budget=budget, location=location, deadline=deadline),
            assessment_depth=depth,
            weaknesses=frozenset(weaknesses),
            priority_modules=prioritize_modules(budget, bool(subjects or weaknesses), interests),
            curriculum=curriculum,
        )
        logger.info(
            f"Profile: grade={profile.grade} subjects={sorted(profile.subjects)} "
            f"interests={sorted(profile.interests)} budget={budget}"
        )
        return profile
