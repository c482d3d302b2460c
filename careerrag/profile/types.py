# Data models for the student profile.
# A profile is built once per request and never mutated afterwards.

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional, Tuple


class AssessmentDepth(str, Enum):
    QUICK = "quick"
    COMPREHENSIVE = "comprehensive"


@dataclass(frozen=True)
class MarkRange:
    """A percentage mark, either exact (low == high) or a band like 60-69."""
    low: float
    high: float

    @property
    def is_exact(self) -> bool:
        return self.low == self.high

    @property
    def midpoint(self) -> float:
        return (self.low + self.high) / 2


@dataclass(frozen=True)
class Constraints:
    budget: Optional[str] = None  # low | medium | high
    location: Optional[str] = None
    deadline: Optional[str] = None


@dataclass(frozen=True)
class ApsSummary:
    """Admission Point Score derived from the marks on the profile."""
    points: int
    average_percentage: float
    subject_count: int
    projected_points: int
    university_eligible: bool


def aps_points(percentage: float) -> int:
    if percentage >= 80:
        return 7
    if percentage >= 70:
        return 6
    if percentage >= 60:
        return 5
    if percentage >= 50:
        return 4
    if percentage >= 40:
        return 3
    if percentage >= 30:
        return 2
    return 1


@dataclass(frozen=True)
class StudentProfile:
    grade: Optional[int] = None
    subjects: frozenset = frozenset()
    marks: Mapping[str, MarkRange] = field(default_factory=dict)
    interests: frozenset = frozenset()
    constraints: Constraints = Constraints()
    assessment_depth: AssessmentDepth = AssessmentDepth.QUICK
    weaknesses: frozenset = frozenset()
    priority_modules: Tuple[str, ...] = ()
    curriculum: str = "CAPS"

    def __post_init__(self):
        # freeze the marks mapping so the record is immutable end to end
        object.__setattr__(self, "marks", MappingProxyType(dict(self.marks)))

    @property
    def aps(self) -> Optional[ApsSummary]:
        if not self.marks:
            return None
        mids = [m.midpoint for m in self.marks.values()]
        points = sum(aps_points(p) for p in mids)
        projected = points
        if self.grade == 11:
            # grade 11 learners typically improve a little by final exams
            projected = min(42, round(points * 1.075))
        return ApsSummary(
            points=points,
            average_percentage=round(sum(mids) / len(mids), 1),
            subject_count=len(mids),
            projected_points=projected,
            university_eligible=points >= 21,
        )

    def summary(self) -> str:
        lines = ["Student Profile:"]
        if self.grade is not None:
            lines.append(f"- Grade: {self.grade} ({self.curriculum})")
        if self.subjects:
            lines.append(f"- Subjects / strengths: {', '.join(sorted(self.subjects))}")
        if self.weaknesses:
            lines.append(f"- Struggles with: {', '.join(sorted(self.weaknesses))}")
        if self.marks:
            marks = ", ".join(
                f"{s} {int(m.low)}%" if m.is_exact else f"{s} {int(m.low)}-{int(m.high)}%"
                for s, m in sorted(self.marks.items())
            )
            lines.append(f"- Marks: {marks}")
        aps = self.aps
        if aps is not None:
            lines.append(f"- APS: {aps.points} (projected {aps.projected_points})")
        if self.interests:
            lines.append(f"- Interests: {', '.join(sorted(self.interests))}")
        c = self.constraints
        if c.budget:
            lines.append(f"- Budget: {c.budget}")
        if c.location:
            lines.append(f"- Location: {c.location}")
        if c.deadline:
            lines.append(f"- Deadline: {c.deadline}")
        if self.priority_modules:
            lines.append(f"- Priority modules: {', '.join(self.priority_modules)}")
        return "\n".join(lines)
