"""
High-stakes query filter.

Some questions (leaving school, large loans, medical or legal eligibility)
should not be answered from retrieved context at all. check_query() matches
them against fixed patterns and returns a vetted referral instead; the
pipeline then skips retrieval and generation.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Pattern

SAFETY_FOOTER = (
    "\n\n---\n\n⚠️ **Verify before you decide:**\n"
    "1. Check with your school counselor\n"
    "2. Talk to your parents/guardians\n"
    "3. Contact the official authority (listed above)\n\n"
    "This is a serious decision. Get personalized guidance from people who know your situation."
)


@dataclass(frozen=True)
class SafetyRule:
    category: str
    patterns: List[Pattern]
    response: str


@dataclass(frozen=True)
class SafetyMatch:
    category: str
    response: str


def _compile(*patterns: str) -> List[Pattern]:
    return [re.compile(p, re.IGNORECASE) for p in patterns]


SAFETY_RULES: List[SafetyRule] = [
    SafetyRule(
        "dropping_out",
        _compile(
            r"(should i|can i|want to|thinking of|considering).*(drop out|leave school|quit school|stop school)",
            r"do i need.*(matric|grade 12|to finish school)",
            r"(drop|leave|quit).*(school|matric)",
            r"dropping out",
        ),
        "I don't have verified information on leaving school before completing matric. This is a serious "
        "decision with long-term consequences. Please speak with your school principal, parents/guardians, "
        "and a career counselor before considering this option.",
    ),
    SafetyRule(
        "no_matric",
        _compile(
            r"(what can i do|careers|jobs|options).*(without|with no|if i don't have).*(matric|grade 12)",
            r"(failed|didn't pass|no).* matric",
            r"only grade (9|10|11)\b",
            r"without matric",
            r"no matric",
        ),
        "I don't have verified information on pathways without matric completion. Please verify your options "
        "with your school's career counselor or contact the Department of Higher Education and Training "
        "(DHET) at www.dhet.gov.za.",
    ),
    SafetyRule(
        "large_financial_decision",
        _compile(
            r"should i.*(take|get|apply for).*(loan|student loan|debt)",
            r"(this course|this program).*worth.*R\d+",
            r"should i pay.*R\d+",
            r"\bR[1-9]\d{4,}",
            r"student loan",
        ),
        "I don't have verified information on financial decisions of this scale. Please consult with your "
        "parents/guardians and verify costs directly with the institution. For funding options, contact NSFAS "
        "at www.nsfas.org.za or speak with your school's financial aid advisor.",
    ),
    SafetyRule(
        "legal_requirements",
        _compile(
            r"\bdo i qualify for\s+nsfas",
            r"\bnsfas\s+(eligibility|requirements|application)",
            r"\b(can i|am i allowed to)\s+work\s+(while studying|as a student)",
            r"\b(visa|work permit|legal)\s+requirements",
            r"\blegal\s+(requirements|rules|regulations)",
        ),
        "I don't have verified information on legal requirements and eligibility. Please verify directly with:\n"
        "- NSFAS eligibility: www.nsfas.org.za or call 08000 67327\n"
        "- Work permits: Department of Home Affairs\n"
        "- Study requirements: The specific institution you're applying to\n"
        "- Legal questions: Your school counselor or the relevant government department",
    ),
    SafetyRule(
        "medical_requirements",
        _compile(
            r"\bcan i be a\s+(doctor|nurse|medical)\s+with\s+(my|this|these)",
            r"\bwill\s+(my|a|this)\s+[\w\s]+(condition|disability|illness)\s+stop me",
            r"\bdo i need to disclose\s+(my|a)\s+[\w\s]+(condition|medical)",
            r"\bmedical\s+requirements\s+for",
        ),
        "I don't have verified information on medical requirements for healthcare careers. Please verify "
        "directly with:\n"
        "- The Health Professions Council of South Africa (HPCSA): www.hpcsa.co.za\n"
        "- The specific university's admissions office\n"
        "- A qualified career counselor\n"
        "- Your school's guidance department",
    ),
    SafetyRule(
        "timing_decisions",
        _compile(
            r"\bshould i\s+(take|have)\s+a\s+gap year",
            r"\bam i\s+(too young|too old)\s+for",
            r"\bshould i wait\s+(before|to)\s+(study|apply)",
            r"\b(defer|postpone|delay)\s+(my|studying|university)",
        ),
        "I don't have verified information on timing decisions like gap years or deferring studies. This is "
        "a personal choice that depends on your specific circumstances, goals, and readiness. Please discuss "
        "with your parents/guardians, teachers, and school counselor who know your situation.",
    ),
]


def check_query(query: str, rules: Optional[List[SafetyRule]] = None) -> Optional[SafetyMatch]:
    """First matching rule wins; None when the query is safe to answer."""
    for rule in rules if rules is not None else SAFETY_RULES:
        if any(p.search(query or "") for p in rule.patterns):
            return SafetyMatch(category=rule.category, response=rule.response + SAFETY_FOOTER)
    return None

