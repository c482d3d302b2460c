# Prompt assembly for career guidance generation.

from __future__ import annotations

import os
from typing import Any, Dict, Optional

import yaml

from careerrag.profile.types import StudentProfile
from careerrag.search.types import ContextBundle

DEFAULT_CONFIG_PATH = os.path.join(os.path.dirname(__file__), "config.yaml")

BASE_GUARDRAILS = """\
Answer using only the provided context.
If the context does not contain the answer, say:
"I don't have verified information on that."
"""


def load_prompt_config(path: Optional[str] = None) -> Dict[str, Any]:
    path = path or DEFAULT_CONFIG_PATH
    if not os.path.exists(path):
        return {}
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def build_system_prompt(cfg: Dict[str, Any]) -> str:
    base = (cfg.get("system_prompt") or "").strip()
    guardrails = (cfg.get("guardrails") or BASE_GUARDRAILS).strip()
    return f"{base}\n\n{guardrails}".strip()


def build_prompt(
    query: str,
    context: ContextBundle,
    profile: StudentProfile,
    cfg: Dict[str, Any],
    attempt: int = 0,
) -> str:
    """System text, profile, frameworks, context excerpts and question in one prompt."""
    parts = [build_system_prompt(cfg), profile.summary()]

    if context.frameworks:
        names = ", ".join(f.name for f in context.frameworks)
        parts.append(f"Decision frameworks in the context: {names}. Use them where they help the student.")

    parts.append(f"Context:\n{context.render()}")
    parts.append(f"Student question:\n{query}")

    footer = (cfg.get("footer") or "").strip()
    if footer:
        instruction = cfg.get("footer_instruction", "End your answer with:")
        parts.append(f"{instruction}\n\n{footer}")

    if attempt > 0 and cfg.get("retry_reminder"):
        parts.append(cfg["retry_reminder"].strip())

    return "\n\n".join(p for p in parts if p)
