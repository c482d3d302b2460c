# Offline generation client for local dev and tests: no API calls.

from typing import Optional

from ..types import ModelParams


class EchoDevClient:
    def __init__(self, footer: str = "⚠️ **Verify before you decide:** check with your school counselor."):
        self.model = "echo-dev"
        self.footer = footer

    def complete(self, prompt: str, timeout_ms: int, params: Optional[ModelParams] = None) -> str:
        question = prompt.rsplit("Student question:\n", 1)[-1].split("\n\n", 1)[0].strip()
        return f"[ECHO RESPONSE]\n{question or '(no question)'}\n\n{self.footer}"
