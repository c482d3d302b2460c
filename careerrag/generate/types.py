# Typed dataclasses shared across generator modules.

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class GenerationState(str, Enum):
    PENDING = "pending"
    ATTEMPTING = "attempting"
    RETRYING = "retrying"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class ModelParams:
    """LLM parameters per request."""
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None


@dataclass(frozen=True)
class GenerationOptions:
    max_retries: int = 2
    timeout_ms: int = 10_000
    temperature: float = 0.3
    max_tokens: int = 1000


@dataclass(frozen=True)
class GenerationResult:
    """Outcome of one generate() call. Always returned, never raised."""
    success: bool
    response: str = ""
    error: Optional[str] = None
    retry_count: int = 0
    elapsed_ms: float = 0.0
    footer_present: bool = False
    attempts: int = 0
    model: str = ""
    states: Tuple[GenerationState, ...] = ()
    fallback: bool = False
    bias_report: Optional[Any] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
