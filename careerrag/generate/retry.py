"""
Retry bookkeeping for generation.

RetryStateMachine tracks one generate() call:

    PENDING -> ATTEMPTING -> SUCCEEDED
                          -> RETRYING -> ATTEMPTING ...
                          -> FAILED        (attempts > max_retries)

Backoff strategies return the delay (seconds) before retry ``n`` (1-based);
sleeping is left to the caller so tests can inject a fake sleep/clock.
"""

from __future__ import annotations

from typing import List, Optional

from .types import GenerationState

_TRANSITIONS = {
    GenerationState.PENDING: {GenerationState.ATTEMPTING},
    GenerationState.ATTEMPTING: {GenerationState.SUCCEEDED, GenerationState.RETRYING, GenerationState.FAILED},
    GenerationState.RETRYING: {GenerationState.ATTEMPTING},
    GenerationState.SUCCEEDED: set(),
    GenerationState.FAILED: set(),
}


class ExponentialBackoff:
    """delay(n) = base * factor ** n, capped at max_seconds."""

    def __init__(self, base_seconds: float = 1.0, factor: float = 2.0, max_seconds: float = 30.0):
        self.base_seconds = base_seconds
        self.factor = factor
        self.max_seconds = max_seconds

    def delay(self, retry_number: int) -> float:
        return min(self.max_seconds, self.base_seconds * self.factor ** retry_number)


class NoBackoff:
    def delay(self, retry_number: int) -> float:
        return 0.0


class RetryStateMachine:
    def __init__(self, max_retries: int):
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        self.max_retries = max_retries
        self.state = GenerationState.PENDING
        self.history: List[GenerationState] = [self.state]
        self.attempts = 0
        self.last_error: Optional[BaseException] = None

    def _move(self, new: GenerationState) -> None:
        if new not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"illegal transition {self.state.value} -> {new.value}")
        self.state = new
        self.history.append(new)

    @property
    def done(self) -> bool:
        return self.state in (GenerationState.SUCCEEDED, GenerationState.FAILED)

    @property
    def retries(self) -> int:
        return max(0, self.attempts - 1)

    def begin_attempt(self) -> int:
        self._move(GenerationState.ATTEMPTING)
        self.attempts += 1
        return self.attempts

    def succeed(self) -> None:
        self._move(GenerationState.SUCCEEDED)

    def fail(self, error: BaseException) -> bool:
        """Record a failed attempt. True when another attempt is allowed."""
        self.last_error = error
        if self.attempts <= self.max_retries:
            self._move(GenerationState.RETRYING)
            return True
        self._move(GenerationState.FAILED)
        return False
