"""
Career guidance generation with bounded retries.

Generator.generate() never raises: every outcome, including exhausted
retries, comes back as a GenerationResult. Each attempt runs the provider
call on a one-shot worker thread so timeout_ms is enforced even when the
provider ignores it. Failed attempts (provider errors, timeouts, empty
output) move the RetryStateMachine to RETRYING and wait backoff.delay(n)
seconds before the next attempt.

The disclaimer footer is requested in the prompt but not enforced: a reply
without the marker still succeeds, with footer_present=False.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeout
from typing import Callable, Optional

from careerrag.errors import ProviderError, ProviderTimeout
from careerrag.profile.types import StudentProfile
from careerrag.search.types import ContextBundle

from .prompts import build_prompt, load_prompt_config
from .retry import ExponentialBackoff, RetryStateMachine
from .types import GenerationOptions, GenerationResult, GenerationState, ModelParams

logger = logging.getLogger(__name__)


class Generator:
    def __init__(
        self,
        client,
        config_path: Optional[str] = None,
        options: Optional[GenerationOptions] = None,
        backoff=None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
        disclaimer_marker: str = "⚠️",
    ):
        self.client = client
        self.cfg = load_prompt_config(config_path)
        self.options = options or GenerationOptions(
            temperature=self.cfg.get("temperature", 0.3),
            max_tokens=self.cfg.get("max_tokens", 1000),
        )
        self.backoff = backoff or ExponentialBackoff()
        self.sleep = sleep
        self.clock = clock
        self.disclaimer_marker = disclaimer_marker

    @property
    def model(self) -> str:
        return getattr(self.client, "model", type(self.client).__name__)

    def _call(self, prompt: str, timeout_ms: int, params: ModelParams) -> str:
        pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="generate")
        try:
            future = pool.submit(self.client.complete, prompt, timeout_ms, params)
            try:
                return future.result(timeout=timeout_ms / 1000)
            except FuturesTimeout as e:
                future.cancel()
                raise ProviderTimeout(f"generation exceeded {timeout_ms} ms") from e
        finally:
            # a hung provider call must not hold up the next attempt
            pool.shutdown(wait=False)

    def generate(
        self,
        query: str,
        context: ContextBundle,
        profile: StudentProfile,
        options: Optional[GenerationOptions] = None,
    ) -> GenerationResult:
        opts = options or self.options
        machine = RetryStateMachine(opts.max_retries)
        params = ModelParams(temperature=opts.temperature, max_tokens=opts.max_tokens)
        start = self.clock()
        text = ""

        while not machine.done:
            attempt = machine.begin_attempt()
            prompt = build_prompt(query, context, profile, self.cfg, attempt=attempt - 1)
            try:
                text = self._call(prompt, opts.timeout_ms, params)
                if not (text or "").strip():
                    raise ProviderError("provider returned an empty response")
            except Exception as e:
                logger.warning(f"Generation attempt {attempt}/{opts.max_retries + 1} failed: {e}")
                if machine.fail(e):
                    self.sleep(self.backoff.delay(machine.attempts))
                continue
            machine.succeed()

        elapsed_ms = (self.clock() - start) * 1000.0
        if machine.state is GenerationState.SUCCEEDED:
            footer = self.disclaimer_marker in text
            if not footer:
                logger.warning("Generated response is missing the verification footer")
            logger.info(f"Generated {len(text)} chars with {self.model} in {elapsed_ms:.0f} ms ({machine.retries} retries)")
            return GenerationResult(
                success=True,
                response=text,
                retry_count=machine.retries,
                elapsed_ms=elapsed_ms,
                footer_present=footer,
                attempts=machine.attempts,
                model=self.model,
                states=tuple(machine.history),
            )

        logger.error(f"Generation failed after {machine.attempts} attempts: {machine.last_error}")
        return GenerationResult(
            success=False,
            error=str(machine.last_error) or type(machine.last_error).__name__,
            retry_count=machine.retries,
            elapsed_ms=elapsed_ms,
            attempts=machine.attempts,
            model=self.model,
            states=tuple(machine.history),
        )
