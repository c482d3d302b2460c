# ===============================================
# tests/test_generator.py
# Retry state machine, backoff, timeouts, footer.
# ===============================================

import threading

import pytest

from careerrag.errors import ProviderTimeout, ProviderUnavailable
from careerrag.generate import (
    ExponentialBackoff,
    GenerationOptions,
    GenerationState,
    Generator,
    NoBackoff,
    RetryStateMachine,
    check_query,
)
from careerrag.generate.clients import EchoDevClient
from careerrag.profile import StudentProfile
from careerrag.search import ContextAssembler

from conftest import FOOTER, ScriptedClient, make_candidate

S = GenerationState
PROFILE = StudentProfile(grade=12, subjects=frozenset({"mathematics"}))


@pytest.fixture
def bundle():
    cands = [make_candidate("c1", "Engineers use mathematics daily.", source="careers.md")]
    return ContextAssembler().assemble(cands, PROFILE)


def _generator(client, clock, **kw):
    return Generator(client, sleep=clock.sleep, clock=clock, **kw)


def test_success_first_try(bundle, clock):
    client = ScriptedClient([f"Become an engineer.\n\n{FOOTER}"])
    result = _generator(client, clock).generate("what should I study?", bundle, PROFILE)
    assert result.success
    assert result.footer_present
    assert result.retry_count == 0
    assert result.attempts == 1
    assert result.states == (S.PENDING, S.ATTEMPTING, S.SUCCEEDED)
    assert clock.sleeps == []
    prompt = client.prompts[0]
    assert "[c1] [Source: careers.md" in prompt
    assert "Student Profile:" in prompt
    assert "what should I study?" in prompt


def test_retries_then_succeeds_with_backoff(bundle, clock):
    client = ScriptedClient([ProviderUnavailable("503"), ProviderTimeout("slow"), f"ok {FOOTER}"])
    result = _generator(client, clock).generate("q", bundle, PROFILE)
    assert result.success
    assert result.retry_count == 2
    assert result.attempts == 3
    assert clock.sleeps == [2.0, 4.0]
    assert result.elapsed_ms == pytest.approx(6000.0)
    assert result.states == (
        S.PENDING, S.ATTEMPTING, S.RETRYING, S.ATTEMPTING, S.RETRYING, S.ATTEMPTING, S.SUCCEEDED,
    )
    # retry attempts carry the stricter reminder
    assert "could not be used" not in client.prompts[0]
    assert "could not be used" in client.prompts[1]


def test_exhausted_retries_never_raise(bundle, clock):
    client = ScriptedClient([ProviderUnavailable("down")] * 3)
    result = _generator(client, clock).generate("q", bundle, PROFILE)
    assert result.success is False
    assert "down" in result.error
    assert result.attempts == 3
    assert result.retry_count == 2
    assert result.states[-1] is S.FAILED
    assert len(clock.sleeps) == 2


def test_zero_retries_means_one_attempt(bundle, clock):
    client = ScriptedClient([ProviderUnavailable("down"), "never used"])
    result = _generator(client, clock).generate("q", bundle, PROFILE, GenerationOptions(max_retries=0))
    assert result.success is False
    assert result.attempts == 1
    assert len(client.prompts) == 1
    assert clock.sleeps == []


def test_empty_output_counts_as_failure(bundle, clock):
    client = ScriptedClient(["   ", f"real answer {FOOTER}"])
    result = _generator(client, clock, backoff=NoBackoff()).generate("q", bundle, PROFILE)
    assert result.success
    assert result.retry_count == 1
    assert clock.sleeps == [0.0]


def test_missing_footer_is_soft(bundle, clock):
    result = _generator(ScriptedClient(["Study engineering."]), clock).generate("q", bundle, PROFILE)
    assert result.success is True
    assert result.footer_present is False


def test_timeout_is_enforced(bundle, clock):
    release = threading.Event()

    class Hanging:
        model = "hanging"

        def complete(self, prompt, timeout_ms, params=None):
            release.wait(5)
            return "too late"

    try:
        result = _generator(Hanging(), clock).generate("q", bundle, PROFILE, GenerationOptions(max_retries=0, timeout_ms=50))
    finally:
        release.set()
    assert result.success is False
    assert "50 ms" in result.error


def test_echo_client_round_trip(bundle, clock):
    result = _generator(EchoDevClient(), clock).generate("Which bursaries exist?", bundle, PROFILE)
    assert result.success
    assert result.model == "echo-dev"
    assert "Which bursaries exist?" in result.response
    assert result.footer_present


def test_backoff_schedule():
    b = ExponentialBackoff(base_seconds=1.0, factor=2.0, max_seconds=5.0)
    assert [b.delay(n) for n in (1, 2, 3)] == [2.0, 4.0, 5.0]


def test_state_machine_rejects_illegal_moves():
    m = RetryStateMachine(max_retries=1)
    with pytest.raises(RuntimeError):
        m.succeed()
    m.begin_attempt()
    m.succeed()
    assert m.done
    with pytest.raises(RuntimeError):
        m.begin_attempt()


@pytest.mark.parametrize(
    "query, category",
    [
        ("Should I drop out of school to work?", "dropping_out"),
        ("What jobs can I get without matric?", "no_matric"),
        ("Should I take a student loan of R80000?", "large_financial_decision"),
        ("Do I qualify for NSFAS?", "legal_requirements"),
        ("Can I be a nurse with my asthma?", "medical_requirements"),
        ("Should I take a gap year?", "timing_decisions"),
    ],
)
def test_safety_filter_categories(query, category):
    match = check_query(query)
    assert match is not None
    assert match.category == category
    assert "⚠️" in match.response


def test_safety_filter_lets_normal_questions_through():
    assert check_query("I love maths, which engineering degree fits me?") is None
