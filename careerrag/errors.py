# Exception taxonomy shared by every stage of the pipeline.
#
# Stages other than the generator let these propagate; the generator
# catches ProviderError and reports it inside a GenerationResult instead.

from __future__ import annotations


class CareerRagError(Exception):
    """Base class for all errors raised by careerrag."""


class InputError(CareerRagError):
    """Empty or malformed query/profile. Never retried."""


class EmptyInputError(InputError):
    """Text was empty after trimming."""


class ProviderError(CareerRagError):
    """An embedding or generation provider failed."""


class ProviderUnavailable(ProviderError):
    """Provider unreachable or returned an error response."""


class ProviderTimeout(ProviderError):
    """Provider did not answer within the allotted time."""


class BudgetExceededError(CareerRagError):
    """A context bundle grew past its token budget (invariant violation)."""
