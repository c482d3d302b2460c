# careerrag: retrieval-augmented career guidance for high school learners.

from .errors import (
    BudgetExceededError,
    CareerRagError,
    EmptyInputError,
    InputError,
    ProviderError,
    ProviderTimeout,
    ProviderUnavailable,
)
from .pipeline import CareerGuidancePipeline

__version__ = "0.1.0"

__all__ = [
    "CareerGuidancePipeline",
    "BudgetExceededError",
    "CareerRagError",
    "EmptyInputError",
    "InputError",
    "ProviderError",
    "ProviderTimeout",
    "ProviderUnavailable",
]
