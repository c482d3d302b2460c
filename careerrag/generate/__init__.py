from .generator import Generator
from .retry import ExponentialBackoff, NoBackoff, RetryStateMachine
from .safety import SafetyMatch, check_query
from .types import GenerationOptions, GenerationResult, GenerationState, ModelParams

__all__ = [
    "Generator",
    "ExponentialBackoff",
    "NoBackoff",
    "RetryStateMachine",
    "SafetyMatch",
    "check_query",
    "GenerationOptions",
    "GenerationResult",
    "GenerationState",
    "ModelParams",
]
