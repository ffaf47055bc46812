"""Plan execution: data-flow scheduling, retries and partial-failure isolation."""

from .executor import Executor
from .retry import RetryPolicy, RetryState

__all__ = [
    "Executor",
    "RetryPolicy",
    "RetryState",
]
