"""Bounded retry with exponential backoff, as an explicit state machine."""

import time
from typing import Callable, Optional
from pydantic import BaseModel, Field
from ..utils.errors import TransientProviderError


class RetryPolicy(BaseModel):
    """Retry parameters for transient provider failures."""
    max_attempts: int = Field(default=4, ge=1, description="Total attempts, including the first")
    base_delay: float = Field(default=0.5, ge=0, description="Backoff before the second attempt, in seconds")
    multiplier: float = Field(default=2.0, ge=1, description="Backoff growth factor per attempt")
    max_delay: float = Field(default=30.0, ge=0, description="Upper bound on a single backoff, in seconds")
    
    def delay_for(self, attempt: int) -> float:
        """Backoff after the given (1-based) failed attempt."""
        return min(self.base_delay * (self.multiplier ** (attempt - 1)), self.max_delay)


class RetryState:
    """
    Attempt counter and next-backoff deadline for one operation.
    
    Usage: begin() before each attempt, then on a transient failure call
    fail(); if it returns True wait until `deadline` and begin() again,
    otherwise the attempts are exhausted.
    """
    
    def __init__(self, policy: RetryPolicy, clock: Callable[[], float] = time.monotonic):
        self.policy = policy
        self.clock = clock
        self.attempt = 0
        self.deadline: Optional[float] = None
        self.last_error: Optional[TransientProviderError] = None
    
    def begin(self) -> None:
        self.attempt += 1
        self.deadline = None
    
    @property
    def exhausted(self) -> bool:
        return self.attempt >= self.policy.max_attempts
    
    def fail(self, error: TransientProviderError) -> bool:
        """Record a transient failure; True if another attempt is allowed."""
        self.last_error = error
        if self.exhausted:
            return False
        self.deadline = self.clock() + self.policy.delay_for(self.attempt)
        return True
    
    def remaining_wait(self) -> float:
        if self.deadline is None:
            return 0.0
        return max(0.0, self.deadline - self.clock())
