"""Tests for the retry state machine."""

import pytest
from pydantic import ValidationError as PydanticValidationError
from converge.executor.retry import RetryPolicy, RetryState
from converge.utils.errors import TransientProviderError


class FakeClock:
    """Manually advanced monotonic clock."""
    
    def __init__(self):
        self.now = 100.0
    
    def __call__(self):
        return self.now


class TestRetryPolicy:
    """Test backoff computation."""
    
    def test_exponential_backoff(self):
        policy = RetryPolicy(base_delay=1.0, multiplier=2.0, max_delay=60.0)
        assert [policy.delay_for(n) for n in (1, 2, 3, 4)] == [1.0, 2.0, 4.0, 8.0]
    
    def test_backoff_capped(self):
        policy = RetryPolicy(base_delay=1.0, multiplier=10.0, max_delay=5.0)
        assert policy.delay_for(3) == 5.0
    
    def test_rejects_zero_attempts(self):
        with pytest.raises(PydanticValidationError):
            RetryPolicy(max_attempts=0)


class TestRetryState:
    """Test attempt accounting."""
    
    def test_allows_retries_until_exhausted(self):
        """Test fail() returns False on the last attempt."""
        state = RetryState(RetryPolicy(max_attempts=3, base_delay=0.0), clock=FakeClock())
        error = TransientProviderError("throttled")
        
        outcomes = []
        for _ in range(3):
            state.begin()
            outcomes.append(state.fail(error))
        
        assert outcomes == [True, True, False]
        assert state.attempt == 3
        assert state.exhausted
        assert state.last_error is error
    
    def test_deadline_follows_policy(self):
        clock = FakeClock()
        state = RetryState(RetryPolicy(max_attempts=5, base_delay=0.5, multiplier=2.0), clock=clock)
        
        state.begin()
        state.fail(TransientProviderError("x"))
        assert state.remaining_wait() == pytest.approx(0.5)
        
        clock.now += 0.2
        assert state.remaining_wait() == pytest.approx(0.3)
        
        clock.now += 5
        assert state.remaining_wait() == 0.0
    
    def test_begin_clears_deadline(self):
        state = RetryState(RetryPolicy(), clock=FakeClock())
        state.begin()
        state.fail(TransientProviderError("x"))
        state.begin()
        
        assert state.deadline is None
        assert state.remaining_wait() == 0.0
    
    def test_single_attempt_policy_never_retries(self):
        state = RetryState(RetryPolicy(max_attempts=1))
        state.begin()
        assert state.fail(TransientProviderError("x")) is False
