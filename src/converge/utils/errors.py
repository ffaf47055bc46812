"""Custom exception classes for converge."""

from typing import List, Optional


class ConvergeError(Exception):
    """Base exception for all converge errors."""
    pass


class ValidationError(ConvergeError):
    """Raised when a resource declaration is malformed or unresolvable."""
    pass


class CycleError(ValidationError):
    """Raised when resource dependencies form a cycle."""

    def __init__(self, cycle: List[str]):
        self.cycle = cycle
        super().__init__(f"Dependency cycle detected: {' -> '.join(cycle)}")


class CatalogLoadError(ValidationError):
    """Raised when a resource catalog file cannot be loaded or is invalid."""
    pass


class ProviderError(ConvergeError):
    """Base class for failures reported by a provider adapter."""

    def __init__(self, message: str, kind: Optional[str] = None):
        self.kind = kind
        super().__init__(message)


class TransientProviderError(ProviderError):
    """Raised for retryable provider failures (timeouts, throttling)."""
    pass


class PermanentProviderError(ProviderError):
    """Raised for provider failures that retrying will not fix."""

    def __init__(self, message: str, kind: Optional[str] = None, attempts: int = 0):
        self.attempts = attempts
        super().__init__(message, kind=kind)


class StateStoreError(ConvergeError):
    """Raised when the state store cannot be read or written."""
    pass


class ConfigError(ConvergeError):
    """Raised when configuration is invalid or missing."""
    pass
