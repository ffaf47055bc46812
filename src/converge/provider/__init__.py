"""Provider adapters - capability sets the executor drives."""

from .base import ProviderAdapter
from .registry import ProviderRegistry
from .simulated import SimulatedProvider
from .rest import HttpProvider

__all__ = [
    "ProviderAdapter",
    "ProviderRegistry",
    "SimulatedProvider",
    "HttpProvider",
]
