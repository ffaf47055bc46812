"""Dispatch resource kinds to provider adapters."""

from typing import Dict, Optional
from ..utils.errors import PermanentProviderError
from ..utils.logging import get_logger
from .base import ProviderAdapter

logger = get_logger("provider.registry")


class ProviderRegistry:
    """
    Maps kind tags to adapters.
    
    Lookup tries the exact kind, then the longest dotted prefix
    ("database.cluster" falls back to "database"), then the default adapter.
    """
    
    def __init__(self, default: Optional[ProviderAdapter] = None):
        self._adapters: Dict[str, ProviderAdapter] = {}
        self.default = default
    
    def register(self, kind: str, adapter: ProviderAdapter) -> None:
        self._adapters[kind] = adapter
        logger.debug(f"Registered adapter {type(adapter).__name__} for kind '{kind}'")
    
    def resolve(self, kind: str) -> ProviderAdapter:
        """
        Find the adapter for a kind.
        
        Raises:
            PermanentProviderError: If no adapter handles the kind
        """
        candidate = kind
        while candidate:
            if candidate in self._adapters:
                return self._adapters[candidate]
            candidate = candidate.rpartition(".")[0]
        if self.default is not None:
            return self.default
        raise PermanentProviderError(f"No provider adapter registered for kind '{kind}'", kind=kind)
    
    def __contains__(self, kind: str) -> bool:
        try:
            self.resolve(kind)
            return True
        except PermanentProviderError:
            return False
