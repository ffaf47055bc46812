"""Abstract base class for provider adapters."""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional


class ProviderAdapter(ABC):
    """
    Capability set used to manage one family of resource kinds.
    
    Adapters talk to a real control plane. Every method may raise
    TransientProviderError (the executor retries) or PermanentProviderError
    (the operation fails and its dependents are skipped).
    """
    
    @abstractmethod
    def create(self, kind: str, properties: Dict[str, Any]) -> str:
        """
        Create a resource.
        
        Returns:
            Provider-assigned external identifier
        """
        pass
    
    @abstractmethod
    def read(self, kind: str, external_id: str) -> Optional[Dict[str, Any]]:
        """
        Read the live properties of a resource.
        
        Returns:
            Properties, or None if the resource no longer exists
        """
        pass
    
    @abstractmethod
    def update(self, kind: str, external_id: str, properties: Dict[str, Any]) -> None:
        """Apply declared properties to an existing resource."""
        pass
    
    @abstractmethod
    def delete(self, kind: str, external_id: str) -> None:
        """Delete a resource. Deleting an already-deleted resource succeeds."""
        pass
