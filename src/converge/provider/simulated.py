"""In-memory simulated cloud for tests and dry runs."""

import copy
import itertools
import threading
from typing import Any, Dict, List, Optional, Tuple
from ..utils.errors import PermanentProviderError, TransientProviderError
from ..utils.logging import get_logger
from .base import ProviderAdapter

logger = get_logger("provider.simulated")


class SimulatedProvider(ProviderAdapter):
    """
    Provider adapter backed by a dictionary.
    
    Faults can be injected per (capability, kind or resource property "name"):
    fail_transiently() makes the next N calls raise TransientProviderError,
    fail_permanently() makes every call raise PermanentProviderError.
    All calls are recorded in `calls` as (capability, kind, key) tuples.
    """
    
    def __init__(self, id_prefix: str = "sim"):
        self.id_prefix = id_prefix
        self.resources: Dict[str, Tuple[str, Dict[str, Any]]] = {}
        self.calls: List[Tuple[str, str, Optional[str]]] = []
        self._transient: Dict[Tuple[str, str], int] = {}
        self._permanent: Dict[Tuple[str, str], str] = {}
        self._counter = itertools.count(1)
        self._lock = threading.Lock()
    
    def fail_transiently(self, capability: str, target: str, times: int = 1) -> None:
        """Next `times` calls of capability on target raise a transient error."""
        self._transient[(capability, target)] = times
    
    def fail_permanently(self, capability: str, target: str, message: str = "simulated failure") -> None:
        """Every call of capability on target raises a permanent error."""
        self._permanent[(capability, target)] = message
    
    def create(self, kind: str, properties: Dict[str, Any]) -> str:
        self._maybe_fail("create", kind, properties.get("name"))
        with self._lock:
            external_id = f"{self.id_prefix}-{next(self._counter):04d}"
            self.resources[external_id] = (kind, copy.deepcopy(properties))
        logger.debug(f"Created {kind} as {external_id}")
        return external_id
    
    def read(self, kind: str, external_id: str) -> Optional[Dict[str, Any]]:
        self._maybe_fail("read", kind, external_id)
        with self._lock:
            entry = self.resources.get(external_id)
        if entry is None:
            return None
        return copy.deepcopy(entry[1])
    
    def update(self, kind: str, external_id: str, properties: Dict[str, Any]) -> None:
        self._maybe_fail("update", kind, external_id)
        with self._lock:
            if external_id not in self.resources:
                raise PermanentProviderError(f"{kind} {external_id} does not exist", kind=kind)
            self.resources[external_id] = (kind, copy.deepcopy(properties))
    
    def delete(self, kind: str, external_id: str) -> None:
        self._maybe_fail("delete", kind, external_id)
        with self._lock:
            self.resources.pop(external_id, None)
    
    def _maybe_fail(self, capability: str, kind: str, key: Optional[str]) -> None:
        with self._lock:
            self.calls.append((capability, kind, key))
            for target in (kind, key):
                if target is None:
                    continue
                message = self._permanent.get((capability, target))
                if message is not None:
                    raise PermanentProviderError(message, kind=kind)
                remaining = self._transient.get((capability, target), 0)
                if remaining > 0:
                    self._transient[(capability, target)] = remaining - 1
                    raise TransientProviderError(f"simulated transient failure on {capability}", kind=kind)
