"""State store: durable ledger of actual resource state."""

import json
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional
from pydantic import ValidationError as PydanticValidationError
from ..utils.errors import StateStoreError
from ..utils.logging import get_logger
from .models import ActualStateRecord

logger = get_logger("state.store")

STATE_FORMAT_VERSION = 1


class StateStore(ABC):
    """
    Abstract state store.
    
    Every call to record_transition must be durable before it returns: the
    executor relies on the store to resume after a crash mid-run.
    """
    
    @abstractmethod
    def load(self) -> Dict[str, ActualStateRecord]:
        """Load all records (empty mapping if no prior run exists)."""
        pass
    
    @abstractmethod
    def record_transition(self, name: str, record: ActualStateRecord) -> None:
        """Atomically write one record."""
        pass
    
    @abstractmethod
    def forget(self, name: str) -> None:
        """Drop one record entirely."""
        pass
    
    @abstractmethod
    def snapshot(self) -> Dict[str, ActualStateRecord]:
        """Copy of the current records."""
        pass
    
    def get(self, name: str) -> Optional[ActualStateRecord]:
        return self.snapshot().get(name)


class InMemoryStateStore(StateStore):
    """State store kept in process memory."""
    
    def __init__(self, records: Optional[Dict[str, ActualStateRecord]] = None):
        self._records: Dict[str, ActualStateRecord] = dict(records or {})
        self._lock = threading.Lock()
    
    def load(self) -> Dict[str, ActualStateRecord]:
        return self.snapshot()
    
    def record_transition(self, name: str, record: ActualStateRecord) -> None:
        with self._lock:
            self._records[name] = record
    
    def forget(self, name: str) -> None:
        with self._lock:
            self._records.pop(name, None)
    
    def snapshot(self) -> Dict[str, ActualStateRecord]:
        with self._lock:
            return dict(self._records)


class FileStateStore(StateStore):
    """
    JSON file state store.
    
    The whole document is rewritten on every transition through a temporary
    file and os.replace, so a crash leaves either the old or the new document.
    """
    
    def __init__(self, path: str):
        self.path = Path(path)
        self._lock = threading.Lock()
        self._records: Optional[Dict[str, ActualStateRecord]] = None
    
    def load(self) -> Dict[str, ActualStateRecord]:
        with self._lock:
            self._records = self._read()
            return dict(self._records)
    
    def record_transition(self, name: str, record: ActualStateRecord) -> None:
        with self._lock:
            records = self._ensure_loaded()
            updated = dict(records)
            updated[name] = record
            self._write(updated)
            self._records = updated
        logger.debug(f"Recorded {name}: status={record.status}")
    
    def forget(self, name: str) -> None:
        with self._lock:
            records = self._ensure_loaded()
            if name not in records:
                return
            updated = {k: v for k, v in records.items() if k != name}
            self._write(updated)
            self._records = updated
        logger.debug(f"Forgot {name}")
    
    def snapshot(self) -> Dict[str, ActualStateRecord]:
        with self._lock:
            return dict(self._ensure_loaded())
    
    def _ensure_loaded(self) -> Dict[str, ActualStateRecord]:
        if self._records is None:
            self._records = self._read()
        return self._records
    
    def _read(self) -> Dict[str, ActualStateRecord]:
        if not self.path.exists():
            logger.debug(f"No state file at {self.path}, starting empty")
            return {}
        
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise StateStoreError(f"Invalid JSON in state file {self.path}: {e}")
        except OSError as e:
            raise StateStoreError(f"Error reading state file {self.path}: {e}")
        
        if not isinstance(data, dict) or not isinstance(data.get("resources", {}), dict):
            raise StateStoreError(f"State file {self.path} has an unexpected layout")
        
        version = data.get("version", STATE_FORMAT_VERSION)
        if version != STATE_FORMAT_VERSION:
            raise StateStoreError(f"Unsupported state format version {version} in {self.path}")
        
        try:
            records = {
                name: ActualStateRecord(**fields)
                for name, fields in data.get("resources", {}).items()
            }
        except PydanticValidationError as e:
            raise StateStoreError(f"Invalid record in state file {self.path}: {e}")
        
        logger.info(f"Loaded {len(records)} state records from {self.path}")
        return records
    
    def _write(self, records: Dict[str, ActualStateRecord]) -> None:
        document = {
            "version": STATE_FORMAT_VERSION,
            "resources": {
                name: records[name].model_dump(mode="json")
                for name in sorted(records)
            },
        }
        tmp_path = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix=".state-", suffix=".json", dir=str(self.path.parent))
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(document, f, indent=2, sort_keys=True)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
        except OSError as e:
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise StateStoreError(f"Failed to write state file {self.path}: {e}") from e
