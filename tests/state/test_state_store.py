"""Tests for state stores."""

import json
import tempfile
from pathlib import Path
import pytest
from converge.state.models import ActualStateRecord, ResourceStatus
from converge.state.store import FileStateStore, InMemoryStateStore
from converge.utils.errors import StateStoreError


@pytest.fixture
def state_path():
    """Path to a state file in a fresh temporary directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir) / "nested" / "state.json"


class TestFileStateStore:
    """Test the JSON file state store."""
    
    def test_missing_file_loads_empty(self, state_path):
        """Test first run starts with no records."""
        assert FileStateStore(str(state_path)).load() == {}
        assert not state_path.exists()
    
    def test_record_transition_persists(self, state_path):
        """Test a transition survives a new store instance."""
        store = FileStateStore(str(state_path))
        store.record_transition("vpc", ActualStateRecord(
            status=ResourceStatus.ACTIVE, external_id="vpc-1", checksum="abc", kind="network.vpc"
        ))
        
        reloaded = FileStateStore(str(state_path)).load()
        assert reloaded["vpc"].status == ResourceStatus.ACTIVE
        assert reloaded["vpc"].external_id == "vpc-1"
        assert reloaded["vpc"].kind == "network.vpc"
    
    def test_document_layout(self, state_path):
        store = FileStateStore(str(state_path))
        store.record_transition("b", ActualStateRecord(status=ResourceStatus.ABSENT))
        store.record_transition("a", ActualStateRecord(status=ResourceStatus.CREATING))
        
        document = json.loads(state_path.read_text())
        assert document["version"] == 1
        assert list(document["resources"]) == ["a", "b"]
        assert document["resources"]["a"]["status"] == "creating"
    
    def test_no_temporary_files_left(self, state_path):
        store = FileStateStore(str(state_path))
        store.record_transition("a", ActualStateRecord())
        store.record_transition("a", ActualStateRecord(status=ResourceStatus.ACTIVE, external_id="x"))
        
        assert [p.name for p in state_path.parent.iterdir()] == ["state.json"]
    
    def test_forget(self, state_path):
        store = FileStateStore(str(state_path))
        store.record_transition("a", ActualStateRecord())
        store.record_transition("b", ActualStateRecord())
        store.forget("a")
        store.forget("missing")
        
        assert list(FileStateStore(str(state_path)).load()) == ["b"]
    
    def test_invalid_json(self, state_path):
        state_path.parent.mkdir(parents=True)
        state_path.write_text("{not json")
        
        with pytest.raises(StateStoreError, match="Invalid JSON"):
            FileStateStore(str(state_path)).load()
    
    def test_unsupported_version(self, state_path):
        state_path.parent.mkdir(parents=True)
        state_path.write_text(json.dumps({"version": 99, "resources": {}}))
        
        with pytest.raises(StateStoreError, match="version 99"):
            FileStateStore(str(state_path)).load()
    
    def test_invalid_record(self, state_path):
        state_path.parent.mkdir(parents=True)
        state_path.write_text(json.dumps({"version": 1, "resources": {"a": {"status": "exploded"}}}))
        
        with pytest.raises(StateStoreError, match="Invalid record"):
            FileStateStore(str(state_path)).load()
    
    def test_write_failure_raises(self, state_path):
        """Test an unwritable location surfaces as StateStoreError."""
        state_path.parent.mkdir(parents=True)
        blocker = state_path.parent / "file"
        blocker.write_text("")
        store = FileStateStore(str(blocker / "state.json"))
        
        with pytest.raises(StateStoreError, match="Failed to write"):
            store.record_transition("a", ActualStateRecord())


class TestInMemoryStateStore:
    """Test the in-memory state store."""
    
    def test_round_trip(self):
        store = InMemoryStateStore()
        store.record_transition("a", ActualStateRecord(status=ResourceStatus.ACTIVE, external_id="x"))
        
        assert store.get("a").external_id == "x"
        assert store.get("b") is None
    
    def test_snapshot_is_a_copy(self):
        store = InMemoryStateStore({"a": ActualStateRecord()})
        snapshot = store.snapshot()
        snapshot.pop("a")
        
        assert "a" in store.load()


class TestActualStateRecord:
    """Test record helpers."""
    
    def test_transition_keeps_other_fields(self):
        record = ActualStateRecord(status=ResourceStatus.ACTIVE, external_id="x", checksum="c", depends_on=["vpc"])
        updated = record.transition(status=ResourceStatus.UPDATING)
        
        assert updated.status == ResourceStatus.UPDATING
        assert updated.external_id == "x"
        assert updated.depends_on == ["vpc"]
        assert updated.updated_at >= record.updated_at
        assert record.status == ResourceStatus.ACTIVE
    
    @pytest.mark.parametrize("status,interrupted", [
        (ResourceStatus.CREATING, True),
        (ResourceStatus.UPDATING, True),
        (ResourceStatus.DELETING, True),
        (ResourceStatus.ACTIVE, False),
        (ResourceStatus.FAILED, False),
        (ResourceStatus.ABSENT, False),
    ])
    def test_is_interrupted(self, status, interrupted):
        assert ActualStateRecord(status=status).is_interrupted() is interrupted
