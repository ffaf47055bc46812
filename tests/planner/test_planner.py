"""Tests for the planner."""

import pytest
from converge.catalog.models import Resource, RemovalPolicy
from converge.graph.resource_graph import ResourceGraph
from converge.planner.checksum import compute_checksum
from converge.planner.models import OperationKind
from converge.planner.planner import plan
from converge.state.models import ActualStateRecord, ResourceStatus


def _res(name, *deps, **properties):
    return Resource(name=name, kind="test.thing", properties=properties, depends_on=list(deps))


def _active(resource, external_id):
    return ActualStateRecord(
        status=ResourceStatus.ACTIVE,
        external_id=external_id,
        checksum=compute_checksum(resource),
        kind=resource.kind,
        depends_on=list(resource.depends_on)
    )


@pytest.fixture
def chain():
    """A <- B <- C."""
    return [_res("a", size=1), _res("b", "a"), _res("c", "b")]


class TestCreatesAndUpdates:
    """Test planning for declared resources."""
    
    def test_empty_state_creates_everything_in_order(self, chain):
        """Test fresh plan creates dependencies first."""
        result = plan(ResourceGraph.build(chain), {})
        
        assert result.targets() == ["a", "b", "c"]
        assert all(op.action == OperationKind.CREATE for op in result.operations)
        assert result.get("b").requires == ["a"]
        assert result.get("a").reason == "not yet created"
    
    def test_matching_state_is_no_op(self, chain):
        """Test converged state produces only no-ops."""
        state = {r.name: _active(r, f"id-{r.name}") for r in chain}
        result = plan(ResourceGraph.build(chain), state)
        
        assert [op.action for op in result.operations] == ["no-op"] * 3
        assert not result.has_changes()
        assert result.get("a").external_id == "id-a"
    
    def test_changed_properties_update(self, chain):
        """Test a checksum mismatch plans an update."""
        state = {r.name: _active(r, f"id-{r.name}") for r in chain}
        changed = [_res("a", size=2), chain[1], chain[2]]
        result = plan(ResourceGraph.build(changed), state)
        
        op = result.get("a")
        assert op.action == OperationKind.UPDATE
        assert op.external_id == "id-a"
        assert op.properties == {"size": 2}
        assert op.reason == "declared properties changed"
        assert result.get("b").action == OperationKind.NO_OP
    
    def test_failed_create_is_retried_as_create(self):
        resource = _res("a")
        state = {"a": ActualStateRecord(status=ResourceStatus.FAILED, message="boom")}
        op = plan(ResourceGraph.build([resource]), state).get("a")
        
        assert op.action == OperationKind.CREATE
        assert op.reason == "previous create failed"
    
    def test_failed_update_is_retried_as_update(self):
        resource = _res("a")
        record = _active(resource, "id-a").transition(status=ResourceStatus.FAILED)
        op = plan(ResourceGraph.build([resource]), {"a": record}).get("a")
        
        assert op.action == OperationKind.UPDATE
        assert op.external_id == "id-a"
    
    def test_interrupted_create_is_recreated(self):
        """Test a record left in 'creating' by a crash plans a create."""
        state = {"a": ActualStateRecord(status=ResourceStatus.CREATING)}
        op = plan(ResourceGraph.build([_res("a")]), state).get("a")
        
        assert op.action == OperationKind.CREATE
        assert "interrupted" in op.reason
    
    def test_interrupted_update_is_reapplied(self):
        resource = _res("a")
        record = _active(resource, "id-a").transition(status=ResourceStatus.UPDATING)
        op = plan(ResourceGraph.build([resource]), {"a": record}).get("a")
        
        assert op.action == OperationKind.UPDATE
    
    def test_absent_record_creates(self):
        state = {"a": ActualStateRecord(status=ResourceStatus.ABSENT)}
        assert plan(ResourceGraph.build([_res("a")]), state).get("a").action == OperationKind.CREATE
    
    def test_drifted_resource_updates(self, chain):
        state = {r.name: _active(r, f"id-{r.name}") for r in chain}
        result = plan(ResourceGraph.build(chain), state, drifted=["b"])
        
        assert result.get("b").action == OperationKind.UPDATE
        assert result.get("b").reason == "drift detected"
        assert result.get("a").action == OperationKind.NO_OP
    
    def test_kind_change_replaces(self):
        """Test a changed kind replaces the resource instead of updating it."""
        old = _res("a", size=1)
        moved = Resource(name="a", kind="other.thing", properties={"size": 1})
        result = plan(ResourceGraph.build([moved]), {"a": _active(old, "id-a")})
        
        op = result.get("a")
        assert op.action == OperationKind.REPLACE
        assert op.prior_kind == "test.thing"
        assert op.resource_kind == "other.thing"
        assert op.external_id == "id-a"
        assert op.reason == "kind changed from test.thing to other.thing"
        assert result.counts()["replace"] == 1
    
    def test_kind_change_without_external_id_creates(self):
        state = {"a": ActualStateRecord(status=ResourceStatus.FAILED, kind="test.thing")}
        moved = Resource(name="a", kind="other.thing", properties={})
        assert plan(ResourceGraph.build([moved]), state).get("a").action == OperationKind.CREATE


class TestDeletes:
    """Test planning for resources no longer declared."""
    
    def test_removed_resources_deleted_dependents_first(self, chain):
        """Test deletes come in reverse dependency order."""
        state = {r.name: _active(r, f"id-{r.name}") for r in chain}
        result = plan(ResourceGraph.build([]), state)
        
        assert result.targets() == ["c", "b", "a"]
        assert all(op.action == OperationKind.DELETE for op in result.operations)
        assert result.get("a").requires == ["b"]
        assert result.get("c").requires == []
        assert result.get("a").external_id == "id-a"
    
    def test_deletes_follow_creates(self, chain):
        state = {"old": ActualStateRecord(status=ResourceStatus.ACTIVE, external_id="id-old")}
        result = plan(ResourceGraph.build(chain), state)
        
        assert result.targets() == ["a", "b", "c", "old"]
        assert result.get("old").action == OperationKind.DELETE
        assert result.get("old").reason == "no longer declared"
    
    def test_absent_records_not_deleted(self):
        state = {"gone": ActualStateRecord(status=ResourceStatus.ABSENT)}
        assert len(plan(ResourceGraph.build([]), state)) == 0
    
    def test_delete_carries_recorded_removal_policy(self):
        state = {"db": ActualStateRecord(
            status=ResourceStatus.ACTIVE, external_id="id-db", removal_policy=RemovalPolicy.RETAIN
        )}
        op = plan(ResourceGraph.build([]), state).get("db")
        assert op.removal_policy == RemovalPolicy.RETAIN
    
    def test_at_most_one_operation_per_resource(self, chain):
        state = {r.name: _active(r, f"id-{r.name}") for r in chain}
        state["old"] = ActualStateRecord(status=ResourceStatus.FAILED, external_id="x")
        result = plan(ResourceGraph.build(chain), state)
        
        assert len(result.targets()) == len(set(result.targets()))


class TestChecksum:
    """Test property checksums."""
    
    def test_key_order_irrelevant(self):
        first = Resource(name="a", kind="k", properties={"x": 1, "y": [1, 2]})
        second = Resource(name="b", kind="k", properties={"y": [1, 2], "x": 1})
        assert compute_checksum(first) == compute_checksum(second)
    
    def test_kind_is_part_of_checksum(self):
        first = Resource(name="a", kind="k1", properties={"x": 1})
        second = Resource(name="a", kind="k2", properties={"x": 1})
        assert compute_checksum(first) != compute_checksum(second)
    
    def test_sets_hash_like_sorted_lists(self):
        as_set = Resource(name="a", kind="k", properties={"zones": {"us-east-1b", "us-east-1a", "us-east-1c"}})
        as_list = Resource(name="a", kind="k", properties={"zones": ["us-east-1a", "us-east-1b", "us-east-1c"]})
        assert compute_checksum(as_set) == compute_checksum(as_list)
    
    def test_set_order_irrelevant(self):
        first = Resource(name="a", kind="k", properties={"tags": frozenset(["web", "db", "cache"])})
        second = Resource(name="a", kind="k", properties={"tags": frozenset(["cache", "web", "db"])})
        assert compute_checksum(first) == compute_checksum(second)
    
    def test_plan_counts(self, chain):
        counts = plan(ResourceGraph.build(chain), {}).counts()
        assert counts == {"create": 3, "update": 0, "replace": 0, "delete": 0, "no-op": 0}
