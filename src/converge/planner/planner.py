"""Diff declared resources against recorded state into an ordered plan."""

from typing import Dict, Iterable, Mapping, Optional, Tuple
from ..graph.resource_graph import ResourceGraph, dependency_order
from ..state.models import ActualStateRecord, ResourceStatus
from ..utils.logging import get_logger
from .checksum import compute_checksum
from .models import Operation, OperationKind, Plan

logger = get_logger("planner.planner")


def plan(
    graph: ResourceGraph,
    prior_state: Mapping[str, ActualStateRecord],
    drifted: Optional[Iterable[str]] = None
) -> Plan:
    """
    Compute the operations that converge recorded state onto the graph.
    
    Creates, updates and replacements come first in forward topological
    order, followed by deletes of undeclared resources in reverse topological
    order, so nothing is created before its dependencies or deleted before
    its dependents.
    
    Args:
        graph: Validated graph of declared resources
        prior_state: Recorded state from the last run, keyed by logical name
        drifted: Names whose real configuration diverged from the record
        
    Returns:
        Plan with at most one operation per resource
    """
    drifted = set(drifted or ())
    operations = []
    
    for name in graph.topological_order():
        resource = graph.get_resource(name)
        checksum = compute_checksum(resource)
        record = prior_state.get(name)
        action, reason = _decide(record, resource.kind, checksum, name in drifted)
        
        operations.append(Operation(
            target=name,
            action=action,
            resource_kind=resource.kind,
            prior_kind=record.kind if record else None,
            properties=dict(resource.properties),
            checksum=checksum,
            external_id=record.external_id if record else None,
            depends_on=sorted(resource.depends_on),
            removal_policy=resource.removal_policy,
            requires=sorted(resource.depends_on),
            reason=reason
        ))
    
    removed = {
        name: record for name, record in prior_state.items()
        if name not in graph and record.status != ResourceStatus.ABSENT
    }
    order = dependency_order({name: record.depends_on for name, record in removed.items()})
    
    for name in reversed(order):
        record = removed[name]
        dependents = sorted(other for other, rec in removed.items() if name in rec.depends_on)
        operations.append(Operation(
            target=name,
            action=OperationKind.DELETE,
            resource_kind=record.kind,
            prior_kind=record.kind,
            external_id=record.external_id,
            checksum=record.checksum,
            depends_on=list(record.depends_on),
            removal_policy=record.removal_policy,
            requires=dependents,
            reason="no longer declared"
        ))
    
    result = Plan(operations=operations)
    counts = result.counts()
    logger.info(
        f"Planned {len(result)} operations "
        f"(create: {counts['create']}, update: {counts['update']}, replace: {counts['replace']}, "
        f"delete: {counts['delete']}, no-op: {counts['no-op']})"
    )
    return result


def _decide(
    record: Optional[ActualStateRecord],
    kind: str,
    checksum: str,
    drifted: bool
) -> Tuple[OperationKind, str]:
    """Pick the operation for a declared resource given its recorded state."""
    if record is None:
        return OperationKind.CREATE, "not yet created"
    if record.status == ResourceStatus.ABSENT or not record.external_id:
        if record.status == ResourceStatus.FAILED:
            return OperationKind.CREATE, "previous create failed"
        if record.is_interrupted():
            return OperationKind.CREATE, f"previous run interrupted while {record.status}"
        return OperationKind.CREATE, "not yet created"
    if record.kind and record.kind != kind:
        # An external id is only meaningful to the adapter of the kind that issued it
        return OperationKind.REPLACE, f"kind changed from {record.kind} to {kind}"
    if record.status == ResourceStatus.FAILED:
        return OperationKind.UPDATE, "previous operation failed"
    if record.is_interrupted():
        return OperationKind.UPDATE, f"previous run interrupted while {record.status}"
    if record.checksum != checksum:
        return OperationKind.UPDATE, "declared properties changed"
    if drifted:
        return OperationKind.UPDATE, "drift detected"
    return OperationKind.NO_OP, "up to date"
