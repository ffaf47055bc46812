"""Compare recorded state with what the provider reports."""

from typing import Dict, List, Optional
from pydantic import BaseModel, Field
from ..graph.resource_graph import ResourceGraph
from ..provider.registry import ProviderRegistry
from ..state.models import ResourceStatus
from ..state.store import StateStore
from ..utils.errors import ProviderError
from ..utils.logging import get_logger

logger = get_logger("drift.detector")


class DriftReport(BaseModel):
    """Outcome of a drift check over every active, still-declared resource."""
    checked: List[str] = Field(default_factory=list, description="Resources read from the provider")
    drifted: List[str] = Field(default_factory=list, description="Resources whose live properties differ from the declaration")
    missing: List[str] = Field(default_factory=list, description="Resources the provider no longer has")
    errors: Dict[str, str] = Field(default_factory=dict, description="Resources that could not be read, with the error")
    
    def has_drift(self) -> bool:
        return bool(self.drifted or self.missing)


def detect_drift(
    graph: ResourceGraph,
    store: StateStore,
    registry: ProviderRegistry,
    mark_missing: bool = True
) -> DriftReport:
    """
    Read every active declared resource back from its provider.
    
    Args:
        graph: Declared resources
        store: State store; missing resources are recorded as absent when
            mark_missing is set, so the next plan recreates them
        registry: Provider adapters
        mark_missing: Whether to write absent records for missing resources
        
    Returns:
        DriftReport (read failures are reported, never raised)
    """
    report = DriftReport()
    records = store.snapshot()
    
    for name in graph.topological_order():
        record = records.get(name)
        if record is None or record.status != ResourceStatus.ACTIVE or not record.external_id:
            continue
        resource = graph.get_resource(name)
        kind = record.kind or resource.kind
        
        try:
            live = registry.resolve(kind).read(kind, record.external_id)
        except ProviderError as e:
            logger.warning(f"Could not read {name} ({record.external_id}): {e}")
            report.errors[name] = str(e)
            continue
        
        report.checked.append(name)
        if live is None:
            logger.warning(f"Drift: {name} ({record.external_id}) no longer exists")
            report.missing.append(name)
            if mark_missing:
                store.record_transition(name, record.transition(
                    status=ResourceStatus.ABSENT,
                    external_id=None,
                    checksum=None,
                    message=f"{record.external_id} disappeared outside of converge"
                ))
        elif not _matches(resource.properties, live):
            logger.warning(f"Drift: {name} ({record.external_id}) differs from its declaration")
            report.drifted.append(name)
    
    logger.info(
        f"Drift check: {len(report.checked)} checked, {len(report.drifted)} drifted, "
        f"{len(report.missing)} missing, {len(report.errors)} unreadable"
    )
    return report


def _matches(declared: Dict, live: Optional[Dict]) -> bool:
    """Declared properties must all be present with equal values; extra live keys are ignored."""
    if live is None:
        return False
    return all(key in live and live[key] == value for key, value in declared.items())
