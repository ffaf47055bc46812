"""Top-level reconciliation: validate, load state, plan, apply."""

import threading
import time
from typing import Callable, Dict, Optional, Sequence, Tuple
from ..catalog.models import Resource
from ..contracts.execution_report import ExecutionReport
from ..drift.detector import DriftReport, detect_drift
from ..executor.executor import Executor
from ..executor.retry import RetryPolicy
from ..graph.resource_graph import ResourceGraph
from ..planner.models import Plan
from ..planner.planner import plan as compute_plan
from ..provider.registry import ProviderRegistry
from ..state.models import ActualStateRecord, ResourceStatus
from ..state.store import StateStore
from ..utils.logging import get_logger

logger = get_logger("reconciler.driver")


class ReconciliationDriver:
    """
    Runs one reconciliation pass.
    
    Validation happens before anything touches a provider: an invalid
    declaration raises ValidationError and nothing is applied.
    """
    
    def __init__(
        self,
        store: StateStore,
        registry: ProviderRegistry,
        max_workers: int = 4,
        retry_policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], None] = time.sleep
    ):
        self.store = store
        self.registry = registry
        self.executor = Executor(
            registry,
            store,
            max_workers=max_workers,
            retry_policy=retry_policy,
            sleep=sleep
        )
        self.last_drift: Optional[DriftReport] = None
    
    def run(
        self,
        declared: Sequence[Resource],
        cancel_event: Optional[threading.Event] = None,
        refresh: bool = False
    ) -> ExecutionReport:
        """
        Converge actual state onto the declared resources.
        
        Args:
            declared: Declared resources
            cancel_event: Cancellation signal forwarded to the executor
            refresh: Read live state from providers first and plan around drift
            
        Returns:
            ExecutionReport
            
        Raises:
            ValidationError: If the declaration is invalid (nothing applied)
            StateStoreError: If the state store fails (run aborted)
        """
        _, plan = self.prepare(declared, refresh=refresh, record_missing=True)
        return self.executor.apply(plan, cancel_event=cancel_event)
    
    def plan_only(self, declared: Sequence[Resource], refresh: bool = False) -> Plan:
        """Compute the plan without applying it or writing state."""
        _, plan = self.prepare(declared, refresh=refresh, record_missing=False)
        return plan
    
    def prepare(
        self,
        declared: Sequence[Resource],
        refresh: bool = False,
        record_missing: bool = False
    ) -> Tuple[ResourceGraph, Plan]:
        """Build the graph, load state, optionally check drift, and plan."""
        graph = ResourceGraph.build(declared)
        prior_state: Dict[str, ActualStateRecord] = self.store.load()
        drifted = []
        
        self.last_drift = None
        if refresh:
            drift = detect_drift(graph, self.store, self.registry, mark_missing=record_missing)
            self.last_drift = drift
            drifted = drift.drifted
            for name in drift.missing:
                prior_state[name] = prior_state[name].transition(
                    status=ResourceStatus.ABSENT, external_id=None, checksum=None
                )
        
        return graph, compute_plan(graph, prior_state, drifted=drifted)
