"""Pydantic model for the execution report (versioned, stable, explicit)."""

from datetime import datetime
from enum import Enum
from typing import List, Optional, Dict
from pydantic import BaseModel, Field
from ..planner.models import OperationKind


class OperationOutcome(str, Enum):
    """Terminal outcome of one planned operation."""
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"
    CANCELLED = "cancelled"


class RunStatus(str, Enum):
    """Overall status of a reconciliation run."""
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"
    CANCELLED = "cancelled"


class OperationResult(BaseModel):
    """Outcome of one operation."""
    target: str = Field(..., description="Logical name of the target resource")
    action: OperationKind = Field(..., description="Operation kind that was planned")
    outcome: OperationOutcome = Field(..., description="Terminal outcome")
    attempts: int = Field(default=0, ge=0, description="Provider calls made, including retries")
    external_id: Optional[str] = Field(default=None, description="Provider identifier after the operation")
    message: str = Field(default="", description="Diagnostic message")
    blocked_by: Optional[str] = Field(default=None, description="Failed or skipped prerequisite that caused a skip")
    
    class Config:
        """Pydantic config."""
        use_enum_values = True


class ExecutionReport(BaseModel):
    """Execution report contract - one entry per planned operation, in plan order."""
    version: str = Field(default="1.0.0", description="Report contract version")
    status: RunStatus = Field(..., description="Overall run status")
    results: List[OperationResult] = Field(default_factory=list, description="Per-operation outcomes in plan order")
    started_at: Optional[datetime] = Field(default=None, description="When the run started")
    finished_at: Optional[datetime] = Field(default=None, description="When the run finished")
    
    class Config:
        """Pydantic config."""
        use_enum_values = True
        json_schema_extra = {
            "example": {
                "version": "1.0.0",
                "status": "partial",
                "results": [
                    {"target": "vpc", "action": "create", "outcome": "failed", "attempts": 4,
                     "message": "quota exceeded"},
                    {"target": "database", "action": "create", "outcome": "skipped",
                     "blocked_by": "vpc", "message": "skipped: dependency 'vpc' failed"},
                ]
            }
        }
    
    @staticmethod
    def overall_status(results: List[OperationResult]) -> RunStatus:
        """Cancelled if anything was cancelled, then failed, then partial, else success."""
        outcomes = [result.outcome for result in results]
        if OperationOutcome.CANCELLED in outcomes:
            return RunStatus.CANCELLED
        if OperationOutcome.FAILED in outcomes:
            return RunStatus.FAILED
        if OperationOutcome.SKIPPED in outcomes:
            return RunStatus.PARTIAL
        return RunStatus.SUCCESS
    
    def result_for(self, target: str) -> Optional[OperationResult]:
        for result in self.results:
            if result.target == target:
                return result
        return None
    
    def counts(self) -> Dict[str, int]:
        """Number of operations per outcome."""
        counts = {outcome.value: 0 for outcome in OperationOutcome}
        for result in self.results:
            counts[OperationOutcome(result.outcome).value] += 1
        return counts
