"""Pydantic models for execution plans."""

from enum import Enum
from typing import List, Optional, Dict, Any
from pydantic import BaseModel, Field
from ..catalog.models import RemovalPolicy


class OperationKind(str, Enum):
    """What the executor must do to one resource."""
    CREATE = "create"
    UPDATE = "update"
    REPLACE = "replace"
    DELETE = "delete"
    NO_OP = "no-op"


class Operation(BaseModel):
    """One planned operation against one resource."""
    target: str = Field(..., description="Logical name of the target resource")
    action: OperationKind = Field(..., description="Operation kind")
    resource_kind: Optional[str] = Field(None, description="Resource kind tag used for provider dispatch")
    prior_kind: Optional[str] = Field(None, description="Resource kind recorded by the last apply")
    properties: Dict[str, Any] = Field(default_factory=dict, description="Declared properties to apply")
    checksum: Optional[str] = Field(None, description="Checksum of the declared properties")
    external_id: Optional[str] = Field(None, description="Provider identifier known before this run")
    depends_on: List[str] = Field(default_factory=list, description="Declared dependencies to record")
    removal_policy: RemovalPolicy = Field(default=RemovalPolicy.DESTROY, description="Removal behaviour to record")
    requires: List[str] = Field(default_factory=list, description="Operations that must finish first; their failure skips this one")
    reason: str = Field(default="", description="Why the planner chose this action")
    
    class Config:
        """Pydantic config."""
        use_enum_values = True


class Plan(BaseModel):
    """Ordered operations: creates/updates dependencies first, then deletes dependents first."""
    operations: List[Operation] = Field(default_factory=list, description="Operations in dependency-correct order")
    
    def get(self, target: str) -> Optional[Operation]:
        for operation in self.operations:
            if operation.target == target:
                return operation
        return None
    
    def targets(self) -> List[str]:
        return [operation.target for operation in self.operations]
    
    def counts(self) -> Dict[str, int]:
        """Number of operations per kind."""
        counts = {kind.value: 0 for kind in OperationKind}
        for operation in self.operations:
            counts[OperationKind(operation.action).value] += 1
        return counts
    
    def has_changes(self) -> bool:
        return any(operation.action != OperationKind.NO_OP for operation in self.operations)
    
    def __len__(self) -> int:
        return len(self.operations)
