"""Pydantic models for declared resources."""

from enum import Enum
from typing import List, Dict, Any
from pydantic import BaseModel, Field


class RemovalPolicy(str, Enum):
    """What to do with a resource once it leaves the declaration."""
    DESTROY = "destroy"
    RETAIN = "retain"


class Resource(BaseModel):
    """Declared resource - the desired state of one managed object."""
    name: str = Field(..., min_length=1, description="Stable logical name, unique within a graph")
    kind: str = Field(..., min_length=1, description="Kind tag used to dispatch to a provider adapter")
    properties: Dict[str, Any] = Field(default_factory=dict, description="Declared properties, opaque to the engine")
    depends_on: List[str] = Field(default_factory=list, description="Logical names this resource depends on")
    removal_policy: RemovalPolicy = Field(default=RemovalPolicy.DESTROY, description="Removal behaviour when undeclared")
    
    class Config:
        """Pydantic config."""
        frozen = True
        use_enum_values = True
