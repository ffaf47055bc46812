"""Pydantic models for recorded (actual) resource state."""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field
from ..catalog.models import RemovalPolicy


class ResourceStatus(str, Enum):
    """Last-observed lifecycle status of a resource."""
    ABSENT = "absent"
    CREATING = "creating"
    ACTIVE = "active"
    UPDATING = "updating"
    DELETING = "deleting"
    FAILED = "failed"


IN_FLIGHT_STATUSES = (ResourceStatus.CREATING, ResourceStatus.UPDATING, ResourceStatus.DELETING)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class ActualStateRecord(BaseModel):
    """Last-known actual state of one resource."""
    status: ResourceStatus = Field(default=ResourceStatus.ABSENT, description="Last observed status")
    external_id: Optional[str] = Field(default=None, description="Provider-assigned identifier")
    checksum: Optional[str] = Field(default=None, description="Checksum of the last applied properties")
    message: str = Field(default="", description="Free-form diagnostic message")
    kind: Optional[str] = Field(default=None, description="Resource kind as of the last apply")
    depends_on: List[str] = Field(default_factory=list, description="Dependencies as of the last apply")
    removal_policy: RemovalPolicy = Field(default=RemovalPolicy.DESTROY, description="Removal behaviour as of the last apply")
    updated_at: datetime = Field(default_factory=_now, description="When this record was written")
    
    class Config:
        """Pydantic config."""
        use_enum_values = True
    
    def is_interrupted(self) -> bool:
        """True if a previous run stopped while an operation was in flight."""
        return self.status in IN_FLIGHT_STATUSES
    
    def transition(self, **changes) -> "ActualStateRecord":
        """Return a copy with the given fields changed and a fresh timestamp."""
        changes.setdefault("updated_at", _now())
        return ActualStateRecord(**{**self.model_dump(), **changes})
