"""Planning: diff declared resources against recorded state."""

from .models import Operation, OperationKind, Plan
from .planner import plan
from .checksum import compute_checksum

__all__ = [
    "Operation",
    "OperationKind",
    "Plan",
    "plan",
    "compute_checksum",
]
