from .execution_report import ExecutionReport, OperationResult, OperationOutcome, RunStatus

__all__ = [
    "ExecutionReport",
    "OperationResult",
    "OperationOutcome",
    "RunStatus",
]
