"""Human-friendly output formatter - converts plans and reports to readable text."""

import os
from typing import Dict, List, Optional
from ..contracts.execution_report import ExecutionReport, OperationOutcome, RunStatus
from ..drift.detector import DriftReport
from ..planner.models import Plan, OperationKind
from ..state.models import ActualStateRecord


def _use_ascii(ascii_mode: Optional[bool] = None) -> bool:
    """Resolve whether to use ASCII output (checked at format time)."""
    if ascii_mode is not None:
        return bool(ascii_mode)
    return os.environ.get("CONVERGE_ASCII", "").lower() in ("1", "true", "yes")


def _box(title: str, width: int = 65, ascii_mode: bool = False) -> List[str]:
    """Return box-drawing header lines."""
    b = {"tl": "+", "tr": "+", "h": "-", "v": "|"} if ascii_mode else {"tl": "┌", "tr": "┐", "h": "─", "v": "│"}
    h = b["h"] * (width - 2)
    return [
        b["tl"] + h + b["tr"],
        f"{b['v']} {title:<{width - 4}} {b['v']}",
        ("+" if ascii_mode else "└") + h + ("+" if ascii_mode else "┘"),
        "",
    ]


_ACTION_SYMBOLS = {
    OperationKind.CREATE.value: "+",
    OperationKind.UPDATE.value: "~",
    OperationKind.REPLACE.value: "-/+",
    OperationKind.DELETE.value: "-",
    OperationKind.NO_OP.value: " ",
}

_OUTCOME_LABELS = {
    OperationOutcome.SUCCEEDED.value: "[OK]",
    OperationOutcome.FAILED.value: "[FAIL]",
    OperationOutcome.SKIPPED.value: "[SKIP]",
    OperationOutcome.CANCELLED.value: "[CANCEL]",
}

_STATUS_HEADLINES = {
    RunStatus.SUCCESS.value: "Reconciliation succeeded",
    RunStatus.PARTIAL.value: "Reconciliation partially applied",
    RunStatus.FAILED.value: "Reconciliation failed",
    RunStatus.CANCELLED.value: "Reconciliation cancelled",
}


def format_plan(plan: Plan, show_unchanged: bool = False, ascii_mode: Optional[bool] = None) -> str:
    """Format a plan, one line per operation, terraform-style symbols."""
    ascii_mode = _use_ascii(ascii_mode)
    lines = _box("converge plan", ascii_mode=ascii_mode)
    
    if not plan.has_changes():
        lines.append("No changes. Actual state matches the declaration.")
    
    for op in plan.operations:
        if op.action == OperationKind.NO_OP and not show_unchanged:
            continue
        symbol = _ACTION_SYMBOLS.get(op.action, "?")
        kind = f" ({op.resource_kind})" if op.resource_kind else ""
        lines.append(f"  {symbol} {op.target}{kind}: {op.action} - {op.reason}")
    
    counts = plan.counts()
    lines.append("")
    lines.append(
        f"Plan: {counts['create']} to create, {counts['update']} to update, {counts['replace']} to replace, "
        f"{counts['delete']} to delete, {counts['no-op']} unchanged."
    )
    return "\n".join(lines)


def format_report(report: ExecutionReport, ascii_mode: Optional[bool] = None) -> str:
    """Format an execution report."""
    ascii_mode = _use_ascii(ascii_mode)
    lines = _box(_STATUS_HEADLINES.get(report.status, str(report.status)), ascii_mode=ascii_mode)
    
    width = max((len(result.target) for result in report.results), default=0)
    for result in report.results:
        label = _OUTCOME_LABELS.get(result.outcome, "[?]")
        line = f"{label:<9}{result.target:<{width}}  {result.action}"
        if result.attempts > 1:
            line += f" ({result.attempts} attempts)"
        if result.message:
            line += f" - {result.message}"
        lines.append(line)
    
    counts = report.counts()
    lines.append("")
    lines.append(
        f"{counts['succeeded']} succeeded, {counts['failed']} failed, "
        f"{counts['skipped']} skipped, {counts['cancelled']} cancelled."
    )
    return "\n".join(lines)


def format_drift(drift: DriftReport, ascii_mode: Optional[bool] = None) -> str:
    ascii_mode = _use_ascii(ascii_mode)
    lines = _box("converge drift", ascii_mode=ascii_mode)
    if not drift.has_drift() and not drift.errors:
        lines.append(f"No drift detected across {len(drift.checked)} resources.")
        return "\n".join(lines)
    for name in drift.drifted:
        lines.append(f"  ~ {name}: live properties differ from the declaration")
    for name in drift.missing:
        lines.append(f"  - {name}: no longer exists")
    for name, error in drift.errors.items():
        lines.append(f"  ? {name}: could not be read ({error})")
    return "\n".join(lines)


def format_state(records: Dict[str, ActualStateRecord], ascii_mode: Optional[bool] = None) -> str:
    ascii_mode = _use_ascii(ascii_mode)
    lines = _box("converge state", ascii_mode=ascii_mode)
    if not records:
        lines.append("State is empty.")
        return "\n".join(lines)
    width = max(len(name) for name in records)
    for name in sorted(records):
        record = records[name]
        line = f"{name:<{width}}  {record.status:<9} {record.external_id or '-'}"
        if record.message:
            line += f"  ({record.message})"
        lines.append(line)
    return "\n".join(lines)
