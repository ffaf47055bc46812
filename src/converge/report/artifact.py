"""CI/CD artifact generation from an ExecutionReport."""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional
from ..contracts.execution_report import ExecutionReport
from ..planner.models import Plan
from ..utils.errors import ConvergeError
from ..utils.logging import get_logger

logger = get_logger("report.artifact")


def generate_artifacts(report: ExecutionReport, output_dir: Path, plan: Optional[Plan] = None) -> None:
    """
    Generate CI/CD artifacts from an ExecutionReport.
    
    Creates the following files in output_dir:
    - report.json: Full ExecutionReport
    - summary.json: Status and outcome counts
    - plan.json: The applied plan (only if given)
    - metadata.json: Report metadata
    
    Args:
        report: ExecutionReport from a run
        output_dir: Directory to write artifacts to
        plan: Plan the report was produced from
        
    Raises:
        ConvergeError: If file write fails
    """
    from .. import __version__
    
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ConvergeError(f"Failed to create output directory: {e}")
    
    _write_json(output_dir / "report.json", report.model_dump(mode="json"))
    
    summary = {
        "status": str(report.status),
        "counts": report.counts(),
        "failed": [r.target for r in report.results if r.outcome == "failed"],
        "skipped": [r.target for r in report.results if r.outcome == "skipped"],
    }
    _write_json(output_dir / "summary.json", summary)
    
    if plan is not None:
        _write_json(output_dir / "plan.json", plan.model_dump(mode="json"))
    
    metadata = {
        "converge_version": __version__,
        "report_version": report.version,
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "generator": "converge apply",
    }
    _write_json(output_dir / "metadata.json", metadata)
    
    logger.info(f"Generated artifacts in: {output_dir}")


def _write_json(path: Path, data) -> None:
    try:
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, sort_keys=True)
        logger.debug(f"Written {path.name}: {path}")
    except (OSError, TypeError) as e:
        raise ConvergeError(f"Failed to write {path.name}: {e}")
