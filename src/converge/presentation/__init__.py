"""Presentation layer - human-readable rendering of plans and reports."""

from .human_formatter import format_plan, format_report, format_drift, format_state

__all__ = ["format_plan", "format_report", "format_drift", "format_state"]
