"""Audit event formatting and reporting exports."""

from .emitter import emit_event, generate_event_id
from .report import ComplianceReport, build_compliance_report

__all__ = ["emit_event", "generate_event_id", "ComplianceReport", "build_compliance_report"]
