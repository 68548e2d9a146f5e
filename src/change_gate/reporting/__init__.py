"""Reporting for change-gate results (console and JSON)."""

from change_gate.reporting.console import ConsoleReporter
from change_gate.reporting.json_reporter import JsonReporter, read_selection


__all__ = ['ConsoleReporter', 'JsonReporter', 'read_selection']
