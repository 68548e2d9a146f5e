"""Line-level coverage enforcement on changed code.

Exports:
    CoverageReport: Per-file, per-line hit counts
    CoverageGate: Verifies changed production lines were executed
    load_report: Reads Cobertura, LCOV and coverage.py reports
"""

from __future__ import annotations

from change_gate.coverage.adapters import FORMATS, detect_format, load_report
from change_gate.coverage.gate import CoverageGate, GateResult, Violation, ViolationReason
from change_gate.coverage.report import CoverageReport, LineRecord


__all__ = [
    'FORMATS',
    'CoverageGate',
    'CoverageReport',
    'GateResult',
    'LineRecord',
    'Violation',
    'ViolationReason',
    'detect_format',
    'load_report',
]
