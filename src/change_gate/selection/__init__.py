"""Change-aware test selection.

Instead of running every test on every change, only the test classes touched
by a changeset run; test projects whose changes cannot be attributed to a
class run in full.

Exports:
    TestSelector: Selects tests for a changeset
    TestCase, SelectionResult: Selection output
    TestClassDetector: Language detector protocol
"""

from __future__ import annotations

from change_gate.selection.csharp_source import CSharpTestClassDetector
from change_gate.selection.detector import TestClassDetector, default_detectors
from change_gate.selection.models import MethodSpan, SelectionResult, TestCase, TestClassSpan
from change_gate.selection.python_source import PythonTestClassDetector
from change_gate.selection.selector import TestSelector


__all__ = [
    'CSharpTestClassDetector',
    'MethodSpan',
    'PythonTestClassDetector',
    'SelectionResult',
    'TestCase',
    'TestClassDetector',
    'TestClassSpan',
    'TestSelector',
    'default_detectors',
]
