"""Protocol for language-specific test class detection.

A detector reads one source file and reports the test classes it declares,
with line spans for the class and each test method. Detectors never raise on
unparseable input: they return an empty list, which the selector treats as
"detection failed" and answers with a whole-project fallback.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable


if TYPE_CHECKING:
    from change_gate.selection.models import TestClassSpan


@runtime_checkable
class TestClassDetector(Protocol):
    """Protocol for test class detectors."""

    @property
    def name(self) -> str:
        """Return a short identifier for logs."""
        ...

    def supports(self, path: str) -> bool:
        """Return True if this detector understands the file at ``path``."""
        ...

    def detect(self, source: str) -> list[TestClassSpan]:
        """Return the test classes declared in ``source``, in source order."""
        ...


def default_detectors() -> list[TestClassDetector]:
    """Return the built-in detectors for C# and Python sources."""
    from change_gate.selection.csharp_source import CSharpTestClassDetector
    from change_gate.selection.python_source import PythonTestClassDetector

    return [CSharpTestClassDetector(), PythonTestClassDetector()]
