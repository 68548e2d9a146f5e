"""CoverageGate: every changed production line must be executed.

Only changed lines are enforced, so the gate scales with the size of the
change rather than with the legacy code around it.

Example:
    >>> from change_gate.coverage.report import CoverageReport
    >>> from change_gate.diff.models import ChangedFile, ChangeKind, FileRole, LineRange
    >>> report = CoverageReport()
    >>> for line, hits in ((5, 1), (6, 0), (7, 3)):
    ...     report.add('Foo.cs', line, hits)
    >>> changed = ChangedFile('Foo.cs', ChangeKind.MODIFIED, (LineRange(5, 7),), role=FileRole.PRODUCTION)
    >>> CoverageGate().verify([changed], report).violations
    (Violation(file='Foo.cs', line=6, reason=<ViolationReason.LINE_NOT_HIT: 'line_not_hit'>),)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import fnmatch
import logging
from typing import TYPE_CHECKING

from change_gate.diff.models import FileRole


if TYPE_CHECKING:
    from collections.abc import Iterable

    from change_gate.coverage.report import CoverageReport
    from change_gate.diff.models import ChangedFile


logger = logging.getLogger(__name__)


class ViolationReason(Enum):
    """Why a changed line failed the gate.

    Attributes:
        LINE_MISSING_FROM_REPORT: The file has no coverage data at all.
        LINE_NOT_HIT: The line is instrumented but was never executed.
    """

    LINE_MISSING_FROM_REPORT = 'line_missing_from_report'
    LINE_NOT_HIT = 'line_not_hit'


@dataclass(frozen=True)
class Violation:
    """A changed production line that is not covered."""

    file: str
    line: int
    reason: ViolationReason


@dataclass(frozen=True)
class GateResult:
    """Outcome of a coverage check.

    Attributes:
        violations: Uncovered changed lines, ordered by file then line.
        checked_files: Number of production files examined.
        checked_lines: Number of changed lines examined.
    """

    violations: tuple[Violation, ...] = ()
    checked_files: int = 0
    checked_lines: int = 0

    @property
    def ok(self) -> bool:
        return not self.violations

    def by_file(self) -> dict[str, list[Violation]]:
        """Group violations by file, preserving order."""
        grouped: dict[str, list[Violation]] = {}
        for violation in self.violations:
            grouped.setdefault(violation.file, []).append(violation)
        return grouped


class CoverageGate:
    """Checks changed production lines against a coverage report.

    Attributes:
        exclude: Glob patterns of paths exempt from enforcement.
    """

    def __init__(self, exclude: Iterable[str] = ()) -> None:
        self.exclude = tuple(exclude)

    def is_enforced(self, changed: ChangedFile) -> bool:
        """Return True if the file's changed lines must be covered."""
        if changed.role is not FileRole.PRODUCTION or changed.is_deleted or changed.binary:
            return False
        return not any(fnmatch.fnmatch(changed.path, pattern) for pattern in self.exclude)

    def verify(self, changed_files: Iterable[ChangedFile], report: CoverageReport) -> GateResult:
        """Verify coverage of every changed production line.

        A file absent from the report yields LINE_MISSING_FROM_REPORT for each
        changed line. For a file present in the report, a listed line with zero
        hits yields LINE_NOT_HIT and an unlisted line is not instrumentable.

        Args:
            changed_files: Output of the DiffAnalyzer.
            report: Coverage of the executed tests.

        Returns:
            GateResult listing every violation.
        """
        violations: list[Violation] = []
        checked_files = 0
        checked_lines = 0

        ordered = sorted(changed_files, key=lambda c: c.path)
        claimants = [changed.path for changed in ordered if not changed.is_deleted]

        for changed in ordered:
            if not self.is_enforced(changed):
                continue
            checked_files += 1
            lines = report.lines_for(changed.path, claimants)
            if lines is None:
                logger.info('%s is missing from the coverage report', changed.path)
            for line in changed.changed_lines():
                checked_lines += 1
                if lines is None:
                    violations.append(Violation(changed.path, line, ViolationReason.LINE_MISSING_FROM_REPORT))
                elif line in lines and lines[line] < 1:
                    violations.append(Violation(changed.path, line, ViolationReason.LINE_NOT_HIT))

        logger.info(
            'Checked %d changed lines in %d files, %d uncovered', checked_lines, checked_files, len(violations)
        )
        return GateResult(tuple(violations), checked_files, checked_lines)
