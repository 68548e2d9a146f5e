"""Tests for CoverageGate.

The gate enforces coverage only on changed production lines. Lines absent
from a file's records are not instrumentable and never fail the gate; a file
absent from the report fails every changed line.
"""

import pytest

from change_gate.coverage.gate import CoverageGate, GateResult, Violation, ViolationReason
from change_gate.coverage.report import CoverageReport
from change_gate.diff.models import ChangedFile, ChangeKind, FileRole, LineRange


def production(path, *ranges, kind=ChangeKind.MODIFIED):
    return ChangedFile(path, kind, tuple(LineRange(s, e) for s, e in ranges), role=FileRole.PRODUCTION)


@pytest.fixture
def foo_report():
    report = CoverageReport()
    for line in range(1, 11):
        report.add('Foo.cs', line, 0 if line == 6 else 3)
    return report


@pytest.mark.small
class TestCoverageGate:
    """Tests for CoverageGate.verify."""

    def test_uncovered_branch_fails(self, foo_report):
        """Changing lines 5-7 with line 6 unhit yields one LINE_NOT_HIT."""
        result = CoverageGate().verify([production('Foo.cs', (5, 7))], foo_report)

        assert result.ok is False
        assert result.violations == (Violation('Foo.cs', 6, ViolationReason.LINE_NOT_HIT),)
        assert (result.checked_files, result.checked_lines) == (1, 3)

    def test_covered_change_passes(self, foo_report):
        """Changed lines that all have hits pass."""
        result = CoverageGate().verify([production('Foo.cs', (1, 5))], foo_report)

        assert result.ok is True
        assert result.violations == ()

    def test_file_missing_from_report(self):
        """Every changed line of an absent file is a violation."""
        result = CoverageGate().verify([production('src/New.cs', (1, 2))], CoverageReport())

        assert result.violations == (
            Violation('src/New.cs', 1, ViolationReason.LINE_MISSING_FROM_REPORT),
            Violation('src/New.cs', 2, ViolationReason.LINE_MISSING_FROM_REPORT),
        )

    def test_shared_bare_entry_credits_no_file(self):
        """One report entry matching two changed files fails both."""
        report = CoverageReport()
        report.add('Foo.cs', 1, 5)

        result = CoverageGate().verify([production('a/Foo.cs', (1, 1)), production('b/Foo.cs', (1, 1))], report)

        assert result.ok is False
        assert result.violations == (
            Violation('a/Foo.cs', 1, ViolationReason.LINE_MISSING_FROM_REPORT),
            Violation('b/Foo.cs', 1, ViolationReason.LINE_MISSING_FROM_REPORT),
        )

    def test_non_instrumentable_lines_are_exempt(self):
        """Braces, comments and blank lines have no records and pass."""
        report = CoverageReport()
        report.add('Foo.cs', 2, 1)

        result = CoverageGate().verify([production('Foo.cs', (1, 3))], report)

        assert result.ok is True
        assert result.checked_lines == 3

    def test_test_and_other_files_are_not_enforced(self):
        """Only production files are checked."""
        changed = [
            ChangedFile('tests/FooTests.cs', ChangeKind.MODIFIED, (LineRange(1, 5),), role=FileRole.TEST),
            ChangedFile('README.md', ChangeKind.MODIFIED, (LineRange(1, 5),), role=FileRole.OTHER),
        ]

        result = CoverageGate().verify(changed, CoverageReport())

        assert result == GateResult()

    def test_deleted_and_binary_files_are_not_enforced(self):
        """Files without head lines cannot be covered."""
        changed = [
            ChangedFile('src/Old.cs', ChangeKind.DELETED, role=FileRole.PRODUCTION),
            ChangedFile('src/Blob.cs', ChangeKind.MODIFIED, binary=True, role=FileRole.PRODUCTION),
        ]

        assert CoverageGate().verify(changed, CoverageReport()).ok

    def test_exclude_patterns(self):
        """Excluded globs are exempt from the gate."""
        gate = CoverageGate(exclude=['src/Generated/*', '*.Designer.cs'])
        changed = [
            production('src/Generated/Client.cs', (1, 1)),
            production('src/Forms/Main.Designer.cs', (1, 1)),
        ]

        assert gate.verify(changed, CoverageReport()).ok

    def test_violations_are_complete_and_ordered(self):
        """Every uncovered line is reported, ordered by file then line."""
        report = CoverageReport()
        report.add('b.cs', 1, 0)
        report.add('b.cs', 3, 0)
        changed = [production('b.cs', (1, 3)), production('a.cs', (2, 2))]

        result = CoverageGate().verify(changed, report)

        assert [(v.file, v.line) for v in result.violations] == [('a.cs', 2), ('b.cs', 1), ('b.cs', 3)]
        assert list(result.by_file()) == ['a.cs', 'b.cs']

    def test_result_is_deterministic(self, foo_report):
        """Verifying the same inputs twice gives equal results."""
        changed = [production('Foo.cs', (5, 7))]

        assert CoverageGate().verify(changed, foo_report) == CoverageGate().verify(changed, foo_report)
