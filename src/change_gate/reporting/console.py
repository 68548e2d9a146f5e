"""Console reporter for change-gate results.

Produces human-readable output for terminal display, for example:

    ===================== change-gate coverage check =====================

    Checked 12 changed lines in 2 files.
    Uncovered changed lines: 1

      src/Foo.cs:6    line not hit

    Coverage gate FAILED.
    ======================================================================
"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING, TextIO


if TYPE_CHECKING:
    from change_gate.coverage.gate import GateResult
    from change_gate.deploy.resolver import ResolutionResult
    from change_gate.selection.models import SelectionResult


class ConsoleReporter:
    """Reporter that writes gate results to the console.

    Attributes:
        output: The file-like object to write to.
    """

    BORDER_CHAR = '='
    BORDER_WIDTH = 70
    MAX_VIOLATIONS = 50

    def __init__(self, output: TextIO | None = None) -> None:
        """Initialize the console reporter.

        Args:
            output: File-like object to write to. Defaults to sys.stdout.
        """
        self.output = output or sys.stdout

    def write_selection(self, result: SelectionResult) -> None:
        """Write the selected tests."""
        self._write_header('change-gate test selection')
        self._write_blank_line()

        if result.is_empty:
            self._write_line('No test projects affected.')
        else:
            if result.fallbacks:
                self._write_line(f'Whole projects: {len(result.fallbacks)}')
                for project_path in sorted(result.fallbacks):
                    self._write_line(f'  {project_path}')
                self._write_blank_line()
            if result.explicit:
                self._write_line(f'Test cases: {len(result.explicit)}')
                for case in result.sorted_cases():
                    self._write_line(f'  {case}')

        self._write_footer()

    def write_coverage(self, result: GateResult) -> None:
        """Write the coverage check outcome and the uncovered lines."""
        self._write_header('change-gate coverage check')
        self._write_blank_line()
        self._write_line(f'Checked {result.checked_lines} changed lines in {result.checked_files} files.')

        if result.ok:
            self._write_line('All changed production lines are covered.')
        else:
            self._write_line(f'Uncovered changed lines: {len(result.violations)}')
            self._write_blank_line()
            for violation in result.violations[: self.MAX_VIOLATIONS]:
                location = f'{violation.file}:{violation.line}'
                self._write_line(f'  {location:<32} {violation.reason.value.replace("_", " ")}')
            hidden = len(result.violations) - self.MAX_VIOLATIONS
            if hidden > 0:
                self._write_line(f'  ... and {hidden} more (use --format=json for the full list)')
            self._write_blank_line()
            self._write_line('Coverage gate FAILED.')

        self._write_footer()

    def write_resolution(self, result: ResolutionResult) -> None:
        """Write the deployment targets and any blocking errors."""
        self._write_header('change-gate deployment targets')
        self._write_blank_line()

        if not result.targets and not result.errors:
            self._write_line('No deployable projects changed.')
        for target in result.targets:
            entry = target.entry
            self._write_line(
                f'  {target.project.path} -> {entry.type.value} '
                f'{entry.resource_group}/{entry.app_name} [{entry.slot}]'
            )
        if result.errors:
            self._write_blank_line()
            self._write_line(f'Errors: {len(result.errors)}')
            for error in result.errors:
                self._write_line(f'  {error}')

        self._write_footer()

    def _write_header(self, title: str) -> None:
        title = f' {title} '
        border_len = (self.BORDER_WIDTH - len(title)) // 2
        self._write_line(f'{self.BORDER_CHAR * border_len}{title}{self.BORDER_CHAR * border_len}')

    def _write_footer(self) -> None:
        self._write_line(self.BORDER_CHAR * self.BORDER_WIDTH)

    def _write_blank_line(self) -> None:
        self.output.write('\n')

    def _write_line(self, text: str) -> None:
        self.output.write(text + '\n')
