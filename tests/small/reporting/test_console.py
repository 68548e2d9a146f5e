"""Tests for ConsoleReporter."""

import io

import pytest

from change_gate.coverage.gate import GateResult, Violation, ViolationReason
from change_gate.deploy.map import DeploymentMapEntry, DeploymentType
from change_gate.deploy.resolver import DeploymentTarget, ResolutionResult
from change_gate.errors import UnmappedProjectError
from change_gate.projects.models import ProjectKind, ProjectUnit, SdkKind
from change_gate.reporting.console import ConsoleReporter
from change_gate.selection.models import SelectionResult
from change_gate.selection.models import TestCase as Case


def render(write):
    output = io.StringIO()
    write(ConsoleReporter(output))
    return output.getvalue()


@pytest.mark.small
class TestConsoleReporter:
    """Tests for ConsoleReporter."""

    def test_header_and_footer_width(self):
        """Borders are 70 characters wide."""
        text = render(lambda r: r.write_selection(SelectionResult()))
        lines = text.splitlines()

        assert 'change-gate test selection' in lines[0]
        assert lines[-1] == '=' * 70

    def test_empty_selection(self):
        """An empty selection says so."""
        text = render(lambda r: r.write_selection(SelectionResult()))

        assert 'No test projects affected.' in text

    def test_selection_lists_cases_and_fallbacks(self):
        """Explicit cases and fallback projects are listed."""
        result = SelectionResult(
            explicit=frozenset({Case('t/FooTests.csproj', 'BarTests')}),
            fallbacks=frozenset({'t/Legacy.Tests.csproj'}),
        )

        text = render(lambda r: r.write_selection(result))

        assert 'Whole projects: 1' in text
        assert '  t/Legacy.Tests.csproj' in text
        assert 'Test cases: 1' in text
        assert '  t/FooTests.csproj::BarTests' in text

    def test_coverage_pass(self):
        """A passing gate reports the checked totals."""
        text = render(lambda r: r.write_coverage(GateResult(checked_files=2, checked_lines=12)))

        assert 'Checked 12 changed lines in 2 files.' in text
        assert 'All changed production lines are covered.' in text

    def test_coverage_failure_lists_violations(self):
        """Each violation is listed with its location and reason."""
        result = GateResult((Violation('src/Foo.cs', 6, ViolationReason.LINE_NOT_HIT),), 1, 3)

        text = render(lambda r: r.write_coverage(result))

        assert 'src/Foo.cs:6' in text
        assert 'line not hit' in text
        assert 'Coverage gate FAILED.' in text

    def test_coverage_failure_truncates_long_lists(self):
        """Only the first violations are printed."""
        violations = tuple(
            Violation('src/Big.cs', line, ViolationReason.LINE_MISSING_FROM_REPORT) for line in range(1, 61)
        )

        text = render(lambda r: r.write_coverage(GateResult(violations, 1, 60)))

        assert 'src/Big.cs:50' in text
        assert 'src/Big.cs:51' not in text
        assert '... and 10 more' in text

    def test_resolution(self):
        """Targets and errors are both reported."""
        project = ProjectUnit('src/Api/Api.csproj', 'Api', ProjectKind.PRODUCTION, SdkKind.WEB)
        entry = DeploymentMapEntry('src/Api/Api.csproj', DeploymentType.APP_SERVICE, 'rg', 'api', 'staging')
        result = ResolutionResult(
            targets=(DeploymentTarget(project, entry),),
            errors=(UnmappedProjectError('src/Jobs/Jobs.csproj'),),
        )

        text = render(lambda r: r.write_resolution(result))

        assert 'src/Api/Api.csproj -> appService rg/api [staging]' in text
        assert 'Errors: 1' in text
        assert 'src/Jobs/Jobs.csproj has no deployment map entry' in text

    def test_empty_resolution(self):
        """Nothing to deploy is stated explicitly."""
        text = render(lambda r: r.write_resolution(ResolutionResult()))

        assert 'No deployable projects changed.' in text
