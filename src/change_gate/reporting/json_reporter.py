"""JSON reporter for change-gate results.

Produces machine-readable output for the pipeline steps that follow: the
test runner consumes the selection, the deployer consumes the targets.

Selection structure:
    {
        "changeset": "3f2a...",
        "explicit": [
            {"project": "tests/FooTests/FooTests.csproj", "class": "BarTests", "method": null}
        ],
        "fallbacks": ["tests/Legacy.Tests/Legacy.Tests.csproj"]
    }
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from change_gate.selection.models import SelectionResult, TestCase


if TYPE_CHECKING:
    from pathlib import Path

    from change_gate.coverage.gate import GateResult
    from change_gate.deploy.resolver import ResolutionResult


class JsonReporter:
    """Reporter that serializes gate results to JSON."""

    def selection_data(self, result: SelectionResult, changeset_id: str | None = None) -> dict[str, Any]:
        """Build the selection document."""
        return {
            'changeset': changeset_id,
            'explicit': [
                {'project': case.project_path, 'class': case.class_name, 'method': case.method_name}
                for case in result.sorted_cases()
            ],
            'fallbacks': sorted(result.fallbacks),
        }

    def coverage_data(self, result: GateResult) -> dict[str, Any]:
        """Build the coverage document."""
        return {
            'ok': result.ok,
            'checked_files': result.checked_files,
            'checked_lines': result.checked_lines,
            'violations': [
                {'file': v.file, 'line': v.line, 'reason': v.reason.value} for v in result.violations
            ],
        }

    def resolution_data(self, result: ResolutionResult) -> dict[str, Any]:
        """Build the deployment document."""
        return {
            'ok': result.ok,
            'targets': [
                {
                    'project': target.project.path,
                    'type': target.entry.type.value,
                    'resourceGroup': target.entry.resource_group,
                    'appName': target.entry.app_name,
                    'slot': target.entry.slot,
                    'package': target.package_path,
                }
                for target in result.targets
            ],
            'errors': [
                {'kind': type(error).__name__, 'project': error.project_path, 'message': str(error)}
                for error in result.errors
            ],
        }

    def to_json(self, data: dict[str, Any]) -> str:
        """Serialize a document as pretty-printed JSON."""
        return json.dumps(data, indent=2)

    def write_report(self, data: dict[str, Any], output_path: Path) -> None:
        """Write a document to a JSON file."""
        output_path.write_text(self.to_json(data) + '\n')


def read_selection(path: Path) -> SelectionResult:
    """Read a selection document written by JsonReporter.

    Raises:
        ValueError: If the document is not a selection report.
    """
    data = json.loads(path.read_text(encoding='utf-8'))
    if not isinstance(data, dict) or 'explicit' not in data or 'fallbacks' not in data:
        raise ValueError(f'{path} is not a change-gate selection report')
    explicit = frozenset(TestCase(item['project'], item.get('class'), item.get('method')) for item in data['explicit'])
    return SelectionResult(explicit=explicit, fallbacks=frozenset(data['fallbacks']))
