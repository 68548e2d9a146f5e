"""TestSelector: picks the tests a changeset needs.

Only test projects that own a changed file are considered. Within them,
changed test classes are selected individually; anything the detectors cannot
account for falls back to running the whole project.

Example:
    >>> from change_gate.diff.models import ChangedFile, ChangeKind, LineRange
    >>> from change_gate.projects import ProjectGraph, ProjectKind, ProjectUnit
    >>> graph = ProjectGraph([ProjectUnit('t/FooTests.csproj', 'FooTests', ProjectKind.TEST)])
    >>> source = 'class BarTests\\n{\\n    [Fact] void A() { }\\n}\\n'
    >>> selector = TestSelector(read_source=lambda path: source)
    >>> changed = ChangedFile('t/Bar.cs', ChangeKind.ADDED, (LineRange(1, 4),))
    >>> selector.select_tests([changed], graph).sorted_cases()
    [TestCase(project_path='t/FooTests.csproj', class_name='BarTests', method_name=None)]
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from change_gate.diff.models import ChangeKind
from change_gate.selection.detector import default_detectors
from change_gate.selection.models import SelectionResult, TestCase


if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from change_gate.diff.models import ChangedFile
    from change_gate.projects.graph import ProjectGraph
    from change_gate.selection.detector import TestClassDetector
    from change_gate.selection.models import TestClassSpan


logger = logging.getLogger(__name__)


class TestSelector:
    """Selects test classes (or whole projects) for a set of changed files.

    Attributes:
        detectors: Language detectors, tried in order.
        method_level: Narrow to test methods when every changed line of a
                      class lies inside test method bodies.
    """

    __test__ = False

    def __init__(
        self,
        read_source: Callable[[str], str | None],
        detectors: Iterable[TestClassDetector] | None = None,
        *,
        method_level: bool = False,
    ) -> None:
        """Create a selector.

        Args:
            read_source: Returns the head-revision text of a path, or None if
                         it is unreadable or binary.
            detectors: Test class detectors; defaults to C# and Python.
            method_level: Enable method-level narrowing.
        """
        self._read_source = read_source
        self.detectors = list(detectors) if detectors is not None else default_detectors()
        self.method_level = method_level

    def select_tests(self, changed_files: Iterable[ChangedFile], graph: ProjectGraph) -> SelectionResult:
        """Select tests for the changed files.

        Args:
            changed_files: Output of the DiffAnalyzer.
            graph: Projects of the head revision.

        Returns:
            Explicit test cases plus whole-project fallbacks. Every test
            project owning a changed file appears in one of the two.
        """
        explicit: dict[str, set[TestCase]] = {}
        fallbacks: set[str] = set()

        for changed in changed_files:
            project = graph.owner_of(changed.path)
            if project is None or not project.is_test:
                continue
            if changed.change_kind is ChangeKind.ADDED and graph.is_manifest(changed.path):
                logger.info('Test project %s is new, running it in full', project.path)
                fallbacks.add(project.path)
                continue

            cases = self._cases_for_file(changed, project.path)
            if cases:
                explicit.setdefault(project.path, set()).update(cases)
            else:
                logger.info('No changed test classes found in %s, running %s in full', changed.path, project.path)
                fallbacks.add(project.path)

        selected = frozenset(
            case for project_path, cases in explicit.items() if project_path not in fallbacks for case in cases
        )
        result = SelectionResult(explicit=selected, fallbacks=frozenset(fallbacks))
        logger.info('Selected %d test cases and %d whole projects', len(result.explicit), len(result.fallbacks))
        return result

    def _cases_for_file(self, changed: ChangedFile, project_path: str) -> set[TestCase]:
        if changed.is_deleted or changed.binary or not changed.line_ranges:
            return set()

        detector = next((d for d in self.detectors if d.supports(changed.path)), None)
        if detector is None:
            return set()

        source = self._read_source(changed.path)
        if source is None:
            return set()

        cases: set[TestCase] = set()
        for test_class in detector.detect(source):
            if changed.touches(test_class.start, test_class.end):
                cases.update(self._cases_for_class(changed, project_path, test_class))
        return cases

    def _cases_for_class(self, changed: ChangedFile, project_path: str, test_class: TestClassSpan) -> set[TestCase]:
        whole_class = {TestCase(project_path, test_class.name)}
        if not self.method_level or not test_class.methods:
            return whole_class

        changed_lines = [line for line in changed.changed_lines() if test_class.start <= line <= test_class.end]
        touched = {
            method.name
            for method in test_class.methods
            if any(method.start <= line <= method.end for line in changed_lines)
        }
        inside_methods = all(
            any(method.start <= line <= method.end for method in test_class.methods) for line in changed_lines
        )
        if not touched or not inside_methods:
            return whole_class
        return {TestCase(project_path, test_class.name, name) for name in touched}
