"""GateEngine: wires the components together for one repository.

The working tree at ``root`` must be checked out at the head revision: the
project graph is discovered from it, and coverage-data reports are analysed
against it. File contents for diffing and test detection always come from the
VCS backend.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Self

from change_gate.cache.hasher import ContentHasher
from change_gate.cache.store import DiffStore
from change_gate.config import load_config
from change_gate.coverage.gate import CoverageGate
from change_gate.deploy.resolver import DeploymentResolver
from change_gate.diff.analyzer import DiffAnalyzer
from change_gate.diff.lines import decode_text, is_binary
from change_gate.diff.provider import GitDiffProvider
from change_gate.projects.graph import ProjectGraph
from change_gate.selection.selector import TestSelector


if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from change_gate.config import GateConfig
    from change_gate.coverage.gate import GateResult
    from change_gate.coverage.report import CoverageReport
    from change_gate.deploy.map import DeploymentMap
    from change_gate.deploy.resolver import ResolutionResult
    from change_gate.diff.models import ChangedFile, RevisionRange
    from change_gate.diff.provider import RevisionDiffProvider
    from change_gate.selection.detector import TestClassDetector
    from change_gate.selection.models import SelectionResult


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunPlan:
    """Selection and deployment resolution for one changeset.

    Attributes:
        changed_files: The analysed diff.
        changeset_id: Fingerprint of the diff, usable as a cache key.
        selection: Tests to run.
        resolution: Targets to deploy and blocking errors.
    """

    changed_files: tuple[ChangedFile, ...]
    changeset_id: str
    selection: SelectionResult
    resolution: ResolutionResult


class GateEngine:
    """Facade over DiffAnalyzer, TestSelector, CoverageGate and DeploymentResolver.

    Example:
        >>> with GateEngine(Path('.')) as engine:  # doctest: +SKIP
        ...     selection = engine.select_tests(RevisionRange('origin/main', 'HEAD'))
    """

    def __init__(
        self,
        root: Path,
        config: GateConfig | None = None,
        provider: RevisionDiffProvider | None = None,
        graph: ProjectGraph | None = None,
        detectors: Iterable[TestClassDetector] | None = None,
    ) -> None:
        """Create an engine.

        Args:
            root: Repository root, checked out at the head revision.
            config: Configuration; loaded from root/pyproject.toml when None.
            provider: VCS backend; git when None.
            graph: Project graph; discovered from ``root`` on first use when None.
            detectors: Test class detectors; the built-in ones when None.
        """
        self.root = root
        self.config = config if config is not None else load_config(root)
        self.provider = provider if provider is not None else GitDiffProvider(root)
        self._graph = graph
        self._detectors = list(detectors) if detectors is not None else None
        self._store = DiffStore(root / self.config.cache_dir / 'diffs.db') if self.config.cache_dir else None
        self._hasher = ContentHasher()

    @property
    def graph(self) -> ProjectGraph:
        """Projects of the head revision, discovered once."""
        if self._graph is None:
            self._graph = ProjectGraph.discover(self.root)
        return self._graph

    def analyzer(self) -> DiffAnalyzer:
        """Return a DiffAnalyzer that classifies paths with the project graph."""
        graph = self.graph
        extensions = tuple(self.config.source_extensions)
        return DiffAnalyzer(self.provider, classify=lambda path: graph.role_of(path, extensions), store=self._store)

    def changed_files(self, revisions: RevisionRange) -> tuple[ChangedFile, ...]:
        """Compute the classified diff for a revision range."""
        return self.analyzer().compute_diff(revisions)

    def changeset_id(self, changed_files: Iterable[ChangedFile]) -> str:
        """Fingerprint a diff."""
        return self._hasher.hash_changeset(changed_files)

    def head_reader(self, revisions: RevisionRange) -> Callable[[str], str | None]:
        """Return a function reading head-revision text, None for binary content."""
        head = self.provider.resolve(revisions.head_ref)

        def read(path: str) -> str | None:
            content = self.provider.read_blob(head, path)
            if is_binary(content):
                return None
            return decode_text(content)

        return read

    def select_tests(
        self, revisions: RevisionRange, changed_files: tuple[ChangedFile, ...] | None = None
    ) -> SelectionResult:
        """Select tests for a revision range."""
        if changed_files is None:
            changed_files = self.changed_files(revisions)
        selector = TestSelector(
            self.head_reader(revisions),
            self._detectors,
            method_level=self.config.method_level,
        )
        return selector.select_tests(changed_files, self.graph)

    def check_coverage(
        self,
        revisions: RevisionRange,
        report: CoverageReport,
        changed_files: tuple[ChangedFile, ...] | None = None,
    ) -> GateResult:
        """Check coverage of the changed production lines."""
        if changed_files is None:
            changed_files = self.changed_files(revisions)
        return CoverageGate(self.config.coverage_exclude).verify(changed_files, report)

    def resolve_deployments(
        self,
        revisions: RevisionRange,
        deployment_map: DeploymentMap,
        changed_files: tuple[ChangedFile, ...] | None = None,
    ) -> ResolutionResult:
        """Resolve deployment targets for a revision range."""
        if changed_files is None:
            changed_files = self.changed_files(revisions)
        return DeploymentResolver(self.graph).resolve(changed_files, deployment_map)

    def plan(self, revisions: RevisionRange, deployment_map: DeploymentMap) -> RunPlan:
        """Diff once, then select tests and resolve deployments concurrently."""
        changed_files = self.changed_files(revisions)
        with ThreadPoolExecutor(max_workers=2, thread_name_prefix='change-gate') as executor:
            selection = executor.submit(self.select_tests, revisions, changed_files)
            resolution = executor.submit(self.resolve_deployments, revisions, deployment_map, changed_files)
            return RunPlan(
                changed_files=changed_files,
                changeset_id=self.changeset_id(changed_files),
                selection=selection.result(),
                resolution=resolution.result(),
            )

    def close(self) -> None:
        """Release the diff cache, if any."""
        if self._store is not None:
            self._store.close()
            self._store = None

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        _exc_type: type[BaseException] | None,
        _exc_val: BaseException | None,
        _exc_tb: object,
    ) -> None:
        self.close()
