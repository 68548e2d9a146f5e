"""ProjectGraph: the set of projects in the head revision and path ownership.

A file belongs to the project whose directory is the deepest prefix of the
file's path. Classification happens once, when the graph is built.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING

from change_gate.diff.models import FileRole
from change_gate.projects.classifier import classify_project, default_classifiers
from change_gate.projects.manifest import default_readers
from change_gate.projects.models import ProjectUnit


if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from change_gate.projects.classifier import ProjectClassifier
    from change_gate.projects.manifest import ManifestReader


logger = logging.getLogger(__name__)

SKIPPED_DIRECTORIES = frozenset(('.git', 'bin', 'obj', 'node_modules', '__pycache__', 'TestResults'))


def normalize_path(path: str) -> str:
    """Normalise a repository-relative path to POSIX form without './'."""
    normalized = PurePosixPath(path.replace('\\', '/')).as_posix()
    return '' if normalized == '.' else normalized.removeprefix('./')


class ProjectGraph:
    """Immutable collection of ProjectUnits with path ownership lookup.

    Example:
        >>> from change_gate.projects.models import ProjectKind
        >>> graph = ProjectGraph([ProjectUnit('api/Api.csproj', 'Api', ProjectKind.PRODUCTION)])
        >>> graph.owner_of('api/Controllers/Home.cs').name
        'Api'
    """

    def __init__(self, units: Iterable[ProjectUnit]) -> None:
        self._units: dict[str, ProjectUnit] = {}
        for unit in sorted(units, key=lambda u: u.path):
            self._units[unit.path] = unit
        self._owners: dict[str, ProjectUnit | None] = {}

    @classmethod
    def discover(
        cls,
        root: Path,
        readers: Iterable[ManifestReader] | None = None,
        classifiers: Iterable[ProjectClassifier] | None = None,
    ) -> ProjectGraph:
        """Build a graph by scanning a working tree for project manifests.

        Args:
            root: Repository root checked out at the head revision.
            readers: Manifest readers; defaults to MSBuild and pyproject.
            classifiers: Test-project classifiers; defaults to manifest flag
                         and naming convention.

        Returns:
            A ProjectGraph with every discovered project classified.

        Raises:
            MalformedManifestError: If any manifest cannot be parsed.
        """
        reader_list = list(readers) if readers is not None else default_readers()
        classifier_list = list(classifiers) if classifiers is not None else default_classifiers()

        units: list[ProjectUnit] = []
        for dirpath, dirnames, filenames in os.walk(root):
            dirnames[:] = sorted(d for d in dirnames if d not in SKIPPED_DIRECTORIES and not d.startswith('.'))
            for filename in sorted(filenames):
                reader = next((r for r in reader_list if r.matches(filename)), None)
                if reader is None:
                    continue
                manifest = Path(dirpath) / filename
                signals = reader.read(manifest)
                unit = ProjectUnit(
                    path=manifest.relative_to(root).as_posix(),
                    name=signals.name,
                    kind=classify_project(signals, classifier_list),
                    sdk_kind=signals.sdk_kind,
                )
                logger.debug('Discovered %s project %s (%s)', unit.kind.value, unit.path, unit.sdk_kind.value)
                units.append(unit)

        logger.info('Discovered %d projects under %s', len(units), root)
        return cls(units)

    def __len__(self) -> int:
        return len(self._units)

    def __iter__(self) -> Iterator[ProjectUnit]:
        return iter(self._units.values())

    def __contains__(self, project_path: object) -> bool:
        return project_path in self._units

    def get(self, project_path: str) -> ProjectUnit | None:
        """Return the project with this manifest path, if any."""
        return self._units.get(project_path)

    def is_manifest(self, path: str) -> bool:
        """Return True if ``path`` is the manifest of a known project."""
        return normalize_path(path) in self._units

    def owner_of(self, path: str) -> ProjectUnit | None:
        """Return the project that owns ``path``, or None.

        The deepest owning directory wins. Two manifests in one directory are
        resolved to the lexically first, with a warning.
        """
        path = normalize_path(path)
        if path in self._owners:
            return self._owners[path]

        if path in self._units:
            owner: ProjectUnit | None = self._units[path]
        else:
            candidates = [unit for unit in self._units.values() if unit.owns(path)]
            owner = None
            if candidates:
                depth = max(len(unit.directory) for unit in candidates)
                deepest = [unit for unit in candidates if len(unit.directory) == depth]
                if len(deepest) > 1:
                    logger.warning(
                        '%s is owned by several projects (%s), using %s',
                        path,
                        ', '.join(unit.path for unit in deepest),
                        deepest[0].path,
                    )
                owner = deepest[0]

        self._owners[path] = owner
        return owner

    def role_of(self, path: str, source_extensions: Iterable[str]) -> FileRole:
        """Classify a path for the DiffAnalyzer.

        Any file owned by a test project is TEST. Files of production projects
        with a source extension are PRODUCTION. Everything else is OTHER.
        """
        owner = self.owner_of(path)
        if owner is None:
            return FileRole.OTHER
        if owner.is_test:
            return FileRole.TEST
        if PurePosixPath(path).suffix.lower() in {ext.lower() for ext in source_extensions}:
            return FileRole.PRODUCTION
        return FileRole.OTHER
