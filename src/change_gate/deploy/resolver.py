"""DeploymentResolver: which changed projects ship, and where.

Every changed production project must be bound by the deployment map.
Missing bindings and SDK/type disagreements are collected rather than
raised, so one run reports all of them.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
import logging
from typing import TYPE_CHECKING

from change_gate.deploy.map import DeploymentType
from change_gate.errors import TypeMismatchError, UnmappedProjectError
from change_gate.projects.models import SdkKind


if TYPE_CHECKING:
    from collections.abc import Iterable

    from change_gate.deploy.map import DeploymentMap, DeploymentMapEntry
    from change_gate.diff.models import ChangedFile
    from change_gate.projects.graph import ProjectGraph
    from change_gate.projects.models import ProjectUnit


logger = logging.getLogger(__name__)

EXPECTED_TYPES = {
    SdkKind.WEB: DeploymentType.APP_SERVICE,
    SdkKind.FUNCTION: DeploymentType.FUNCTION_APP,
}

ResolutionError = UnmappedProjectError | TypeMismatchError


@dataclass(frozen=True)
class DeploymentTarget:
    """A changed project paired with its deployment map entry.

    Attributes:
        project: The project to publish.
        entry: Where to publish it.
        package_path: Artifact produced by the external packager, once known.
    """

    project: ProjectUnit
    entry: DeploymentMapEntry
    package_path: str | None = None

    def with_package(self, package_path: str) -> DeploymentTarget:
        """Return a copy annotated with the packaged artifact path."""
        return replace(self, package_path=package_path)


@dataclass(frozen=True)
class ResolutionResult:
    """Targets to deploy and errors that block deployment.

    Attributes:
        targets: Resolved targets in lexical project path order.
        errors: Unmapped projects and type mismatches, in the same order.
    """

    targets: tuple[DeploymentTarget, ...] = ()
    errors: tuple[ResolutionError, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.errors


class DeploymentResolver:
    """Resolves changed production projects against a deployment map.

    Attributes:
        graph: Projects of the head revision.
    """

    def __init__(self, graph: ProjectGraph) -> None:
        self.graph = graph

    def changed_projects(self, changed_files: Iterable[ChangedFile]) -> list[ProjectUnit]:
        """Return production projects owning a changed file, by path.

        Projects missing from the head revision (deleted projects) have no
        owner in the graph and are therefore never returned.
        """
        projects: dict[str, ProjectUnit] = {}
        for changed in changed_files:
            owner = self.graph.owner_of(changed.path)
            if owner is not None and not owner.is_test:
                projects[owner.path] = owner
        return [projects[path] for path in sorted(projects)]

    def resolve(self, changed_files: Iterable[ChangedFile], deployment_map: DeploymentMap) -> ResolutionResult:
        """Resolve deployment targets for the changed files.

        Args:
            changed_files: Output of the DiffAnalyzer.
            deployment_map: Project-to-target bindings for this run.

        Returns:
            Targets plus accumulated errors. The run must fail if any error
            is present.
        """
        targets: list[DeploymentTarget] = []
        errors: list[ResolutionError] = []

        for project in self.changed_projects(changed_files):
            entry = deployment_map.get(project.path)
            if entry is None:
                logger.info('Changed project %s is not in the deployment map', project.path)
                errors.append(UnmappedProjectError(project.path))
                continue

            expected = EXPECTED_TYPES.get(project.sdk_kind)
            if expected is not None and expected is not entry.type:
                logger.info('Project %s: map says %s, SDK implies %s', project.path, entry.type.value, expected.value)
                errors.append(TypeMismatchError(project.path, entry.type.value, expected.value))
                continue

            targets.append(DeploymentTarget(project, entry))

        logger.info('Resolved %d deployment targets with %d errors', len(targets), len(errors))
        return ResolutionResult(tuple(targets), tuple(errors))
