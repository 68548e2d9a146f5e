"""Error hierarchy for change-gate.

Every error carries the process exit code the CLI reports for its category.
Fatal errors are raised; deployment errors are collected as values on a
ResolutionResult so a single run reports every problem at once.
"""

from __future__ import annotations


EXIT_OK = 0
EXIT_USAGE = 2
EXIT_DIFF_UNAVAILABLE = 3
EXIT_UNMAPPED_PROJECT = 4
EXIT_COVERAGE_VIOLATION = 5
EXIT_MALFORMED_MAP = 6
EXIT_MALFORMED_MANIFEST = 7
EXIT_MALFORMED_REPORT = 8


class ChangeGateError(Exception):
    """Base class for all change-gate errors."""

    exit_code = 1


class RevisionNotFoundError(ChangeGateError):
    """A revision reference could not be resolved by the VCS backend."""

    exit_code = EXIT_DIFF_UNAVAILABLE

    def __init__(self, ref: str, detail: str = '') -> None:
        self.ref = ref
        message = f"Revision '{ref}' could not be resolved"
        if detail:
            message = f'{message}: {detail}'
        super().__init__(message)


class DiffUnavailableError(ChangeGateError):
    """The backend could not produce a diff (e.g. shallow history)."""

    exit_code = EXIT_DIFF_UNAVAILABLE


class MalformedManifestError(ChangeGateError):
    """A project manifest could not be read or parsed."""

    exit_code = EXIT_MALFORMED_MANIFEST

    def __init__(self, path: str, detail: str) -> None:
        self.path = path
        super().__init__(f'Malformed project manifest {path}: {detail}')


class MalformedMapError(ChangeGateError):
    """The deployment map violates its schema."""

    exit_code = EXIT_MALFORMED_MAP


class CoverageReportError(ChangeGateError):
    """A coverage report could not be read or parsed."""

    exit_code = EXIT_MALFORMED_REPORT


class UnmappedProjectError(ChangeGateError):
    """A changed production project has no deployment map entry."""

    exit_code = EXIT_UNMAPPED_PROJECT

    def __init__(self, project_path: str) -> None:
        self.project_path = project_path
        super().__init__(f'Changed project {project_path} has no deployment map entry')

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, UnmappedProjectError):
            return NotImplemented
        return self.project_path == other.project_path

    def __hash__(self) -> int:
        return hash(('unmapped', self.project_path))


class TypeMismatchError(ChangeGateError):
    """A deployment map entry's type disagrees with the project's SDK."""

    exit_code = EXIT_UNMAPPED_PROJECT

    def __init__(self, project_path: str, declared: str, expected: str) -> None:
        self.project_path = project_path
        self.declared = declared
        self.expected = expected
        super().__init__(
            f'Project {project_path} is mapped as {declared} but its SDK implies {expected}'
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TypeMismatchError):
            return NotImplemented
        return (self.project_path, self.declared, self.expected) == (
            other.project_path,
            other.declared,
            other.expected,
        )

    def __hash__(self) -> int:
        return hash(('mismatch', self.project_path, self.declared, self.expected))
