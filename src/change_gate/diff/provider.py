"""Version-control backends that feed the DiffAnalyzer.

A RevisionDiffProvider answers three questions: what commit does a reference
name, which paths changed between two commits, and what bytes did a path hold
at a commit. The line-range algorithm never talks to a VCS directly.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path
import subprocess
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from change_gate.diff.models import ChangeKind
from change_gate.errors import DiffUnavailableError, RevisionNotFoundError


if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PathChange:
    """A path-level change reported by a backend, before line analysis.

    Attributes:
        path: Path at the head revision (base path for deletions).
        kind: How the path changed.
        old_path: Base path for renames.
    """

    path: str
    kind: ChangeKind
    old_path: str | None = None


@runtime_checkable
class RevisionDiffProvider(Protocol):
    """Protocol for version-control backends."""

    def resolve(self, ref: str) -> str:
        """Resolve a reference to an immutable revision id.

        Raises:
            RevisionNotFoundError: If the reference does not resolve.
        """
        ...

    def changed_paths(self, base: str, head: str) -> Sequence[PathChange]:
        """List paths whose content or existence differs between two revisions.

        Raises:
            DiffUnavailableError: If the backend cannot compute the diff.
        """
        ...

    def read_blob(self, revision: str, path: str) -> bytes:
        """Return the content of ``path`` at ``revision``.

        Raises:
            DiffUnavailableError: If the content cannot be read.
        """
        ...


_GIT_STATUS_KINDS = {
    'A': ChangeKind.ADDED,
    'C': ChangeKind.ADDED,
    'D': ChangeKind.DELETED,
    'M': ChangeKind.MODIFIED,
    'T': ChangeKind.MODIFIED,
    'R': ChangeKind.RENAMED,
}


def parse_name_status(output: bytes) -> list[PathChange]:
    """Parse the NUL-separated output of ``git diff --name-status -z``.

    Args:
        output: Raw stdout of the git command.

    Returns:
        One PathChange per entry, in git's order.
    """
    tokens = output.decode('utf-8', errors='surrogateescape').split('\0')
    if tokens and tokens[-1] == '':
        tokens.pop()

    changes: list[PathChange] = []
    index = 0
    while index < len(tokens):
        status = tokens[index]
        kind = _GIT_STATUS_KINDS.get(status[:1], ChangeKind.MODIFIED)
        if status[:1] in ('R', 'C'):
            old_path, new_path = tokens[index + 1], tokens[index + 2]
            index += 3
            if kind is ChangeKind.RENAMED:
                changes.append(PathChange(new_path, kind, old_path=old_path))
            else:
                changes.append(PathChange(new_path, kind))
        else:
            changes.append(PathChange(tokens[index + 1], kind))
            index += 2
    return changes


class GitDiffProvider:
    """RevisionDiffProvider backed by the ``git`` command line.

    Attributes:
        repo_root: Working directory of the repository.
    """

    def __init__(self, repo_root: Path, git_executable: str = 'git') -> None:
        self.repo_root = repo_root
        self._git = git_executable

    def _run(self, *args: str) -> subprocess.CompletedProcess[bytes]:
        command = [self._git, *args]
        logger.debug('Running %s', ' '.join(command))
        try:
            return subprocess.run(  # noqa: S603
                command,
                cwd=self.repo_root,
                capture_output=True,
                check=False,
            )
        except OSError as exc:
            raise DiffUnavailableError(f'Could not run {self._git}: {exc}') from exc

    def resolve(self, ref: str) -> str:
        result = self._run('rev-parse', '--verify', '--quiet', f'{ref}^{{commit}}')
        if result.returncode == 1:
            raise RevisionNotFoundError(ref)
        if result.returncode != 0:
            raise DiffUnavailableError(_stderr(result) or f'git rev-parse failed for {ref}')
        return result.stdout.decode('ascii').strip()

    def changed_paths(self, base: str, head: str) -> list[PathChange]:
        result = self._run(
            'diff',
            '--name-status',
            '-z',
            '--find-renames',
            '--no-color',
            '--no-ext-diff',
            base,
            head,
            '--',
        )
        if result.returncode != 0:
            raise DiffUnavailableError(_stderr(result) or f'git diff failed for {base}..{head}')
        return parse_name_status(result.stdout)

    def read_blob(self, revision: str, path: str) -> bytes:
        result = self._run('cat-file', 'blob', f'{revision}:{path}')
        if result.returncode != 0:
            raise DiffUnavailableError(_stderr(result) or f'Cannot read {path} at {revision}')
        return result.stdout


def _stderr(result: subprocess.CompletedProcess[bytes]) -> str:
    return result.stderr.decode('utf-8', errors='replace').strip()


class InMemoryDiffProvider:
    """RevisionDiffProvider over in-memory snapshots.

    Each revision maps paths to content. Renames are detected when a deleted
    path and an added path hold identical, non-empty content.

    Example:
        >>> provider = InMemoryDiffProvider({'v1': {'a.txt': 'x'}, 'v2': {'a.txt': 'y'}})
        >>> provider.changed_paths('v1', 'v2')
        [PathChange(path='a.txt', kind=<ChangeKind.MODIFIED: 'modified'>, old_path=None)]
    """

    def __init__(self, snapshots: Mapping[str, Mapping[str, bytes | str]]) -> None:
        self._snapshots = {
            revision: {path: _as_bytes(content) for path, content in files.items()}
            for revision, files in snapshots.items()
        }

    def resolve(self, ref: str) -> str:
        if ref not in self._snapshots:
            raise RevisionNotFoundError(ref)
        return ref

    def changed_paths(self, base: str, head: str) -> list[PathChange]:
        base_files = self._snapshot(base)
        head_files = self._snapshot(head)

        deleted = sorted(set(base_files) - set(head_files))
        added = sorted(set(head_files) - set(base_files))
        changes = [
            PathChange(path, ChangeKind.MODIFIED)
            for path in sorted(set(base_files) & set(head_files))
            if base_files[path] != head_files[path]
        ]

        for new_path in added:
            content = head_files[new_path]
            old_path = next((p for p in deleted if content and base_files[p] == content), None)
            if old_path is None:
                changes.append(PathChange(new_path, ChangeKind.ADDED))
            else:
                deleted.remove(old_path)
                changes.append(PathChange(new_path, ChangeKind.RENAMED, old_path=old_path))
        changes.extend(PathChange(path, ChangeKind.DELETED) for path in deleted)
        return changes

    def read_blob(self, revision: str, path: str) -> bytes:
        files = self._snapshot(revision)
        if path not in files:
            raise DiffUnavailableError(f'{path} does not exist at {revision}')
        return files[path]

    def _snapshot(self, revision: str) -> dict[str, bytes]:
        if revision not in self._snapshots:
            raise RevisionNotFoundError(revision)
        return self._snapshots[revision]


def _as_bytes(content: bytes | str) -> bytes:
    return content.encode('utf-8') if isinstance(content, str) else content
