"""DiffAnalyzer: turns a revision range into classified changed files.

The analyzer resolves both references, asks the backend which paths changed,
diffs text content line by line and tags each path with a role supplied by an
injected predicate. It knows nothing about project formats.
"""

from __future__ import annotations

from dataclasses import replace
import logging
from typing import TYPE_CHECKING, Any

from change_gate.diff.lines import changed_line_ranges, decode_text, is_binary, whole_file_ranges
from change_gate.diff.models import ChangedFile, ChangeKind, FileRole, LineRange


if TYPE_CHECKING:
    from collections.abc import Callable

    from change_gate.cache.store import DiffStore
    from change_gate.diff.models import RevisionRange
    from change_gate.diff.provider import PathChange, RevisionDiffProvider


logger = logging.getLogger(__name__)


def _unclassified(_path: str) -> FileRole:
    return FileRole.OTHER


class DiffAnalyzer:
    """Computes the ordered ChangedFile sequence for a RevisionRange.

    Attributes:
        provider: Version-control backend.
        classify: Predicate mapping a head path to its FileRole.
    """

    def __init__(
        self,
        provider: RevisionDiffProvider,
        classify: Callable[[str], FileRole] | None = None,
        store: DiffStore | None = None,
    ) -> None:
        """Create an analyzer.

        Args:
            provider: Backend used to resolve refs and read content.
            classify: Path classification predicate. Defaults to FileRole.OTHER
                      for every path.
            store: Optional cache of raw diffs keyed by resolved commits.
        """
        self.provider = provider
        self.classify = classify or _unclassified
        self._store = store

    def compute_diff(self, revisions: RevisionRange) -> tuple[ChangedFile, ...]:
        """Compute the changed files between base and head.

        Args:
            revisions: The base/head pair to compare.

        Returns:
            ChangedFile records ordered by path.

        Raises:
            RevisionNotFoundError: If either reference does not resolve.
            DiffUnavailableError: If the backend cannot produce the diff.
        """
        base = self.provider.resolve(revisions.base_ref)
        head = self.provider.resolve(revisions.head_ref)

        raw: tuple[ChangedFile, ...] | None = None
        if self._store is not None:
            records = self._store.get(base, head)
            if records is not None:
                logger.debug('Diff cache hit for %s..%s', base, head)
                raw = tuple(_from_record(record) for record in records)

        if raw is None:
            raw = self._diff(base, head)
            if self._store is not None:
                self._store.put(base, head, [_to_record(changed) for changed in raw])

        logger.info('%d files changed in %s', len(raw), revisions)
        return tuple(replace(changed, role=self.classify(changed.path)) for changed in raw)

    def _diff(self, base: str, head: str) -> tuple[ChangedFile, ...]:
        changes = self.provider.changed_paths(base, head)
        changed_files = [self._analyze(change, base, head) for change in changes]
        return tuple(sorted(changed_files, key=lambda changed: changed.path))

    def _analyze(self, change: PathChange, base: str, head: str) -> ChangedFile:
        if change.kind is ChangeKind.DELETED:
            return ChangedFile(change.path, change.kind)

        head_content = self.provider.read_blob(head, change.path)
        if is_binary(head_content):
            logger.debug('%s is binary, no line ranges', change.path)
            return ChangedFile(change.path, change.kind, old_path=change.old_path, binary=True)
        head_text = decode_text(head_content)

        if change.kind is ChangeKind.ADDED:
            return ChangedFile(change.path, change.kind, whole_file_ranges(head_text))

        base_content = self.provider.read_blob(base, change.old_path or change.path)
        if is_binary(base_content):
            ranges = whole_file_ranges(head_text)
        else:
            ranges = changed_line_ranges(decode_text(base_content), head_text)
        return ChangedFile(change.path, change.kind, ranges, old_path=change.old_path)


def _to_record(changed: ChangedFile) -> dict[str, Any]:
    return {
        'path': changed.path,
        'kind': changed.change_kind.value,
        'old_path': changed.old_path,
        'binary': changed.binary,
        'ranges': [[r.start, r.end] for r in changed.line_ranges],
    }


def _from_record(record: dict[str, Any]) -> ChangedFile:
    return ChangedFile(
        path=record['path'],
        change_kind=ChangeKind(record['kind']),
        line_ranges=tuple(LineRange(start, end) for start, end in record['ranges']),
        old_path=record.get('old_path'),
        binary=record.get('binary', False),
    )
