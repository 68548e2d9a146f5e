"""Data model for revision diffs.

A diff is an ordered tuple of ChangedFile records. Line ranges are inclusive,
one-based and expressed in head-revision line numbers.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator


class ChangeKind(Enum):
    """How a file differs between base and head."""

    ADDED = 'added'
    MODIFIED = 'modified'
    DELETED = 'deleted'
    RENAMED = 'renamed'


class FileRole(Enum):
    """What a changed file is, for selection and coverage purposes.

    Attributes:
        PRODUCTION: Source file of a production project.
        TEST: Any file owned by a test project.
        OTHER: Everything else (docs, pipeline files, non-source assets).
    """

    PRODUCTION = 'production'
    TEST = 'test'
    OTHER = 'other'


@dataclass(frozen=True)
class RevisionRange:
    """A (base, head) pair of revision references.

    Attributes:
        base_ref: Reference of the baseline snapshot.
        head_ref: Reference of the snapshot under review.
    """

    base_ref: str
    head_ref: str

    def __str__(self) -> str:
        return f'{self.base_ref}..{self.head_ref}'


@dataclass(frozen=True, order=True)
class LineRange:
    """Inclusive span of head-revision line numbers."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 1 or self.end < self.start:
            raise ValueError(f'Invalid line range {self.start}-{self.end}')

    def __contains__(self, line: object) -> bool:
        return isinstance(line, int) and self.start <= line <= self.end

    def __iter__(self) -> Iterator[int]:
        return iter(range(self.start, self.end + 1))

    def __len__(self) -> int:
        return self.end - self.start + 1

    def overlaps(self, start: int, end: int) -> bool:
        """Return True if this range shares a line with ``start..end``."""
        return self.start <= end and start <= self.end


def merge_ranges(ranges: Iterable[LineRange]) -> tuple[LineRange, ...]:
    """Sort ranges and merge overlapping or adjacent spans.

    Args:
        ranges: Line ranges in any order.

    Returns:
        Disjoint ranges sorted ascending.
    """
    merged: list[LineRange] = []
    for current in sorted(ranges):
        if merged and current.start <= merged[-1].end + 1:
            last = merged[-1]
            merged[-1] = LineRange(last.start, max(last.end, current.end))
        else:
            merged.append(current)
    return tuple(merged)


@dataclass(frozen=True)
class ChangedFile:
    """A file that differs between the base and head revisions.

    Attributes:
        path: POSIX path at the head revision (base path for deletions).
        change_kind: How the file changed.
        line_ranges: Changed head-revision line spans, disjoint and sorted.
        old_path: Path at the base revision, for renames.
        binary: True if the content is not line-diffable.
        role: Classification of the path.
    """

    path: str
    change_kind: ChangeKind
    line_ranges: tuple[LineRange, ...] = ()
    old_path: str | None = None
    binary: bool = False
    role: FileRole = FileRole.OTHER

    @property
    def is_deleted(self) -> bool:
        return self.change_kind is ChangeKind.DELETED

    def changed_lines(self) -> Iterator[int]:
        """Yield every changed head-revision line number in ascending order."""
        for line_range in self.line_ranges:
            yield from line_range

    def touches(self, start: int, end: int) -> bool:
        """Return True if any changed range overlaps ``start..end``."""
        return any(r.overlaps(start, end) for r in self.line_ranges)
