"""CoverageReport: line-level hit counts per source file.

Every supported report format is converted into this representation before
the CoverageGate sees it. A line missing from a file's records was not
instrumented by the coverage tool.

Example:
    >>> report = CoverageReport()
    >>> report.add('src/Foo.cs', 6, 0)
    >>> report.lines_for('src/Foo.cs')
    {6: 0}
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LineRecord:
    """Hit count of one source line."""

    line_number: int
    hit_count: int


class CoverageReport:
    """Maps source files to per-line hit counts.

    Attributes:
        source_format: Name of the format the report was read from.
    """

    def __init__(self, source_format: str = 'memory') -> None:
        """Create an empty report."""
        self.source_format = source_format
        self._files: dict[str, dict[int, int]] = {}

    def __len__(self) -> int:
        """Return the number of files in the report."""
        return len(self._files)

    def __contains__(self, file_path: object) -> bool:
        return file_path in self._files

    def add(self, file_path: str, line_number: int, hit_count: int) -> None:
        """Record hits for a line. Repeated records for a line are summed.

        Args:
            file_path: Repository-relative POSIX path of the source file.
            line_number: One-based line number.
            hit_count: Number of executions, zero for an instrumented miss.
        """
        lines = self._files.setdefault(file_path, {})
        lines[line_number] = lines.get(line_number, 0) + hit_count

    def add_file(self, file_path: str) -> None:
        """Register a file that has no instrumented lines."""
        self._files.setdefault(file_path, {})

    def files(self) -> Iterator[str]:
        """Iterate over file paths in the report."""
        return iter(self._files)

    def records(self, file_path: str) -> tuple[LineRecord, ...]:
        """Return the line records of a file in line order (empty if absent)."""
        lines = self.lines_for(file_path) or {}
        return tuple(LineRecord(line, hits) for line, hits in sorted(lines.items()))

    def lines_for(self, file_path: str, claimants: Iterable[str] = ()) -> dict[int, int] | None:
        """Return the line -> hits mapping for a repository path, or None.

        Reports written by tools running elsewhere may carry absolute or
        differently rooted paths, so a suffix match on path segments is
        accepted when there is no exact match. The match must be unique both
        ways: exactly one report entry fits ``file_path``, and none of the
        other ``claimants`` fits that entry.

        Args:
            file_path: Repository-relative path to look up.
            claimants: Other repository paths looked up against this report,
                       such as every file of the same changeset.
        """
        if file_path in self._files:
            return dict(self._files[file_path])

        candidates = [key for key in self._files if _suffix_match(key, file_path)]
        if len(candidates) > 1:
            logger.warning('Ambiguous coverage entries for %s: %s', file_path, ', '.join(sorted(candidates)))
            return None
        if not candidates:
            return None

        key = candidates[0]
        rivals = sorted(
            other for other in claimants if other != file_path and (other == key or _suffix_match(key, other))
        )
        if rivals:
            logger.warning(
                'Coverage entry %s matches %s and also %s, crediting neither', key, file_path, ', '.join(rivals)
            )
            return None
        return dict(self._files[key])


def _suffix_match(key: str, file_path: str) -> bool:
    return key.endswith('/' + file_path) or file_path.endswith('/' + key)
