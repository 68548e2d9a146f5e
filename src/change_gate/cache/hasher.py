"""Content fingerprints for changesets.

Results of every component are pure functions of the changeset, so a stable
digest of the changed files is a valid cache key for anything downstream.
"""

from __future__ import annotations

import hashlib
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from collections.abc import Iterable

    from change_gate.diff.models import ChangedFile


class ContentHasher:
    """Produces SHA-256 fingerprints for strings and changesets.

    Example:
        >>> hasher = ContentHasher()
        >>> len(hasher.hash_string('src/app.py'))
        64
    """

    def hash_string(self, content: str) -> str:
        """Hash a string and return its hex digest."""
        return hashlib.sha256(content.encode('utf-8')).hexdigest()

    def hash_combined(self, hashes: Iterable[str]) -> str:
        """Combine several digests into one, order-sensitive."""
        return self.hash_string(''.join(hashes))

    def hash_changed_file(self, changed: ChangedFile) -> str:
        """Fingerprint one changed file: path, kind, ranges and role."""
        ranges = ','.join(f'{r.start}-{r.end}' for r in changed.line_ranges)
        parts = [
            changed.path,
            changed.change_kind.value,
            changed.old_path or '',
            'binary' if changed.binary else 'text',
            changed.role.value,
            ranges,
        ]
        return self.hash_string('\x1f'.join(parts))

    def hash_changeset(self, changed_files: Iterable[ChangedFile]) -> str:
        """Fingerprint a whole changeset independently of input order."""
        digests = sorted(self.hash_changed_file(changed) for changed in changed_files)
        return self.hash_combined(digests)
