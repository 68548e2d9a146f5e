"""SQLite-backed cache of computed diffs.

Diffs between two immutable commits never change, so the DiffStore keeps
them keyed by the resolved (base, head) commit pair. Only the raw diff is
stored; file roles are reapplied on every read because project layout is
configuration.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from pathlib import Path


logger = logging.getLogger(__name__)

SCHEMA = """
    CREATE TABLE IF NOT EXISTS diffs (
        base_commit TEXT NOT NULL,
        head_commit TEXT NOT NULL,
        records TEXT NOT NULL,
        PRIMARY KEY (base_commit, head_commit)
    )
"""


class DiffStore:
    """SQLite cache of serialized diffs.

    Example:
        >>> from pathlib import Path
        >>> store = DiffStore(Path('.change_gate_cache/diffs.db'))
        >>> store.put('abc', 'def', [{'path': 'a.py', 'kind': 'modified', 'ranges': [[1, 2]]}])
        >>> store.get('abc', 'def')
        [{'path': 'a.py', 'kind': 'modified', 'ranges': [[1, 2]]}]
        >>> store.close()
    """

    def __init__(self, db_path: Path) -> None:
        """Open the store, creating the database if needed.

        A file that is not a usable SQLite database is replaced, with a warning.

        Args:
            db_path: Database file. Missing parent directories are created.
        """
        db_path.parent.mkdir(parents=True, exist_ok=True)
        self.db_path = db_path
        self._conn = self._connect()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.db_path))
        try:
            conn.execute(SCHEMA)
            conn.commit()
        except sqlite3.DatabaseError:
            conn.close()
            logger.warning('Diff cache corrupted at %s, recreating', self.db_path)
            self.db_path.unlink(missing_ok=True)
            conn = sqlite3.connect(str(self.db_path))
            conn.execute(SCHEMA)
            conn.commit()
        return conn

    def get(self, base_commit: str, head_commit: str) -> list[dict[str, Any]] | None:
        """Return the cached diff records for a commit pair, or None on a miss."""
        row = self._conn.execute(
            'SELECT records FROM diffs WHERE base_commit = ? AND head_commit = ?',
            (base_commit, head_commit),
        ).fetchone()
        if row is None:
            return None
        records: list[dict[str, Any]] = json.loads(row[0])
        return records

    def put(self, base_commit: str, head_commit: str, records: list[dict[str, Any]]) -> None:
        """Store diff records for a commit pair, replacing any previous value."""
        with self._conn:
            self._conn.execute(
                'INSERT OR REPLACE INTO diffs (base_commit, head_commit, records) VALUES (?, ?, ?)',
                (base_commit, head_commit, json.dumps(records)),
            )

    def clear(self) -> None:
        """Remove all entries."""
        with self._conn:
            self._conn.execute('DELETE FROM diffs')

    def count(self) -> int:
        count: int = self._conn.execute('SELECT COUNT(*) FROM diffs').fetchone()[0]
        return count

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> DiffStore:
        return self

    def __exit__(
        self,
        _exc_type: type[BaseException] | None,
        _exc_val: BaseException | None,
        _exc_tb: object,
    ) -> None:
        self.close()
