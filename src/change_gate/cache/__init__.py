"""Caching for repeated runs over the same revisions.

Provides changeset fingerprints and a SQLite store for computed diffs.
"""

from change_gate.cache.hasher import ContentHasher
from change_gate.cache.store import DiffStore


__all__ = ['ContentHasher', 'DiffStore']
