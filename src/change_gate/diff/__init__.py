"""Revision diffing.

Exports:
    DiffAnalyzer: Computes classified ChangedFile records for a RevisionRange
    ChangedFile, ChangeKind, FileRole, LineRange, RevisionRange: Data model
    RevisionDiffProvider: Backend protocol, with git and in-memory implementations
"""

from __future__ import annotations

from change_gate.diff.analyzer import DiffAnalyzer
from change_gate.diff.models import ChangedFile, ChangeKind, FileRole, LineRange, RevisionRange
from change_gate.diff.provider import (
    GitDiffProvider,
    InMemoryDiffProvider,
    PathChange,
    RevisionDiffProvider,
)


__all__ = [
    'ChangeKind',
    'ChangedFile',
    'DiffAnalyzer',
    'FileRole',
    'GitDiffProvider',
    'InMemoryDiffProvider',
    'LineRange',
    'PathChange',
    'RevisionDiffProvider',
    'RevisionRange',
]
