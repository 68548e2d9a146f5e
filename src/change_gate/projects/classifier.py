"""Pluggable project classification.

A project is a test project if ANY registered classifier says so. New
conventions plug in as another ProjectClassifier without touching the graph.

Example:
    >>> from change_gate.projects.manifest import ManifestSignals
    >>> classify_project(ManifestSignals(name='Contoso.Api.Tests'), default_classifiers())
    <ProjectKind.TEST: 'test'>
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from change_gate.projects.models import ProjectKind


if TYPE_CHECKING:
    from collections.abc import Iterable

    from change_gate.projects.manifest import ManifestSignals


@runtime_checkable
class ProjectClassifier(Protocol):
    """Protocol for test-project detection strategies."""

    @property
    def name(self) -> str:
        """Return a short identifier for logs."""
        ...

    def is_test_project(self, signals: ManifestSignals) -> bool:
        """Return True if the manifest signals identify a test project."""
        ...


class ManifestFlagClassifier:
    """Classifies by the manifest's explicit test-project flag."""

    @property
    def name(self) -> str:
        return 'manifest-flag'

    def is_test_project(self, signals: ManifestSignals) -> bool:
        return signals.is_test_project


_WORD_PATTERN = re.compile(r'[A-Z]+(?![a-z])|[A-Z]?[a-z0-9]+')


def name_tokens(name: str) -> list[str]:
    """Split a project name on '.', '-', '_' and camel-case boundaries.

    Example:
        >>> name_tokens('Contoso.ApiTests')
        ['contoso', 'api', 'tests']
    """
    return [word.lower() for word in _WORD_PATTERN.findall(name)]


class NamingConventionClassifier:
    """Classifies by a case-insensitive token in the project name.

    'FooTests', 'Foo.Tests' and 'foo-test' match; 'Contest' does not.
    """

    def __init__(self, tokens: Iterable[str] = ('test', 'tests')) -> None:
        self.tokens = frozenset(token.lower() for token in tokens)

    @property
    def name(self) -> str:
        return 'naming-convention'

    def is_test_project(self, signals: ManifestSignals) -> bool:
        return any(token in self.tokens for token in name_tokens(signals.name))


def default_classifiers() -> list[ProjectClassifier]:
    """Return the built-in classifiers: manifest flag, then naming convention."""
    return [ManifestFlagClassifier(), NamingConventionClassifier()]


def classify_project(signals: ManifestSignals, classifiers: Iterable[ProjectClassifier]) -> ProjectKind:
    """Classify a project as TEST if any classifier matches, else PRODUCTION."""
    if any(classifier.is_test_project(signals) for classifier in classifiers):
        return ProjectKind.TEST
    return ProjectKind.PRODUCTION
