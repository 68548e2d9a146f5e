"""Test identifiers and selection results."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class TestCase:
    """An addressable unit of tests.

    No method means the whole class; no class means the whole project.

    Attributes:
        project_path: Manifest path of the owning test project.
        class_name: Test class name.
        method_name: Test method name.
    """

    __test__ = False

    project_path: str
    class_name: str | None = None
    method_name: str | None = None

    def __str__(self) -> str:
        return '::'.join(part for part in (self.project_path, self.class_name, self.method_name) if part)


@dataclass(frozen=True)
class MethodSpan:
    """A test method declaration and its inclusive line span."""

    name: str
    start: int
    end: int


@dataclass(frozen=True)
class TestClassSpan:
    """A test class declaration, its inclusive line span and test methods."""

    __test__ = False

    name: str
    start: int
    end: int
    methods: tuple[MethodSpan, ...] = ()


@dataclass(frozen=True)
class SelectionResult:
    """Output of the TestSelector.

    Attributes:
        explicit: Test classes (or methods) to run.
        fallbacks: Test project paths to run in full.
    """

    explicit: frozenset[TestCase] = field(default_factory=frozenset)
    fallbacks: frozenset[str] = field(default_factory=frozenset)

    @property
    def is_empty(self) -> bool:
        return not self.explicit and not self.fallbacks

    @property
    def projects(self) -> frozenset[str]:
        """Every test project referenced by the selection."""
        return frozenset(case.project_path for case in self.explicit) | self.fallbacks

    def sorted_cases(self) -> list[TestCase]:
        """Explicit cases in deterministic order."""
        return sorted(self.explicit, key=lambda c: (c.project_path, c.class_name or '', c.method_name or ''))
