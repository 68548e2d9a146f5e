"""pytest plugin that runs only the tests a change-gate selection names.

Usage::

    $ change-gate select-tests origin/main HEAD --format=json --output=selection.json
    $ pytest --change-gate-selection=selection.json

Items under a whole-project fallback are kept. Other items are kept when
their class (and method, when the selection names one) matches an explicit
test case of the project that owns them. Everything else is deselected.
"""

from __future__ import annotations

from pathlib import Path
import posixpath
from typing import TYPE_CHECKING

import pytest

from change_gate.reporting.json_reporter import read_selection


if TYPE_CHECKING:
    from change_gate.selection.models import SelectionResult


def pytest_addoption(parser: pytest.Parser) -> None:
    """Add command-line options for change-gate."""
    group = parser.getgroup('change-gate', 'change-aware test selection')
    group.addoption(
        '--change-gate-selection',
        action='store',
        default=None,
        dest='change_gate_selection',
        help='Run only the tests named by a change-gate JSON selection report',
    )
    group.addoption(
        '--change-gate-root',
        action='store',
        default=None,
        dest='change_gate_root',
        help='Repository root the selection paths are relative to (default: rootdir)',
    )


def _project_dir(project_path: str) -> str:
    return posixpath.dirname(project_path)


def _within(path: str, directory: str) -> bool:
    return not directory or path == directory or path.startswith(directory + '/')


def is_selected(relative_path: str, class_name: str | None, method_name: str, selection: SelectionResult) -> bool:
    """Decide whether a collected test belongs to the selection.

    Args:
        relative_path: POSIX path of the test module relative to the repository root.
        class_name: Name of the test's outermost class, None for module-level tests.
        method_name: Name of the test function without parametrization.
        selection: The change-gate selection.

    Returns:
        True if the test should run.
    """
    if any(_within(relative_path, _project_dir(project)) for project in selection.fallbacks):
        return True
    for case in selection.explicit:
        if not _within(relative_path, _project_dir(case.project_path)):
            continue
        if case.class_name is None:
            return True
        if case.class_name == class_name and case.method_name in (None, method_name):
            return True
    return False


def _outermost_class_name(item: pytest.Item) -> str | None:
    """Name of the top-level class enclosing a test, None for module-level tests.

    Selections name top-level classes; tests of nested classes run with the
    class that declares them.
    """
    return next((node.name for node in item.listchain() if isinstance(node, pytest.Class)), None)


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Deselect collected tests outside the change-gate selection."""
    selection_path = config.getoption('change_gate_selection')
    if not selection_path:
        return

    try:
        selection = read_selection(Path(selection_path))
    except (OSError, ValueError, KeyError, TypeError) as exc:
        raise pytest.UsageError(f'Cannot read change-gate selection {selection_path}: {exc}') from exc

    root_option = config.getoption('change_gate_root')
    root = Path(root_option).resolve() if root_option else config.rootpath.resolve()

    kept: list[pytest.Item] = []
    deselected: list[pytest.Item] = []
    for item in items:
        try:
            relative_path = Path(item.path).resolve().relative_to(root).as_posix()
        except ValueError:
            kept.append(item)
            continue
        class_name = _outermost_class_name(item)
        method_name = getattr(item, 'originalname', item.name)
        if is_selected(relative_path, class_name, method_name, selection):
            kept.append(item)
        else:
            deselected.append(item)

    if deselected:
        config.hook.pytest_deselected(items=deselected)
        items[:] = kept
