"""Root pytest configuration for change-gate.

Tests are sized by the directory they live in (tests/small, tests/medium,
tests/large); markers are registered in pyproject.toml. Shared fixtures live
in tests/conftest.py.
"""

from __future__ import annotations

import pytest


SIZES = ('small', 'medium', 'large')


@pytest.hookimpl(tryfirst=True)
def pytest_collection_modifyitems(
    config: pytest.Config,  # noqa: ARG001
    items: list[pytest.Item],
) -> None:
    """Mark each unmarked test with the size named by its directory."""
    for item in items:
        if any(item.get_closest_marker(size) for size in SIZES):
            continue
        size = next((part for part in item.path.parts if part in SIZES), None)
        if size is not None:
            item.add_marker(getattr(pytest.mark, size))
