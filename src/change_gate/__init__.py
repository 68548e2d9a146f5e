"""change-gate: change-aware quality gates for CI pipelines.

Given two revisions, change-gate answers three questions a pipeline asks
between build and merge/deploy:

- Which tests exercise the changed code? (``select-tests``)
- Was every changed production line executed by those tests? (``check-coverage``)
- Which changed projects must be deployed, and where? (``resolve-deploy``)

It never builds, runs tests or deploys anything itself.

Example:
    Select tests for a pull request::

        $ change-gate select-tests origin/main HEAD --format=json --output=selection.json

    Run only the selected tests with pytest::

        $ pytest --change-gate-selection=selection.json

    Gate on coverage of the changed lines::

        $ change-gate check-coverage origin/main HEAD coverage.xml
"""

from __future__ import annotations


__version__ = '0.1.0'
__all__ = ['__version__']
