"""Command line interface for change-gate.

Subcommands:
    select-tests <base> <head>
    check-coverage <base> <head> <coverageFile>
    resolve-deploy <base> <head> <mapFile>

Exit codes:
    0 success, 2 usage error, 3 no diff available, 4 unmapped project or type
    mismatch, 5 coverage violation, 6 malformed deployment map, 7 malformed
    project manifest, 8 malformed coverage report.
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
import sys
from typing import TYPE_CHECKING, Any

from change_gate import __version__
from change_gate.config import load_config, merge_configs
from change_gate.coverage.adapters import FORMATS, load_report
from change_gate.deploy.map import load_deployment_map
from change_gate.diff.models import RevisionRange
from change_gate.engine import GateEngine
from change_gate.errors import (
    EXIT_COVERAGE_VIOLATION,
    EXIT_OK,
    EXIT_UNMAPPED_PROJECT,
    ChangeGateError,
)
from change_gate.reporting.console import ConsoleReporter
from change_gate.reporting.json_reporter import JsonReporter


if TYPE_CHECKING:
    from collections.abc import Callable, Sequence


logger = logging.getLogger(__name__)


def _common_options() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        '--root',
        type=Path,
        default=Path.cwd(),
        help='Repository root, checked out at the head revision (default: current directory)',
    )
    common.add_argument(
        '--format',
        choices=('console', 'json'),
        default='console',
        dest='output_format',
        help='Report format (default: console)',
    )
    common.add_argument('--output', type=Path, default=None, help='Write the report to this file')
    common.add_argument('--cache-dir', default=None, help='Directory for the diff cache')
    common.add_argument(
        '-v',
        '--verbose',
        action='count',
        default=0,
        help='Increase log verbosity (-v info, -vv debug)',
    )
    return common


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    common = _common_options()
    parser = argparse.ArgumentParser(
        prog='change-gate',
        description='Change-aware test selection, coverage gate and deployment resolution.',
    )
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    subparsers = parser.add_subparsers(dest='command', required=True)

    select = subparsers.add_parser('select-tests', parents=[common], help='Select tests for a revision range')
    _add_revisions(select)
    select.add_argument(
        '--method-level',
        action=argparse.BooleanOptionalAction,
        default=None,
        help='Narrow selection to individual test methods',
    )

    check = subparsers.add_parser(
        'check-coverage', parents=[common], help='Verify changed production lines are covered'
    )
    _add_revisions(check)
    check.add_argument('coverage_file', type=Path, help='Coverage report produced by the test run')
    check.add_argument(
        '--report-format',
        choices=FORMATS,
        default=None,
        help='Coverage report format (default: detected from the file name)',
    )
    check.add_argument(
        '--coverage-exclude',
        default=None,
        help='Comma-separated glob patterns of paths exempt from the gate',
    )

    deploy = subparsers.add_parser(
        'resolve-deploy', parents=[common], help='Resolve deployment targets for changed projects'
    )
    _add_revisions(deploy)
    deploy.add_argument('map_file', type=Path, help='Deployment map (JSON)')

    return parser


def _add_revisions(subparser: argparse.ArgumentParser) -> None:
    subparser.add_argument('base', help='Base revision (e.g. the merge base)')
    subparser.add_argument('head', help='Head revision')


def _configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format='%(levelname)s %(name)s: %(message)s', stream=sys.stderr)


def _emit(
    args: argparse.Namespace,
    data: dict[str, Any],
    write_console: Callable[[ConsoleReporter], None],
) -> None:
    if args.output_format == 'json':
        reporter = JsonReporter()
        if args.output is not None:
            reporter.write_report(data, args.output)
        else:
            sys.stdout.write(reporter.to_json(data) + '\n')
        return

    if args.output is not None:
        with args.output.open('w', encoding='utf-8') as output:
            write_console(ConsoleReporter(output))
    else:
        write_console(ConsoleReporter(sys.stdout))


def _run(args: argparse.Namespace) -> int:
    root = args.root.resolve()
    config = merge_configs(
        load_config(root),
        cli_method_level=getattr(args, 'method_level', None),
        cli_exclude=getattr(args, 'coverage_exclude', None),
        cli_cache_dir=args.cache_dir,
    )
    revisions = RevisionRange(args.base, args.head)
    json_reporter = JsonReporter()

    if args.command == 'resolve-deploy':
        deployment_map = load_deployment_map(args.map_file)
        with GateEngine(root, config) as engine:
            resolution = engine.resolve_deployments(revisions, deployment_map)
        _emit(args, json_reporter.resolution_data(resolution), lambda r: r.write_resolution(resolution))
        return EXIT_OK if resolution.ok else EXIT_UNMAPPED_PROJECT

    if args.command == 'check-coverage':
        report = load_report(args.coverage_file, args.report_format, root)
        with GateEngine(root, config) as engine:
            result = engine.check_coverage(revisions, report)
        _emit(args, json_reporter.coverage_data(result), lambda r: r.write_coverage(result))
        return EXIT_OK if result.ok else EXIT_COVERAGE_VIOLATION

    with GateEngine(root, config) as engine:
        changed_files = engine.changed_files(revisions)
        selection = engine.select_tests(revisions, changed_files)
        changeset_id = engine.changeset_id(changed_files)
    _emit(args, json_reporter.selection_data(selection, changeset_id), lambda r: r.write_selection(selection))
    return EXIT_OK


def main(argv: Sequence[str] | None = None) -> int:
    """Run change-gate from the command line.

    Returns:
        Process exit code.
    """
    args = build_parser().parse_args(argv)
    _configure_logging(args.verbose)
    try:
        return _run(args)
    except ChangeGateError as exc:
        logger.debug('Run failed', exc_info=True)
        print(f'Error: {exc}', file=sys.stderr)
        return exc.exit_code


if __name__ == '__main__':
    sys.exit(main())
