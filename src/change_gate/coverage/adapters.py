"""Adapters from coverage report formats to CoverageReport.

Supported formats:
    - ``cobertura``: Cobertura XML (coverlet, coverage.py ``xml``, many others)
    - ``lcov``: LCOV tracefiles (``SF:``/``DA:`` records)
    - ``coverage-json``: coverage.py ``json`` reports
    - ``coverage-data``: coverage.py ``.coverage`` data files, analysed with
      the coverage API against the checked-out sources
"""

from __future__ import annotations

import json
import logging
from pathlib import Path, PurePosixPath, PureWindowsPath
from typing import TYPE_CHECKING
import xml.etree.ElementTree as ET

import coverage
from coverage.exceptions import CoverageException

from change_gate.coverage.report import CoverageReport
from change_gate.errors import CoverageReportError
from change_gate.projects.graph import normalize_path


if TYPE_CHECKING:
    from collections.abc import Callable


logger = logging.getLogger(__name__)

FORMATS = ('cobertura', 'lcov', 'coverage-json', 'coverage-data')


def repo_relative(raw_path: str, root: Path | None) -> str:
    """Convert a path found in a report to a repository-relative POSIX path.

    Absolute paths under ``root`` are made relative; anything else is only
    normalised.
    """
    posix = raw_path.replace('\\', '/')
    is_absolute = PurePosixPath(posix).is_absolute() or PureWindowsPath(raw_path).is_absolute()
    if root is not None and is_absolute:
        root_posix = root.resolve().as_posix().rstrip('/')
        if posix.lower().startswith(root_posix.lower() + '/'):
            return normalize_path(posix[len(root_posix) + 1 :])
    return normalize_path(posix)


def read_cobertura(path: Path, root: Path | None = None) -> CoverageReport:
    """Read a Cobertura XML report.

    Filenames are resolved against the ``<sources>`` entries when they are
    relative and a source directory contains them.
    """
    try:
        tree = ET.parse(path)  # noqa: S314
    except (ET.ParseError, OSError) as exc:
        raise CoverageReportError(f'Cannot read Cobertura report {path}: {exc}') from exc

    document = tree.getroot()
    if document.tag != 'coverage':
        raise CoverageReportError(f'{path} is not a Cobertura report (root element <{document.tag}>)')

    sources = [(element.text or '').strip() for element in document.iterfind('sources/source')]
    report = CoverageReport('cobertura')
    for class_element in document.iter('class'):
        filename = class_element.get('filename')
        if not filename:
            raise CoverageReportError(f'{path}: <class> element without a filename')
        file_path = repo_relative(_join_source(filename, sources, root), root)
        report.add_file(file_path)
        for line in class_element.iterfind('lines/line'):
            try:
                report.add(file_path, int(line.get('number', '')), int(line.get('hits', '')))
            except ValueError as exc:
                raise CoverageReportError(f'{path}: invalid <line> in {filename}: {exc}') from exc
    return report


def _join_source(filename: str, sources: list[str], root: Path | None = None) -> str:
    if PurePosixPath(filename.replace('\\', '/')).is_absolute() or PureWindowsPath(filename).is_absolute():
        return filename
    if len(sources) == 1:
        return str(PurePosixPath(sources[0].replace('\\', '/')) / filename.replace('\\', '/'))
    for source in sources:
        candidate = PurePosixPath(source.replace('\\', '/')) / filename.replace('\\', '/')
        on_disk = Path(candidate)
        if not on_disk.is_absolute() and root is not None:
            # relative sources are relative to the repository, not the cwd
            on_disk = root / on_disk
        if on_disk.exists():
            return str(candidate)
    return filename


def read_lcov(path: Path, root: Path | None = None) -> CoverageReport:
    """Read an LCOV tracefile."""
    try:
        content = path.read_text(encoding='utf-8')
    except (OSError, UnicodeDecodeError) as exc:
        raise CoverageReportError(f'Cannot read LCOV report {path}: {exc}') from exc

    report = CoverageReport('lcov')
    current: str | None = None
    for number, raw_line in enumerate(content.splitlines(), start=1):
        line = raw_line.strip()
        if line.startswith('SF:'):
            current = repo_relative(line[3:], root)
            report.add_file(current)
        elif line.startswith('DA:'):
            if current is None:
                raise CoverageReportError(f'{path}:{number}: DA record outside of a file section')
            fields = line[3:].split(',')
            try:
                report.add(current, int(fields[0]), int(fields[1]))
            except (IndexError, ValueError) as exc:
                raise CoverageReportError(f'{path}:{number}: malformed DA record {line!r}') from exc
        elif line == 'end_of_record':
            current = None
    return report


def read_coverage_json(path: Path, root: Path | None = None) -> CoverageReport:
    """Read a coverage.py JSON report (``coverage json``)."""
    try:
        data = json.loads(path.read_text(encoding='utf-8'))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise CoverageReportError(f'Cannot read coverage JSON report {path}: {exc}') from exc

    files = data.get('files') if isinstance(data, dict) else None
    if not isinstance(files, dict):
        raise CoverageReportError(f'{path} has no "files" mapping')

    report = CoverageReport('coverage-json')
    for raw_path, file_data in files.items():
        file_path = repo_relative(raw_path, root)
        report.add_file(file_path)
        try:
            for line_number in file_data.get('executed_lines', []):
                report.add(file_path, int(line_number), 1)
            for line_number in file_data.get('missing_lines', []):
                report.add(file_path, int(line_number), 0)
        except (AttributeError, TypeError, ValueError) as exc:
            raise CoverageReportError(f'{path}: malformed entry for {raw_path}') from exc
    return report


def read_coverage_data(path: Path, root: Path | None = None) -> CoverageReport:
    """Read a coverage.py data file by analysing each measured source file.

    The sources must be present on disk, as they are in the pipeline's head
    checkout. Statements with no recorded execution count as zero hits.
    """
    cov = coverage.Coverage(data_file=str(path), config_file=False)
    report = CoverageReport('coverage-data')
    try:
        cov.load()
        measured = sorted(cov.get_data().measured_files())
        for filename in measured:
            _, statements, _, missing, _ = cov.analysis2(filename)
            file_path = repo_relative(filename, root)
            report.add_file(file_path)
            missing_lines = set(missing)
            for line_number in statements:
                report.add(file_path, line_number, 0 if line_number in missing_lines else 1)
    except CoverageException as exc:
        raise CoverageReportError(f'Cannot read coverage data file {path}: {exc}') from exc
    return report


_READERS: dict[str, Callable[[Path, Path | None], CoverageReport]] = {
    'cobertura': read_cobertura,
    'lcov': read_lcov,
    'coverage-json': read_coverage_json,
    'coverage-data': read_coverage_data,
}


def detect_format(path: Path) -> str:
    """Guess a report format from its file name.

    Raises:
        CoverageReportError: If the name matches no known format.
    """
    name = path.name.lower()
    if name.startswith('.coverage') and path.suffix.lower() not in ('.xml', '.json', '.info'):
        return 'coverage-data'
    if name.endswith('.xml'):
        return 'cobertura'
    if name.endswith(('.info', '.lcov')):
        return 'lcov'
    if name.endswith('.json'):
        return 'coverage-json'
    raise CoverageReportError(f'Cannot tell the format of {path}; pass one of: {", ".join(FORMATS)}')


def load_report(path: Path, report_format: str | None = None, root: Path | None = None) -> CoverageReport:
    """Load a coverage report of any supported format.

    Args:
        path: Report file.
        report_format: One of FORMATS, or None to detect from the file name.
        root: Repository root used to relativise absolute paths.

    Returns:
        The parsed CoverageReport.

    Raises:
        CoverageReportError: If the file is missing, unknown or malformed.
    """
    if not path.exists():
        raise CoverageReportError(f'Coverage report {path} does not exist')
    report_format = report_format or detect_format(path)
    if report_format not in _READERS:
        raise CoverageReportError(f"Unknown coverage format '{report_format}'; expected one of: {', '.join(FORMATS)}")
    report = _READERS[report_format](path, root)
    logger.info('Loaded %s coverage for %d files from %s', report_format, len(report), path)
    return report
