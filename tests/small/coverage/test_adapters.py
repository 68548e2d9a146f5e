"""Tests for coverage report adapters."""

import json

import coverage
import pytest

from change_gate.coverage.adapters import (
    detect_format,
    load_report,
    read_cobertura,
    read_coverage_data,
    read_coverage_json,
    read_lcov,
    repo_relative,
)
from change_gate.errors import CoverageReportError


COBERTURA = """<?xml version="1.0" ?>
<coverage line-rate="0.8" version="1.9">
  <sources>
    <source>{source}</source>
  </sources>
  <packages>
    <package name="Contoso.Api">
      <classes>
        <class name="Contoso.Api.Foo" filename="src/Foo.cs">
          <lines>
            <line number="5" hits="1" />
            <line number="6" hits="0" />
          </lines>
        </class>
        <class name="Contoso.Api.Foo/Inner" filename="src/Foo.cs">
          <lines>
            <line number="6" hits="2" />
            <line number="7" hits="0" />
          </lines>
        </class>
      </classes>
    </package>
  </packages>
</coverage>
"""

LCOV = """TN:
SF:{root}/src/app.py
DA:1,1
DA:2,0
end_of_record
SF:lib/util.py
DA:4,3
end_of_record
"""


@pytest.mark.small
class TestRepoRelative:
    """Tests for repo_relative."""

    def test_absolute_path_under_root(self, tmp_path):
        """Absolute paths inside the repository become relative."""
        assert repo_relative(str(tmp_path.resolve() / 'src' / 'Foo.cs'), tmp_path) == 'src/Foo.cs'

    def test_relative_path_is_normalised(self, tmp_path):
        """Relative paths are only normalised."""
        assert repo_relative('.\\src\\Foo.cs', tmp_path) == 'src/Foo.cs'

    def test_absolute_path_elsewhere_is_kept(self, tmp_path):
        """Paths outside the root stay absolute for suffix matching."""
        assert repo_relative('/build/agent/src/Foo.cs', tmp_path) == '/build/agent/src/Foo.cs'


@pytest.mark.small
class TestReadCobertura:
    """Tests for read_cobertura."""

    def test_reads_and_merges_classes(self, tmp_path):
        """Line hits from several classes of one file are summed."""
        path = tmp_path / 'coverage.cobertura.xml'
        path.write_text(COBERTURA.format(source=''))

        report = read_cobertura(path)

        assert report.lines_for('src/Foo.cs') == {5: 1, 6: 2, 7: 0}
        assert report.source_format == 'cobertura'

    def test_joins_single_source_directory(self, tmp_path):
        """Filenames are resolved against a single <source>."""
        path = tmp_path / 'coverage.xml'
        path.write_text(COBERTURA.format(source=tmp_path.resolve().as_posix() + '/services'))

        report = read_cobertura(path, root=tmp_path)

        assert 'services/src/Foo.cs' in report

    def test_relative_sources_resolve_against_root(self, tmp_path, monkeypatch):
        """With several <source> entries, relative ones are looked up under root."""
        repo = tmp_path / 'repo'
        (repo / 'lib' / 'src').mkdir(parents=True)
        (repo / 'lib' / 'src' / 'Foo.cs').write_text('class Foo { }\n')
        elsewhere = tmp_path / 'elsewhere'
        elsewhere.mkdir()
        monkeypatch.chdir(elsewhere)
        path = tmp_path / 'coverage.xml'
        path.write_text(COBERTURA.replace('<source>{source}</source>', '<source>services</source><source>lib</source>'))

        report = read_cobertura(path, root=repo)

        assert 'lib/src/Foo.cs' in report

    def test_rejects_other_documents(self, tmp_path):
        """A non-Cobertura root element is a malformed report."""
        path = tmp_path / 'coverage.xml'
        path.write_text('<report />')

        with pytest.raises(CoverageReportError, match='not a Cobertura report'):
            read_cobertura(path)

    def test_rejects_invalid_hits(self, tmp_path):
        """Non-numeric hit counts are malformed."""
        path = tmp_path / 'coverage.xml'
        path.write_text(
            '<coverage><packages><package><classes><class filename="a.cs"><lines>'
            '<line number="1" hits="many" /></lines></class></classes></package></packages></coverage>'
        )

        with pytest.raises(CoverageReportError, match='invalid <line>'):
            read_cobertura(path)

    def test_rejects_broken_xml(self, tmp_path):
        """Unparseable XML is a malformed report."""
        path = tmp_path / 'coverage.xml'
        path.write_text('<coverage>')

        with pytest.raises(CoverageReportError):
            read_cobertura(path)


@pytest.mark.small
class TestReadLcov:
    """Tests for read_lcov."""

    def test_reads_records(self, tmp_path):
        """SF/DA records become per-file line hits."""
        path = tmp_path / 'lcov.info'
        path.write_text(LCOV.format(root=tmp_path.resolve().as_posix()))

        report = read_lcov(path, root=tmp_path)

        assert report.lines_for('src/app.py') == {1: 1, 2: 0}
        assert report.lines_for('lib/util.py') == {4: 3}

    def test_da_outside_file_section(self, tmp_path):
        """DA before SF is malformed."""
        path = tmp_path / 'lcov.info'
        path.write_text('DA:1,1\n')

        with pytest.raises(CoverageReportError, match='outside of a file section'):
            read_lcov(path)

    def test_malformed_da(self, tmp_path):
        """A DA record needs a line and a hit count."""
        path = tmp_path / 'lcov.info'
        path.write_text('SF:a.py\nDA:x\nend_of_record\n')

        with pytest.raises(CoverageReportError, match='malformed DA record'):
            read_lcov(path)


@pytest.mark.small
class TestReadCoverageJson:
    """Tests for read_coverage_json."""

    def test_executed_and_missing_lines(self, tmp_path):
        """Executed lines count one hit, missing lines zero."""
        path = tmp_path / 'coverage.json'
        path.write_text(
            json.dumps({'files': {'src/app.py': {'executed_lines': [1, 2], 'missing_lines': [4]}}})
        )

        report = read_coverage_json(path)

        assert report.lines_for('src/app.py') == {1: 1, 2: 1, 4: 0}

    def test_missing_files_mapping(self, tmp_path):
        """A JSON document without 'files' is malformed."""
        path = tmp_path / 'coverage.json'
        path.write_text('{"totals": {}}')

        with pytest.raises(CoverageReportError, match='"files"'):
            read_coverage_json(path)


@pytest.mark.small
class TestReadCoverageData:
    """Tests for read_coverage_data."""

    def test_analyses_measured_files(self, tmp_path):
        """Statements not executed count as zero hits."""
        source = tmp_path.resolve() / 'app.py'
        source.write_text('a = 1\nif a:\n    b = 2\nelse:\n    b = 3\n')
        data_file = tmp_path / '.coverage'
        data = coverage.CoverageData(basename=str(data_file))
        data.add_lines({str(source): [1, 2, 3]})
        data.write()

        report = read_coverage_data(data_file, root=tmp_path)

        assert report.lines_for('app.py') == {1: 1, 2: 1, 3: 1, 5: 0}


@pytest.mark.small
class TestFormatDetection:
    """Tests for detect_format and load_report."""

    @pytest.mark.parametrize(
        ('filename', 'expected'),
        [
            ('coverage.cobertura.xml', 'cobertura'),
            ('lcov.info', 'lcov'),
            ('coverage.lcov', 'lcov'),
            ('coverage.json', 'coverage-json'),
            ('.coverage', 'coverage-data'),
            ('.coverage.host.1234', 'coverage-data'),
        ],
    )
    def test_detects_by_name(self, tmp_path, filename, expected):
        """Known report names map to their format."""
        assert detect_format(tmp_path / filename) == expected

    def test_unknown_name(self, tmp_path):
        """Unrecognised names need an explicit format."""
        with pytest.raises(CoverageReportError, match='Cannot tell the format'):
            detect_format(tmp_path / 'results.trx')

    def test_missing_report(self, tmp_path):
        """A report that does not exist is an error."""
        with pytest.raises(CoverageReportError, match='does not exist'):
            load_report(tmp_path / 'coverage.xml')

    def test_explicit_format_overrides_name(self, tmp_path):
        """report_format bypasses detection."""
        path = tmp_path / 'report.txt'
        path.write_text('SF:a.py\nDA:1,1\nend_of_record\n')

        report = load_report(path, 'lcov')

        assert report.lines_for('a.py') == {1: 1}

    def test_unknown_format(self, tmp_path):
        """An unsupported format name is rejected."""
        path = tmp_path / 'report.txt'
        path.write_text('')

        with pytest.raises(CoverageReportError, match='Unknown coverage format'):
            load_report(path, 'jacoco')
