"""Tests for configuration loading from pyproject.toml."""

import pytest

from change_gate.config import DEFAULT_SOURCE_EXTENSIONS, GateConfig, load_config, merge_configs
from change_gate.errors import MalformedManifestError


@pytest.mark.small
class TestLoadConfig:
    """Tests for load_config."""

    def test_defaults_without_pyproject(self, tmp_path):
        """A repository without pyproject.toml gets the defaults."""
        config = load_config(tmp_path)

        assert config == GateConfig()
        assert config.source_extensions == list(DEFAULT_SOURCE_EXTENSIONS)

    def test_defaults_without_section(self, tmp_path):
        """A pyproject.toml without [tool.change-gate] gets the defaults."""
        (tmp_path / 'pyproject.toml').write_text('[project]\nname = "app"\n')

        assert load_config(tmp_path) == GateConfig()

    def test_reads_section(self, tmp_path):
        """Every key of [tool.change-gate] is read."""
        (tmp_path / 'pyproject.toml').write_text(
            '[tool.change-gate]\n'
            'source-extensions = [".cs"]\n'
            'method-level = true\n'
            'coverage-exclude = ["src/Generated/*"]\n'
            'cache-dir = ".change_gate_cache"\n'
        )

        config = load_config(tmp_path)

        assert config == GateConfig(
            source_extensions=['.cs'],
            method_level=True,
            coverage_exclude=['src/Generated/*'],
            cache_dir='.change_gate_cache',
        )

    def test_invalid_toml(self, tmp_path):
        """Unparseable pyproject.toml is a malformed manifest."""
        (tmp_path / 'pyproject.toml').write_text('[tool.change-gate\n')

        with pytest.raises(MalformedManifestError):
            load_config(tmp_path)


@pytest.mark.small
class TestMergeConfigs:
    """Tests for merge_configs."""

    def test_no_cli_values_keeps_file_config(self):
        """Without CLI overrides the file config is returned as is."""
        file_config = GateConfig(method_level=True, coverage_exclude=['a/*'], cache_dir='.cache')

        assert merge_configs(file_config) == file_config

    def test_cli_values_override(self):
        """CLI values take precedence."""
        file_config = GateConfig(method_level=True, coverage_exclude=['a/*'])

        merged = merge_configs(file_config, cli_method_level=False, cli_exclude='b/*, c/*', cli_cache_dir='.cg')

        assert merged.method_level is False
        assert merged.coverage_exclude == ['b/*', 'c/*']
        assert merged.cache_dir == '.cg'

    def test_blank_cli_strings_are_ignored(self):
        """Empty strings count as not provided."""
        file_config = GateConfig(coverage_exclude=['a/*'], cache_dir='.cache')

        merged = merge_configs(file_config, cli_exclude='  ', cli_cache_dir='')

        assert merged.coverage_exclude == ['a/*']
        assert merged.cache_dir == '.cache'
