"""Configuration loading for change-gate.

This module reads configuration from the pyproject.toml [tool.change-gate]
section of the repository under analysis and provides defaults when
configuration is absent.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import tomllib
from typing import TYPE_CHECKING

from change_gate.errors import MalformedManifestError


if TYPE_CHECKING:
    from pathlib import Path


DEFAULT_SOURCE_EXTENSIONS = ('.cs', '.fs', '.vb', '.py')


@dataclass
class GateConfig:
    """Configuration for change-gate.

    Attributes:
        source_extensions: Suffixes of production files subject to coverage.
        method_level: Narrow test selection to individual test methods.
        coverage_exclude: Glob patterns of production paths exempt from the
                          coverage gate.
        cache_dir: Directory for the diff cache; None disables caching.
    """

    source_extensions: list[str] = field(default_factory=lambda: list(DEFAULT_SOURCE_EXTENSIONS))
    method_level: bool = False
    coverage_exclude: list[str] = field(default_factory=list)
    cache_dir: str | None = None


def load_config(rootdir: Path) -> GateConfig:
    """Load configuration from pyproject.toml.

    Reads the [tool.change-gate] section from pyproject.toml in the given
    directory. Returns default configuration if the file or section does not
    exist.

    Args:
        rootdir: Directory containing pyproject.toml.

    Returns:
        GateConfig with values from pyproject.toml or defaults.

    Raises:
        MalformedManifestError: If pyproject.toml cannot be parsed.
    """
    pyproject_path = rootdir / 'pyproject.toml'

    if not pyproject_path.exists():
        return GateConfig()

    try:
        with pyproject_path.open('rb') as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as exc:
        raise MalformedManifestError(str(pyproject_path), str(exc)) from exc

    tool_config = data.get('tool', {}).get('change-gate', {})
    defaults = GateConfig()

    return GateConfig(
        source_extensions=tool_config.get('source-extensions', defaults.source_extensions),
        method_level=tool_config.get('method-level', defaults.method_level),
        coverage_exclude=tool_config.get('coverage-exclude', defaults.coverage_exclude),
        cache_dir=tool_config.get('cache-dir', defaults.cache_dir),
    )


def merge_configs(
    file_config: GateConfig,
    cli_method_level: bool | None = None,
    cli_exclude: str | None = None,
    cli_cache_dir: str | None = None,
) -> GateConfig:
    """Merge CLI arguments with file configuration.

    CLI arguments take precedence over pyproject.toml configuration.
    Empty strings are treated as not provided.

    Args:
        file_config: Configuration loaded from pyproject.toml.
        cli_method_level: Value of --method-level, None when not given.
        cli_exclude: Comma-separated glob patterns from --coverage-exclude.
        cli_cache_dir: Directory from --cache-dir.

    Returns:
        GateConfig with CLI values overriding file config where provided.
    """
    coverage_exclude = file_config.coverage_exclude
    if cli_exclude and cli_exclude.strip():
        coverage_exclude = [pattern.strip() for pattern in cli_exclude.split(',') if pattern.strip()]

    cache_dir = file_config.cache_dir
    if cli_cache_dir and cli_cache_dir.strip():
        cache_dir = cli_cache_dir.strip()

    return GateConfig(
        source_extensions=file_config.source_extensions,
        method_level=file_config.method_level if cli_method_level is None else cli_method_level,
        coverage_exclude=coverage_exclude,
        cache_dir=cache_dir,
    )
