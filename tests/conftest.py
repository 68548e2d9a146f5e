"""Shared fixtures for change-gate tests."""

from __future__ import annotations

import shutil
import subprocess
from typing import TYPE_CHECKING

import pytest


if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path


def csproj_text(sdk: str = 'Microsoft.NET.Sdk', properties: str = '', items: str = '') -> str:
    """Render a minimal SDK-style project file."""
    return (
        f'<Project Sdk="{sdk}">\n'
        f'  <PropertyGroup>\n'
        f'    <TargetFramework>net8.0</TargetFramework>\n'
        f'    {properties}\n'
        f'  </PropertyGroup>\n'
        f'  <ItemGroup>{items}</ItemGroup>\n'
        f'</Project>\n'
    )


@pytest.fixture
def make_csproj(tmp_path: Path) -> Callable[..., Path]:
    """Return a factory writing project files under tmp_path."""

    def make(relative_path: str, sdk: str = 'Microsoft.NET.Sdk', properties: str = '', items: str = '') -> Path:
        path = tmp_path / relative_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(csproj_text(sdk, properties, items))
        return path

    return make


class GitRepo:
    """A throwaway git repository driven through the git CLI."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self.git('init', '-q')
        self.git('config', 'user.email', 'ci@example.com')
        self.git('config', 'user.name', 'CI')
        self.git('config', 'commit.gpgsign', 'false')

    def git(self, *args: str) -> str:
        result = subprocess.run(  # noqa: S603
            ['git', *args],  # noqa: S607
            cwd=self.root,
            capture_output=True,
            text=True,
            check=True,
        )
        return result.stdout.strip()

    def write(self, relative_path: str, content: str | bytes) -> Path:
        path = self.root / relative_path
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content)
        return path

    def write_csproj(self, relative_path: str, sdk: str = 'Microsoft.NET.Sdk', properties: str = '') -> Path:
        return self.write(relative_path, csproj_text(sdk, properties))

    def remove(self, relative_path: str) -> None:
        (self.root / relative_path).unlink()

    def move(self, old_path: str, new_path: str) -> None:
        (self.root / new_path).parent.mkdir(parents=True, exist_ok=True)
        self.git('mv', old_path, new_path)

    def commit(self, message: str = 'change') -> str:
        self.git('add', '-A')
        self.git('commit', '-q', '--allow-empty', '-m', message)
        return self.git('rev-parse', 'HEAD')


@pytest.fixture
def git_repo(tmp_path: Path) -> GitRepo:
    """An empty git repository in tmp_path."""
    if shutil.which('git') is None:
        pytest.skip('git is not installed')
    repo_root = tmp_path / 'repo'
    repo_root.mkdir()
    return GitRepo(repo_root)
