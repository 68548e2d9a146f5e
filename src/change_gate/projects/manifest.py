"""Readers that extract classification signals from project manifests.

The engine needs exactly two signals per project: an explicit test-project
flag and the SDK identifier. Readers answer only those; they never interpret
the rest of a build file.
"""

from __future__ import annotations

from dataclasses import dataclass
import tomllib
from typing import TYPE_CHECKING, Protocol, runtime_checkable
import xml.etree.ElementTree as ET

from change_gate.errors import MalformedManifestError
from change_gate.projects.models import SdkKind


if TYPE_CHECKING:
    from pathlib import Path


@dataclass(frozen=True)
class ManifestSignals:
    """The two queryable signals of a project manifest.

    Attributes:
        name: Project name.
        is_test_project: Explicit test-project marker.
        sdk_kind: SDK flavour declared by the manifest.
    """

    name: str
    is_test_project: bool = False
    sdk_kind: SdkKind = SdkKind.UNKNOWN


@runtime_checkable
class ManifestReader(Protocol):
    """Protocol for manifest formats."""

    def matches(self, filename: str) -> bool:
        """Return True if ``filename`` is a manifest this reader understands."""
        ...

    def read(self, path: Path) -> ManifestSignals:
        """Read signals from a manifest on disk.

        Raises:
            MalformedManifestError: If the manifest cannot be parsed.
        """
        ...


FUNCTIONS_SDK = 'microsoft.net.sdk.functions'
WEB_SDK = 'microsoft.net.sdk.web'
BASE_SDK = 'microsoft.net.sdk'


def _local_name(tag: str) -> str:
    return tag.rsplit('}', 1)[-1]


def _sdk_names(value: str) -> list[str]:
    # 'Microsoft.NET.Sdk.Web/8.0.0;Other.Sdk' -> ['microsoft.net.sdk.web', 'other.sdk']
    return [part.split('/', 1)[0].strip().lower() for part in value.split(';') if part.strip()]


class MSBuildManifestReader:
    """Reads SDK-style MSBuild project files (.csproj, .fsproj, .vbproj).

    Signals:
        - ``<IsTestProject>true</IsTestProject>`` marks a test project.
        - ``Project@Sdk`` or ``<Sdk Name="..."/>`` selects the SDK flavour.
        - ``<AzureFunctionsVersion>`` or a ``Microsoft.NET.Sdk.Functions``
          package reference marks a Function project.
    """

    SUFFIXES = ('.csproj', '.fsproj', '.vbproj')

    def matches(self, filename: str) -> bool:
        return filename.lower().endswith(self.SUFFIXES)

    def read(self, path: Path) -> ManifestSignals:
        try:
            root = ET.parse(path).getroot()  # noqa: S314
        except (ET.ParseError, OSError) as exc:
            raise MalformedManifestError(str(path), str(exc)) from exc
        if _local_name(root.tag) != 'Project':
            raise MalformedManifestError(str(path), f"root element is <{_local_name(root.tag)}>, expected <Project>")

        sdks = _sdk_names(root.get('Sdk', ''))
        is_test = False
        functions = False
        for element in root.iter():
            name = _local_name(element.tag)
            text = (element.text or '').strip()
            if name == 'Sdk' and element.get('Name'):
                sdks.extend(_sdk_names(element.get('Name', '')))
            elif name == 'IsTestProject':
                is_test = text.lower() == 'true'
            elif name == 'AzureFunctionsVersion' and text:
                functions = True
            elif name == 'PackageReference' and (element.get('Include') or '').lower() == FUNCTIONS_SDK:
                functions = True

        if functions or FUNCTIONS_SDK in sdks:
            sdk_kind = SdkKind.FUNCTION
        elif WEB_SDK in sdks:
            sdk_kind = SdkKind.WEB
        elif BASE_SDK in sdks:
            sdk_kind = SdkKind.LIBRARY
        else:
            sdk_kind = SdkKind.UNKNOWN

        return ManifestSignals(name=path.stem, is_test_project=is_test, sdk_kind=sdk_kind)


class PyprojectManifestReader:
    """Reads ``pyproject.toml`` files.

    Signals live in the ``[tool.change-gate]`` table::

        [tool.change-gate]
        test-project = true
        sdk = "function"
    """

    def matches(self, filename: str) -> bool:
        return filename == 'pyproject.toml'

    def read(self, path: Path) -> ManifestSignals:
        try:
            with path.open('rb') as f:
                data = tomllib.load(f)
        except (tomllib.TOMLDecodeError, OSError) as exc:
            raise MalformedManifestError(str(path), str(exc)) from exc

        name = data.get('project', {}).get('name') or path.parent.name
        tool_config = data.get('tool', {}).get('change-gate', {})

        is_test = tool_config.get('test-project', False)
        if not isinstance(is_test, bool):
            raise MalformedManifestError(str(path), 'test-project must be a boolean')

        sdk_value = tool_config.get('sdk', SdkKind.UNKNOWN.value)
        try:
            sdk_kind = SdkKind(sdk_value)
        except ValueError as exc:
            raise MalformedManifestError(str(path), f'unknown sdk {sdk_value!r}') from exc

        return ManifestSignals(name=name, is_test_project=is_test, sdk_kind=sdk_kind)


def default_readers() -> list[ManifestReader]:
    """Return the built-in manifest readers."""
    return [MSBuildManifestReader(), PyprojectManifestReader()]
