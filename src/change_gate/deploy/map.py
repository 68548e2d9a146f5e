"""Deployment map: the declarative table binding projects to cloud targets.

The map is a JSON document, either a list of entries or an object with a
``deployments`` list::

    {
        "deployments": [
            {
                "path": "src/Contoso.Api/Contoso.Api.csproj",
                "type": "appService",
                "resourceGroup": "rg-contoso",
                "appName": "contoso-api",
                "slot": "staging"
            }
        ]
    }

The document is validated in full before use; any schema violation fails the
load, never yielding a partial map.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import json
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from change_gate.errors import MalformedMapError
from change_gate.projects.graph import normalize_path


if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator
    from pathlib import Path


DEFAULT_SLOT = 'production'
REQUIRED_FIELDS = ('path', 'type', 'resourceGroup', 'appName')


class DeploymentType(Enum):
    """Kind of hosting target."""

    APP_SERVICE = 'appService'
    FUNCTION_APP = 'functionApp'

    @classmethod
    def parse(cls, value: str) -> DeploymentType:
        """Parse a type name case-insensitively.

        Raises:
            ValueError: If the name is not a known type.
        """
        for member in cls:
            if member.value.lower() == value.lower():
                return member
        raise ValueError(f'unknown deployment type {value!r}')


@dataclass(frozen=True)
class DeploymentMapEntry:
    """One project-to-target binding.

    Attributes:
        project_path: Manifest path of the project, repository-relative.
        type: Hosting target kind.
        resource_group: Resource group holding the target.
        app_name: Name of the target application.
        slot: Deployment slot.
    """

    project_path: str
    type: DeploymentType
    resource_group: str
    app_name: str
    slot: str = DEFAULT_SLOT


class DeploymentMap:
    """Immutable lookup table of DeploymentMapEntry by project path."""

    def __init__(self, entries: Iterable[DeploymentMapEntry]) -> None:
        """Build a map.

        Raises:
            MalformedMapError: If two entries bind the same project.
        """
        table: dict[str, DeploymentMapEntry] = {}
        for entry in entries:
            if entry.project_path in table:
                raise MalformedMapError(f'Duplicate deployment map entry for {entry.project_path}')
            table[entry.project_path] = entry
        self._entries = MappingProxyType(table)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[DeploymentMapEntry]:
        return iter(self._entries.values())

    def __contains__(self, project_path: object) -> bool:
        return project_path in self._entries

    def get(self, project_path: str) -> DeploymentMapEntry | None:
        """Return the entry for an exact project path, if any."""
        return self._entries.get(normalize_path(project_path))


def _entry_from_dict(raw: Any, position: int) -> DeploymentMapEntry:
    if not isinstance(raw, dict):
        raise MalformedMapError(f'Entry {position} is not an object')
    for field_name in REQUIRED_FIELDS:
        value = raw.get(field_name)
        if not isinstance(value, str) or not value.strip():
            raise MalformedMapError(f"Entry {position} is missing required field '{field_name}'")
    slot = raw.get('slot', DEFAULT_SLOT)
    if not isinstance(slot, str) or not slot.strip():
        raise MalformedMapError(f"Entry {position} has an invalid 'slot'")
    try:
        deployment_type = DeploymentType.parse(raw['type'])
    except ValueError as exc:
        raise MalformedMapError(f'Entry {position}: {exc}') from exc
    return DeploymentMapEntry(
        project_path=normalize_path(raw['path']),
        type=deployment_type,
        resource_group=raw['resourceGroup'],
        app_name=raw['appName'],
        slot=slot,
    )


def parse_deployment_map(document: Any) -> DeploymentMap:
    """Validate a decoded JSON document and build a DeploymentMap.

    Raises:
        MalformedMapError: On any schema violation.
    """
    if isinstance(document, dict):
        if 'deployments' not in document:
            raise MalformedMapError("Deployment map object has no 'deployments' list")
        document = document['deployments']
    if not isinstance(document, list):
        raise MalformedMapError('Deployment map must be a list of entries')
    return DeploymentMap(_entry_from_dict(raw, position) for position, raw in enumerate(document))


def load_deployment_map(path: Path) -> DeploymentMap:
    """Load and validate a deployment map file.

    Raises:
        MalformedMapError: If the file is unreadable, not JSON, or invalid.
    """
    try:
        document = json.loads(path.read_text(encoding='utf-8'))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise MalformedMapError(f'Cannot read deployment map {path}: {exc}') from exc
    return parse_deployment_map(document)
