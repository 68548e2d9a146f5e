"""Deployment target resolution.

Exports:
    DeploymentResolver: Maps changed production projects to deployment targets
    DeploymentMap, DeploymentMapEntry, DeploymentType: The declarative map
    load_deployment_map: Reads and validates a JSON deployment map
"""

from __future__ import annotations

from change_gate.deploy.map import (
    DeploymentMap,
    DeploymentMapEntry,
    DeploymentType,
    load_deployment_map,
    parse_deployment_map,
)
from change_gate.deploy.resolver import DeploymentResolver, DeploymentTarget, ResolutionResult


__all__ = [
    'DeploymentMap',
    'DeploymentMapEntry',
    'DeploymentResolver',
    'DeploymentTarget',
    'DeploymentType',
    'ResolutionResult',
    'load_deployment_map',
    'parse_deployment_map',
]
