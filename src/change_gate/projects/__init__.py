"""Project discovery and classification.

Exports:
    ProjectGraph: Projects of the head revision with path ownership lookup
    ProjectUnit, ProjectKind, SdkKind: Data model
    ProjectClassifier: Test-project detection protocol
    ManifestReader: Manifest signal protocol
"""

from __future__ import annotations

from change_gate.projects.classifier import (
    ManifestFlagClassifier,
    NamingConventionClassifier,
    ProjectClassifier,
    classify_project,
    default_classifiers,
)
from change_gate.projects.graph import ProjectGraph
from change_gate.projects.manifest import (
    ManifestReader,
    ManifestSignals,
    MSBuildManifestReader,
    PyprojectManifestReader,
    default_readers,
)
from change_gate.projects.models import ProjectKind, ProjectUnit, SdkKind


__all__ = [
    'MSBuildManifestReader',
    'ManifestFlagClassifier',
    'ManifestReader',
    'ManifestSignals',
    'NamingConventionClassifier',
    'ProjectClassifier',
    'ProjectGraph',
    'ProjectKind',
    'ProjectUnit',
    'PyprojectManifestReader',
    'SdkKind',
    'classify_project',
    'default_classifiers',
    'default_readers',
]
