"""Project units discovered in a repository."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import posixpath


class ProjectKind(Enum):
    """Whether a project ships code or tests it."""

    PRODUCTION = 'production'
    TEST = 'test'


class SdkKind(Enum):
    """Deployable flavour of a project, from its manifest's SDK identifier."""

    WEB = 'web'
    FUNCTION = 'function'
    LIBRARY = 'library'
    UNKNOWN = 'unknown'


@dataclass(frozen=True)
class ProjectUnit:
    """A buildable project identified by its manifest.

    Attributes:
        path: POSIX path of the manifest relative to the repository root
              (e.g. 'src/Contoso.Api/Contoso.Api.csproj').
        name: Project name, used by naming-convention classification.
        kind: Production or Test.
        sdk_kind: SDK flavour used to infer the deployment type.
    """

    path: str
    name: str
    kind: ProjectKind
    sdk_kind: SdkKind = SdkKind.UNKNOWN

    @property
    def directory(self) -> str:
        """Directory owning the project's files ('' for the repository root)."""
        return posixpath.dirname(self.path)

    @property
    def is_test(self) -> bool:
        return self.kind is ProjectKind.TEST

    def owns(self, path: str) -> bool:
        """Return True if ``path`` lies inside this project's directory."""
        if not self.directory:
            return True
        return path == self.directory or path.startswith(self.directory + '/')
