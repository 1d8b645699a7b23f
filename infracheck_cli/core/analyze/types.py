"""
Type definitions for the infrastructure requirement model.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

DOCUMENT_VERSION = "1.0"


class Platform(Enum):
    """Deployment target shape"""
    VM = "vm"
    KUBERNETES = "kubernetes"


class LocationClass(Enum):
    """Coarse storage kind of a filesystem path"""
    SHARED_STORAGE = "nas"
    MOUNT = "mount"
    LOCAL = "local"
    VAR = "var"
    UNKNOWN = "unknown"


class Origin(Enum):
    """Extraction tier a finding came from, in priority order"""
    EXPLICIT = "explicit"
    CONFIG_DERIVED = "config-derived"
    SOURCE_DERIVED = "source-derived"


class ResourceKind(Enum):
    CONFIG_MAP = "configmap"
    SECRET = "secret"
    PVC = "pvc"


@dataclass(frozen=True)
class FileFinding:
    """A file that must exist on the target host"""
    path: str
    location: LocationClass
    critical: bool
    description: str
    origin: Origin = Origin.EXPLICIT

    @property
    def value(self) -> str:
        return self.path

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "location": self.location.value,
            "critical": self.critical,
            "description": self.description,
        }


@dataclass(frozen=True)
class ApiFinding:
    """An HTTP endpoint that must be reachable from the target host"""
    url: str
    method: str
    critical: bool
    description: str
    origin: Origin = Origin.EXPLICIT
    expected_status: Optional[Tuple[int, ...]] = None

    @property
    def value(self) -> str:
        return self.url

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"url": self.url, "method": self.method}
        if self.expected_status:
            data["expectedStatus"] = list(self.expected_status)
        data["critical"] = self.critical
        data["description"] = self.description
        return data


@dataclass(frozen=True)
class DirectoryFinding:
    """A directory and the permissions the service needs on it (VM only)"""
    path: str
    permissions: str
    critical: bool
    description: str
    origin: Origin = Origin.EXPLICIT

    @property
    def value(self) -> str:
        return self.path

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "permissions": self.permissions,
            "critical": self.critical,
            "description": self.description,
        }


Finding = Union[FileFinding, ApiFinding, DirectoryFinding]


@dataclass(frozen=True)
class PlatformResource:
    """ConfigMap, Secret or PVC the container platform must provide"""
    kind: ResourceKind
    name: str
    critical: bool
    description: str
    mount_path: Optional[str] = None
    synthesized: bool = False

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "critical": self.critical,
            "description": self.description,
        }
        if self.kind is ResourceKind.PVC and self.mount_path is not None:
            data["mountPath"] = self.mount_path
        return data


@dataclass(frozen=True)
class RequirementsDocument:
    """Requirements for one (profile, platform) combination"""
    project: str
    environment: str
    platform: Platform
    company_domain: str
    files: Tuple[FileFinding, ...] = ()
    external_apis: Tuple[ApiFinding, ...] = ()
    directories: Tuple[DirectoryFinding, ...] = ()
    namespace: Optional[str] = None
    configmaps: Tuple[PlatformResource, ...] = ()
    secrets: Tuple[PlatformResource, ...] = ()
    pvcs: Tuple[PlatformResource, ...] = ()
    version: str = DOCUMENT_VERSION

    def to_dict(self) -> Dict[str, Any]:
        infrastructure: Dict[str, Any] = {"company_domain": self.company_domain}
        if self.platform is Platform.KUBERNETES:
            infrastructure["namespace"] = self.namespace
        infrastructure["files"] = [f.to_dict() for f in self.files]
        infrastructure["external_apis"] = [a.to_dict() for a in self.external_apis]
        if self.platform is Platform.VM:
            infrastructure["directories"] = [d.to_dict() for d in self.directories]
        else:
            infrastructure["configmaps"] = [c.to_dict() for c in self.configmaps]
            infrastructure["secrets"] = [s.to_dict() for s in self.secrets]
            infrastructure["pvcs"] = [p.to_dict() for p in self.pvcs]
        return {
            "version": self.version,
            "project": self.project,
            "environment": self.environment,
            "platform": self.platform.value,
            "infrastructure": infrastructure,
        }


@dataclass
class ExtractionDiagnostics:
    """Explicit declarations dropped during one extraction run, per category"""
    dropped_unresolved: Dict[str, List[str]] = field(default_factory=dict)
    dropped_invalid: Dict[str, int] = field(default_factory=dict)

    def record_unresolved(self, category: str, value: str) -> None:
        self.dropped_unresolved.setdefault(category, []).append(value)

    def record_invalid(self, category: str) -> None:
        self.dropped_invalid[category] = self.dropped_invalid.get(category, 0) + 1

    @property
    def unresolved_count(self) -> int:
        return sum(len(values) for values in self.dropped_unresolved.values())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dropped_unresolved": {k: list(v) for k, v in self.dropped_unresolved.items()},
            "dropped_invalid": dict(self.dropped_invalid),
        }
