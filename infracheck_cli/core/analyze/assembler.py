"""
Assembly of per-profile requirement documents.
"""

import logging
import re
from typing import Any, Dict, List, Optional, Sequence

from ..config_tree import ConfigTree
from .config import VALIDATION_NAMESPACE
from .extractor import InfrastructureExtractor, parse_critical
from .types import (
    FileFinding,
    LocationClass,
    Platform,
    PlatformResource,
    RequirementsDocument,
    ResourceKind,
)

logger = logging.getLogger(__name__)

NAMESPACES = {
    "dev": "development",
    "stage": "staging",
    "stg": "staging",
    "prod": "production",
}
DEFAULT_NAMESPACE = "default"

DEFAULT_CONFIG_MAP = ("app-config", "application base configuration")
# (config keys, secret name, description); any key present triggers the secret
SECRET_TRIGGERS = (
    (("spring.cloud.vault.uri",), "vault-token", "Vault authentication token"),
    (("spring.redis.host", "spring.data.redis.host", "redis.host"), "redis-credentials", "Redis credentials"),
)
FILE_KEYS_SECRET = ("file-keys", "file-based authentication keys")

_INVALID_NAME_CHARS = re.compile(r"[^a-z0-9-]+")


def determine_namespace(profile: str) -> str:
    """Map a profile name to its container-platform namespace"""
    return NAMESPACES.get(profile, DEFAULT_NAMESPACE)


def _resource_name(*segments: str) -> str:
    name = "-".join(segments).lower()
    return _INVALID_NAME_CHARS.sub("-", name).strip("-")


class RequirementsAssembler:
    """Builds one :class:`RequirementsDocument` per profile for a fixed platform"""

    def __init__(self, project_name: str, platform: Platform):
        self.project_name = project_name
        self.platform = platform

    def assemble(self, profile: str, extractor: InfrastructureExtractor) -> RequirementsDocument:
        files = extractor.extract_files()
        apis = extractor.extract_apis()

        if self.platform is Platform.VM:
            document = RequirementsDocument(
                project=self.project_name,
                environment=profile,
                platform=self.platform,
                company_domain=extractor.company_domain,
                files=tuple(files),
                external_apis=tuple(apis),
                directories=tuple(extractor.extract_directories()),
            )
        else:
            tree = extractor.tree
            document = RequirementsDocument(
                project=self.project_name,
                environment=profile,
                platform=self.platform,
                company_domain=extractor.company_domain,
                files=tuple(files),
                external_apis=tuple(apis),
                namespace=determine_namespace(profile),
                configmaps=tuple(self.extract_configmaps(tree)),
                secrets=tuple(self.extract_secrets(tree, files)),
                pvcs=tuple(self.extract_pvcs(tree, files)),
            )

        logger.info(
            f"[{profile}] {self.platform.value}: {len(document.files)} files, "
            f"{len(document.external_apis)} APIs"
        )
        return document

    # ========== container platform resources ==========

    def extract_configmaps(self, tree: ConfigTree) -> List[PlatformResource]:
        explicit = self._explicit_resources(tree, ResourceKind.CONFIG_MAP, "configmaps")
        if explicit:
            return explicit
        name, description = DEFAULT_CONFIG_MAP
        return [PlatformResource(ResourceKind.CONFIG_MAP, name, True, description, synthesized=True)]

    def extract_secrets(self, tree: ConfigTree, files: Sequence[FileFinding]) -> List[PlatformResource]:
        explicit = self._explicit_resources(tree, ResourceKind.SECRET, "secrets")
        if explicit:
            return explicit

        secrets = []
        for keys, name, description in SECRET_TRIGGERS:
            if any(tree.get(key) is not None for key in keys):
                secrets.append(PlatformResource(ResourceKind.SECRET, name, True, description, synthesized=True))
        if files:
            name, description = FILE_KEYS_SECRET
            secrets.append(PlatformResource(ResourceKind.SECRET, name, True, description, synthesized=True))
        return secrets

    def extract_pvcs(self, tree: ConfigTree, files: Sequence[FileFinding]) -> List[PlatformResource]:
        """Explicit PVCs, else one per distinct two-segment root of shared-storage files"""
        explicit = self._explicit_resources(tree, ResourceKind.PVC, "pvcs")
        if explicit:
            return explicit

        pvcs = []
        roots = set()
        for finding in files:
            if finding.location is not LocationClass.SHARED_STORAGE:
                continue
            parts = finding.path.split("/")
            if len(parts) < 3 or not parts[1] or not parts[2]:
                continue
            root = f"/{parts[1]}/{parts[2]}"
            if root in roots:
                continue
            roots.add(root)
            pvcs.append(PlatformResource(
                kind=ResourceKind.PVC,
                name=_resource_name("nas", parts[1], parts[2]),
                critical=True,
                description=f"NAS storage: {root}",
                mount_path=root,
                synthesized=True,
            ))
        return pvcs

    def _explicit_resources(self, tree: ConfigTree, kind: ResourceKind, category: str) -> List[PlatformResource]:
        resources = []
        for item in tree.get_mapping_list(f"{VALIDATION_NAMESPACE}.{category}"):
            name = item.get("name")
            if not isinstance(name, str) or not name:
                logger.warning(f"Skipping {category} declaration without a name: {item}")
                continue
            resources.append(PlatformResource(
                kind=kind,
                name=name,
                critical=parse_critical(item),
                description=str(item.get("description", name)),
                mount_path=self._mount_path(item) if kind is ResourceKind.PVC else None,
            ))
        return resources

    @staticmethod
    def _mount_path(item: Dict[str, Any]) -> Optional[str]:
        value = item.get("mountPath", item.get("mount-path"))
        return None if value is None else str(value)
