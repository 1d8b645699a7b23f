"""
Deployment platform detection (plain VM vs. Kubernetes).
"""

import logging
from pathlib import Path
from typing import Iterable, Optional, Union

from ..config_loader import RESOURCES_SUBDIR
from .types import Platform

logger = logging.getLogger(__name__)

K8S_CONFIG_KEYWORDS = (
    "kubernetes.io", "k8s.", "mkube-proxy",
    "livenessstate", "readinessstate",
    "liveness-probe", "readiness-probe",
    "configmap", "config-map",
    "service-account", "serviceaccount",
)

K8S_PLUGIN_IDS = frozenset({
    "com.google.cloud.tools.jib",
    "org.springframework.boot.experimental.thin-launcher",
})

K8S_DIRECTORY = "k8s"


def _yaml_source(config_dir: Path) -> Optional[Path]:
    for base in (config_dir / RESOURCES_SUBDIR, config_dir):
        for filename in ("application.yaml", "application.yml"):
            candidate = base / filename
            if candidate.is_file():
                return candidate
    return None


def detect_platform(project_dir: Union[str, Path],
                    plugin_ids: Iterable[str] = (),
                    config_dir: Optional[Union[str, Path]] = None) -> Platform:
    """Classify the deployment target of a project.

    Checked in order: declared container build plugins, marker keywords in
    the YAML config, a ``k8s/`` directory. Anything else is a VM.
    """
    project_dir = Path(project_dir)

    declared = set(plugin_ids or ())
    if declared & K8S_PLUGIN_IDS:
        logger.debug(f"Kubernetes build plugin declared: {sorted(declared & K8S_PLUGIN_IDS)}")
        return Platform.KUBERNETES

    source = _yaml_source(Path(config_dir) if config_dir else project_dir)
    if source is not None:
        try:
            content = source.read_text(encoding="utf-8").lower()
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Failed to read {source} for platform detection: {e}")
        else:
            for keyword in K8S_CONFIG_KEYWORDS:
                if keyword in content:
                    logger.debug(f"Kubernetes marker {keyword!r} found in {source.name}")
                    return Platform.KUBERNETES

    if (project_dir / K8S_DIRECTORY).is_dir():
        return Platform.KUBERNETES

    return Platform.VM
